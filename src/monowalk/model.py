# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Generic, List, Mapping, TypeVar

T = TypeVar("T")


def _frozen(mapping: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Project:
    """
    One workspace member, as declared by its package.json.

    Dependency maps are read-only: the graph and the scheduler snapshot them
    for the lifetime of a walk.
    """
    name: str
    root: Path
    version: str | None = None
    private: bool = False
    dependencies: Mapping[str, str] = field(default_factory=dict, hash=False)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict, hash=False)
    peer_dependencies: Mapping[str, str] = field(default_factory=dict, hash=False)
    optional_dependencies: Mapping[str, str] = field(default_factory=dict, hash=False)
    scripts: Mapping[str, str] = field(default_factory=dict, hash=False)
    workspaces: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # frozen: go through object.__setattr__ to swap in read-only views
        for attr in (
            "dependencies",
            "dev_dependencies",
            "peer_dependencies",
            "optional_dependencies",
            "scripts",
        ):
            object.__setattr__(self, attr, _frozen(getattr(self, attr)))

    @property
    def dependency_names(self) -> List[str]:
        return list(self.dependencies)

    @property
    def dev_dependency_names(self) -> List[str]:
        return list(self.dev_dependencies)

    @property
    def peer_dependency_names(self) -> List[str]:
        return list(self.peer_dependencies)

    @property
    def optional_dependency_names(self) -> List[str]:
        return list(self.optional_dependencies)

    def has_script(self, name: str) -> bool:
        return name.strip() in self.scripts

    def script(self, name: str) -> str | None:
        return self.scripts.get(name.strip())


@dataclass(frozen=True)
class DependencyInclusion:
    """Which dependency kinds become graph edges. Default: none."""
    runtime: bool = False
    dev: bool = False
    peer: bool = False
    optional: bool = False

    @classmethod
    def all(cls) -> DependencyInclusion:
        return cls(runtime=True, dev=True, peer=True, optional=True)

    @classmethod
    def from_kinds(cls, kinds) -> DependencyInclusion:
        """Build from names like ["runtime", "dev"] (CLI --include values)."""
        kinds = set(kinds)
        unknown = kinds - set(DEPENDENCY_KINDS)
        if unknown:
            raise ValueError(f"Unknown dependency kinds: {sorted(unknown)}")
        return cls(**{k: True for k in kinds})

    def names_for(self, project: Project) -> List[str]:
        """Union of the dependency names selected for this project."""
        names: list[str] = []
        if self.runtime:
            names.extend(project.dependency_names)
        if self.dev:
            names.extend(project.dev_dependency_names)
        if self.peer:
            names.extend(project.peer_dependency_names)
        if self.optional:
            names.extend(project.optional_dependency_names)
        return list(dict.fromkeys(names))


DEPENDENCY_KINDS = ("runtime", "dev", "peer", "optional")


# ----------------------------------------------------------------------
# Walk results
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Success(Generic[T]):
    project: Project
    value: T


@dataclass(frozen=True)
class Failure:
    project: Project
    error: BaseException


@dataclass
class WalkResult:
    """Aggregate of one walk: every project lands in exactly one list."""
    results: list[Success[Any]] = field(default_factory=list)
    errors: list[Failure] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def __len__(self) -> int:
        return len(self.results) + len(self.errors)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a successful shell command inside a project."""
    project: str
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
