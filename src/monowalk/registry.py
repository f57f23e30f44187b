# registry.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .descriptor import (
    descriptor_path,
    has_descriptor,
    load_project,
    project_from_data,
    read_descriptor,
    workspace_patterns,
)
from .errors import DuplicateProject, InvalidGlob, ProjectNotFound
from .model import Project


def _expand(root: Path, pattern: str) -> List[Path]:
    """
    Expand one member pattern into candidate directories under `root`.

    Supports:
      - plain dir:  "tools/cli"
      - glob:       "packages/*", "apps/**"
    """
    pat = pattern.strip().rstrip("/")
    if not pat:
        raise InvalidGlob(pattern=pattern, reason="empty pattern")
    if Path(pat).is_absolute():
        raise InvalidGlob(pattern=pattern, reason="pattern must be relative to the workspace root")

    try:
        matches = sorted(root.glob(pat))
    except (ValueError, NotImplementedError) as e:
        raise InvalidGlob(pattern=pattern, reason=str(e)) from e

    # installed packages are never workspace members
    return [m for m in matches if m.is_dir() and "node_modules" not in m.relative_to(root).parts]


class ProjectRegistry:
    """
    All projects of one workspace, discovered once and cached.

    The workspace root's package.json lists member patterns under
    "workspaces". A root without members is a standalone project and is
    its own (only) member.
    """

    def __init__(self, root: str | Path = "."):
        self.root = Path(root).resolve()
        self._projects: Optional[List[Project]] = None

    # ---- discovery ----

    def discover(self) -> List[Project]:
        if self._projects is None:
            self._projects = self._scan()
        return self._projects

    def refresh(self) -> List[Project]:
        """Forget the cached scan and discover again."""
        self._projects = None
        return self.discover()

    def _scan(self) -> List[Project]:
        data = read_descriptor(self.root)
        patterns = workspace_patterns(data, descriptor_path(self.root))

        if not patterns:
            return [project_from_data(data, self.root)]

        included: Dict[Path, None] = {}
        excluded: set[Path] = set()
        for pattern in patterns:
            if pattern.startswith("!"):
                excluded.update(_expand(self.root, pattern[1:]))
                continue
            for candidate in _expand(self.root, pattern):
                included.setdefault(candidate, None)

        projects: List[Project] = []
        for candidate in included:
            if candidate in excluded or candidate == self.root:
                continue
            # no descriptor -> not a project; malformed -> propagate
            if not has_descriptor(candidate):
                continue
            projects.append(load_project(candidate))

        _reject_duplicates(projects)
        return sorted(projects, key=lambda p: p.name)

    # ---- lookup ----

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.discover()]

    def get(self, name: str) -> Project:
        for project in self.discover():
            if project.name == name:
                return project
        raise ProjectNotFound(name=name, known=self.names)

    def select(self, names: Iterable[str]) -> List[Project]:
        """Registry-ordered subset; unknown names raise ProjectNotFound."""
        wanted = set(names)
        for name in wanted:
            self.get(name)
        return [p for p in self.discover() if p.name in wanted]


def _reject_duplicates(projects: List[Project]) -> None:
    seen: Dict[str, Project] = {}
    for project in projects:
        first = seen.get(project.name)
        if first is not None:
            raise DuplicateProject(name=project.name, paths=[first.root, project.root])
        seen[project.name] = project


def discover_projects(root: str | Path = ".") -> List[Project]:
    """One-shot discovery; use ProjectRegistry directly to reuse the cache."""
    return ProjectRegistry(root).discover()
