# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


class MonowalkError(Exception):
    """Base class for every error raised by monowalk itself."""


# ----------------------------------------------------------------------
# Discovery errors (fatal to discovery / registry)
# ----------------------------------------------------------------------

@dataclass
class DescriptorNotFound(MonowalkError):
    path: Path

    def __str__(self) -> str:
        return f"No package.json found at {self.path}"


@dataclass
class MalformedDescriptor(MonowalkError):
    path: Path
    reason: str

    def __str__(self) -> str:
        return f"Malformed descriptor {self.path}: {self.reason}"


@dataclass
class InvalidGlob(MonowalkError):
    pattern: str
    reason: str

    def __str__(self) -> str:
        return f"Invalid workspace pattern {self.pattern!r}: {self.reason}"


@dataclass
class DuplicateProject(MonowalkError):
    name: str
    paths: list[Path] = field(default_factory=list)

    def __str__(self) -> str:
        where = ", ".join(str(p) for p in self.paths)
        return f"Duplicate project name {self.name!r} found at: {where}"


@dataclass
class ProjectNotFound(MonowalkError):
    name: str
    known: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Unknown project {self.name!r}. Known projects: {self.known}"


# ----------------------------------------------------------------------
# Scheduling errors (fatal to the walk, raised before any action runs)
# ----------------------------------------------------------------------

@dataclass
class CycleDetected(MonowalkError):
    remaining: list[str]

    def __str__(self) -> str:
        return f"Dependency graph has a cycle. Stuck projects: {self.remaining}"


# ----------------------------------------------------------------------
# Action errors (recorded per project, never fatal to the walk)
# ----------------------------------------------------------------------

@dataclass
class CommandFailed(MonowalkError):
    """
    A shell command exited non-zero inside a project.

    stdout/stderr hold only the tail of the output so the error stays printable.
    """
    project: str
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    def __str__(self) -> str:
        return f"[{self.project}] command failed (exit={self.exit_code}): {self.command}"


@dataclass
class ScriptNotFound(MonowalkError):
    project: str
    script: str

    def __str__(self) -> str:
        return f"[{self.project}] has no script named {self.script!r}"
