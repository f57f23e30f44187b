from .dag import DependencyGraph, build_graph, plan, schedule_batches, schedule_linear
from .descriptor import load_project
from .errors import (
    CommandFailed,
    CycleDetected,
    DescriptorNotFound,
    DuplicateProject,
    InvalidGlob,
    MalformedDescriptor,
    MonowalkError,
    ProjectNotFound,
    ScriptNotFound,
)
from .model import CommandResult, DependencyInclusion, Failure, Project, Success, WalkResult
from .registry import ProjectRegistry, discover_projects
from .runner import run_command, walk, walk_batches, workspace_execute, workspace_run

__version__ = "0.1.0"

__all__ = [
    "Project",
    "DependencyInclusion",
    "Success",
    "Failure",
    "WalkResult",
    "CommandResult",
    "ProjectRegistry",
    "discover_projects",
    "load_project",
    "DependencyGraph",
    "build_graph",
    "schedule_batches",
    "schedule_linear",
    "plan",
    "walk",
    "walk_batches",
    "workspace_execute",
    "workspace_run",
    "run_command",
    "MonowalkError",
    "DescriptorNotFound",
    "MalformedDescriptor",
    "InvalidGlob",
    "DuplicateProject",
    "ProjectNotFound",
    "CycleDetected",
    "CommandFailed",
    "ScriptNotFound",
]
