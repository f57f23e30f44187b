"""Console output formatting utilities for monowalk."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from ..model import Failure, Project, Success, WalkResult


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_walk_started(self, root: str, action: str, project_count: int) -> None:
        """Print walk start information."""
        print("\nWALK STARTED")
        print(f"Workspace: {root}")
        print(f"Action: {action}")
        print(f"Projects: {project_count}")
        print()

    def print_batch_start(self, index: int, batch: Sequence[Project]) -> None:
        names = ", ".join(p.name for p in batch)
        print(f"=== Batch {index + 1}: [{names}] ===")

    def print_settled(self, outcome: Success | Failure) -> None:
        """Print one project's outcome as soon as it settles."""
        name = outcome.project.name
        if isinstance(outcome, Failure):
            print(f"✗ {name}")
            self.print_failure(name, str(outcome.error), exit_code=getattr(outcome.error, "exit_code", None))
        else:
            print(f"✓ {name}")
        self.print_output(name, outcome)

    def print_output(self, name: str, outcome: Success | Failure) -> None:
        """Print captured command output, prefixed by project name."""
        source = outcome.value if isinstance(outcome, Success) else outcome.error
        for stream in ("stdout", "stderr"):
            text = getattr(source, stream, "") or ""
            for line in text.rstrip().splitlines():
                print(f"[{name}] {line}", file=sys.stderr if stream == "stderr" else sys.stdout)

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Project name
            reason: Failure reason/error message
            exit_code: Optional exit code
        """
        print(f"PROJECT FAILED: {name}")
        if exit_code is not None:
            print(f"Exit code: {exit_code}")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            # Show first line of error for non-debug mode
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}")

    def print_plan(self, batches: Sequence[Sequence[Project]]) -> None:
        """Print the batches a walk would execute."""
        for index, batch in enumerate(batches):
            print(f"Batch {index + 1}:")
            for project in batch:
                print(f"  {project.name}")

    def print_projects(self, projects: Sequence[Project], deps: Optional[dict[str, list[str]]] = None) -> None:
        """Print discovered projects, optionally with their workspace dependencies."""
        for project in projects:
            version = f"@{project.version}" if project.version else ""
            line = f"{project.name}{version}  {project.root}"
            if deps is not None:
                line += f"  -> {', '.join(deps.get(project.name, [])) or '-'}"
            print(line)

    def print_results(self, result: WalkResult) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for success in result.results:
            print(f"  {success.project.name}: SUCCESS")
        for failure in result.errors:
            print(f"  {failure.project.name}: FAILED")
        print(f"\n{len(result.results)} succeeded, {len(result.errors)} failed")

    def print_error(
        self,
        title: str,
        message: str,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
