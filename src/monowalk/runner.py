# runner.py
from __future__ import annotations

import os
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import OUTPUT_TAIL
from .dag import DependencyOrder, plan
from .errors import CommandFailed, ScriptNotFound
from .model import CommandResult, Failure, Project, Success, WalkResult
from .ui.console import get_console

Action = Callable[[Project], Any]


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _command_env(cwd: Path, workspace_root: Path | None, extra: Optional[Dict[str, str]]) -> Dict[str, str]:
    env = os.environ.copy()
    env.update(extra or {})

    # project-local binaries first, then the workspace root's
    bins = [cwd / "node_modules" / ".bin"]
    if workspace_root is not None and workspace_root != cwd:
        bins.append(workspace_root / "node_modules" / ".bin")
    env["PATH"] = os.pathsep.join([*(str(b) for b in bins), env.get("PATH", "")])
    return env


def run_command(
    command: str,
    cwd: str | Path,
    *,
    project: str | None = None,
    env: Optional[Dict[str, str]] = None,
    workspace_root: str | Path | None = None,
) -> CommandResult:
    """
    Run `command` through the shell inside `cwd`.

    Output is captured. A non-zero exit raises CommandFailed carrying the
    exit code and the tail of stdout/stderr.
    """
    cwd_p = Path(cwd).resolve()
    if not cwd_p.exists():
        raise FileNotFoundError(f"[{project or cwd_p.name}] cwd not found: {cwd_p}")

    root_p = Path(workspace_root).resolve() if workspace_root is not None else None
    name = project or cwd_p.name

    proc = subprocess.run(
        command,
        shell=True,
        cwd=str(cwd_p),
        env=_command_env(cwd_p, root_p, env),
        text=True,
        capture_output=True,
    )

    if proc.returncode != 0:
        raise CommandFailed(
            project=name,
            command=command,
            exit_code=proc.returncode,
            stdout=proc.stdout[-OUTPUT_TAIL:],
            stderr=proc.stderr[-OUTPUT_TAIL:],
        )

    return CommandResult(
        project=name,
        command=command,
        exit_code=proc.returncode,
        stdout=proc.stdout,
        stderr=proc.stderr,
    )


# ----------------------------------------------------------------------
# Walk
# ----------------------------------------------------------------------

def _settle(future, project: Project) -> Success | Failure:
    try:
        return Success(project=project, value=future.result())
    except BaseException as e:  # SystemExit included
        return Failure(project=project, error=e)


def walk_batches(
    batches: Sequence[Sequence[Project]],
    action: Action,
    *,
    max_workers: int | None = None,
    report: bool = False,
) -> WalkResult:
    """
    Run `action` for every project, batch by batch.

    - Every project of a batch is submitted at once (capped by max_workers).
    - The next batch starts only after every action of the current batch has
      settled, successfully or not.
    - An exception from an action becomes a Failure for that project only.
      Later batches still run, including dependents of failed projects.
    - results/errors are in completion order.
    """
    console = get_console()
    result = WalkResult()

    for index, batch in enumerate(batches):
        if not batch:
            continue
        if report:
            console.print_batch_start(index, batch)

        workers = min(max_workers or len(batch), len(batch))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(action, project): project for project in batch}

            for future in as_completed(futures):
                outcome = _settle(future, futures[future])
                if isinstance(outcome, Failure):
                    result.errors.append(outcome)
                else:
                    result.results.append(outcome)
                if report:
                    console.print_settled(outcome)

    return result


def walk(
    projects: Sequence[Project],
    action: Action,
    *,
    parallel: bool = True,
    dependency_order: DependencyOrder = False,
    max_workers: int | None = None,
    report: bool = False,
) -> WalkResult:
    """
    Plan then execute. Scheduling errors (CycleDetected) are raised before
    any action runs.
    """
    batches = plan(projects, parallel=parallel, dependency_order=dependency_order)
    get_console().print_debug(f"planned {len(batches)} batch(es) for {len(projects)} project(s)")
    return walk_batches(batches, action, max_workers=max_workers, report=report)


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def workspace_execute(
    projects: Sequence[Project],
    command: str,
    *,
    workspace_root: str | Path | None = None,
    env: Optional[Dict[str, str]] = None,
    **options: Any,
) -> WalkResult:
    """Run a raw shell command in every project."""

    def action(project: Project) -> CommandResult:
        return run_command(
            command,
            project.root,
            project=project.name,
            env=env,
            workspace_root=workspace_root,
        )

    return walk(projects, action, **options)


def workspace_run(
    projects: Sequence[Project],
    script: str,
    *,
    if_present: bool = True,
    workspace_root: str | Path | None = None,
    env: Optional[Dict[str, str]] = None,
    **options: Any,
) -> WalkResult:
    """
    Run the named package.json script in every project.

    Projects without the script settle as Success(None) when if_present is
    set, otherwise as a ScriptNotFound failure.
    """
    script = script.strip()

    def action(project: Project) -> CommandResult | None:
        body = project.script(script)
        if body is None:
            if if_present:
                return None
            raise ScriptNotFound(project=project.name, script=script)

        script_env = {
            "npm_lifecycle_event": script,
            "npm_package_name": project.name,
            **(env or {}),
        }
        return run_command(
            body,
            project.root,
            project=project.name,
            env=script_env,
            workspace_root=workspace_root,
        )

    return walk(projects, action, **options)


def failed_names(result: WalkResult) -> List[str]:
    return [f.project.name for f in result.errors]
