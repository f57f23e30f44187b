# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from . import config
from .dag import build_graph, plan
from .errors import CycleDetected, DescriptorNotFound, InvalidGlob, MonowalkError, ProjectNotFound
from .model import DEPENDENCY_KINDS, DependencyInclusion
from .registry import ProjectRegistry
from .runner import failed_names, workspace_execute, workspace_run
from .ui.console import Console, get_console, set_console


def walk_options(fn):
    """Options shared by every command that walks the workspace."""
    decorators = [
        click.option(
            "--parallel/--no-parallel",
            default=config.PARALLEL,
            show_default=True,
            help="Run independent projects concurrently",
        ),
        click.option(
            "--topological/--no-topological",
            default=False,
            help="Order projects by their workspace dependencies (all kinds)",
        ),
        click.option(
            "--include",
            "include",
            multiple=True,
            type=click.Choice(DEPENDENCY_KINDS),
            help="Dependency kind to order by (repeatable, implies ordering)",
        ),
        click.option(
            "--workers",
            default=config.WORKERS,
            type=click.IntRange(min=1),
            help="Max concurrent projects per batch",
        ),
        click.option("--scope", multiple=True, help="Only walk this project (repeatable)"),
    ]
    for decorator in reversed(decorators):
        fn = decorator(fn)
    return fn


def _dependency_order(topological: bool, include: tuple[str, ...]):
    if include:
        return DependencyInclusion.from_kinds(include)
    return topological


def _projects(registry: ProjectRegistry, scope: tuple[str, ...]):
    if scope:
        return registry.select(scope)
    return registry.discover()


ERROR_HINTS = {
    DescriptorNotFound: "Point --root (or MONOWALK_ROOT) at the directory holding the workspace package.json.",
    InvalidGlob: "Workspace patterns must be non-empty globs relative to the root, e.g. \"packages/*\".",
    CycleDetected: "Break the cycle, or order by fewer kinds with --include runtime.",
    ProjectNotFound: "Run `monowalk list` to see the project names.",
}


def _fail(title: str, e: Exception, ctx) -> None:
    console = get_console()
    console.print_error(title, str(e), suggestion=ERROR_HINTS.get(type(e)))
    if ctx.obj.get("debug", False):
        console.print_exception(e)
    sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option(
    "--root",
    default=config.ROOT,
    type=click.Path(file_okay=False, path_type=Path),
    help="Workspace root (directory holding the root package.json)",
)
@click.pass_context
def cli(ctx, debug, root):
    """monowalk: run commands across a workspace in dependency order."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["registry"] = ProjectRegistry(root)


@cli.command("list")
@click.option("--graph", is_flag=True, default=False, help="Show workspace dependencies of each project")
@click.pass_context
def list_projects(ctx, graph):
    """List the projects of the workspace."""
    registry: ProjectRegistry = ctx.obj["registry"]
    try:
        projects = registry.discover()
        deps = None
        if graph:
            g = build_graph(projects, DependencyInclusion.all())
            deps = {name: g.dependencies_of(name) for name in g.nodes}
        get_console().print_projects(projects, deps)
    except MonowalkError as e:
        _fail("Discovery failed", e, ctx)


@cli.command("plan")
@walk_options
@click.pass_context
def plan_cmd(ctx, parallel, topological, include, workers, scope):
    """Show the batches a walk would run, without running anything."""
    registry: ProjectRegistry = ctx.obj["registry"]
    try:
        batches = plan(
            _projects(registry, scope),
            parallel=parallel,
            dependency_order=_dependency_order(topological, include),
        )
        get_console().print_plan(batches)
    except MonowalkError as e:
        _fail("Planning failed", e, ctx)


def _run_walk(ctx, label: str, walk_fn, **kwargs) -> None:
    console = get_console()
    registry: ProjectRegistry = ctx.obj["registry"]
    try:
        projects = _projects(registry, kwargs.pop("scope"))
        console.print_walk_started(str(registry.root), label, len(projects))

        result = walk_fn(
            projects,
            workspace_root=registry.root,
            parallel=kwargs.pop("parallel"),
            dependency_order=_dependency_order(kwargs.pop("topological"), kwargs.pop("include")),
            max_workers=kwargs.pop("workers"),
            report=True,
            **kwargs,
        )
        console.print_results(result)

        if result.has_errors:
            console.print_debug(f"failed: {failed_names(result)}")
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except MonowalkError as e:
        _fail("Walk aborted", e, ctx)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.argument("script")
@click.option("--if-present/--no-if-present", default=True, show_default=True, help="Skip projects without the script")
@walk_options
@click.pass_context
def run(ctx, script, if_present, **options):
    """Run a package.json script in every project."""
    _run_walk(
        ctx,
        f"run {script}",
        lambda projects, **kw: workspace_run(projects, script, if_present=if_present, **kw),
        **options,
    )


@cli.command("exec")
@click.argument("command")
@walk_options
@click.pass_context
def exec_cmd(ctx, command, **options):
    """Execute a shell command in every project."""
    _run_walk(
        ctx,
        f"exec {command}",
        lambda projects, **kw: workspace_execute(projects, command, **kw),
        **options,
    )


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
