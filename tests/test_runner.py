from __future__ import annotations

import sys
import threading

import pytest

from conftest import make_project, write_package
from monowalk.errors import CommandFailed, CycleDetected, ScriptNotFound
from monowalk.model import CommandResult, DependencyInclusion
from monowalk.registry import discover_projects
from monowalk.runner import run_command, walk, walk_batches, workspace_execute, workspace_run


@pytest.fixture
def two_packages(tmp_path):
    """The a -> b example: a depends (runtime) on b."""
    write_package(tmp_path, {"name": "root", "workspaces": ["packages/*"]})
    write_package(tmp_path / "packages" / "a", {"name": "a", "dependencies": {"b": "1.0.0"}})
    write_package(tmp_path / "packages" / "b", {"name": "b"})
    return discover_projects(tmp_path)


def test_failure_in_later_batch_is_recorded_and_walk_completes(two_packages):
    order = []

    def action(project):
        order.append(project.name)
        if project.name == "a":
            raise RuntimeError("boom")
        return "ok"

    result = walk(two_packages, action, parallel=True, dependency_order=True)

    assert order == ["b", "a"]
    assert result.has_errors
    assert [f.project.name for f in result.errors] == ["a"]
    assert isinstance(result.errors[0].error, RuntimeError)
    assert [(s.project.name, s.value) for s in result.results] == [("b", "ok")]


def test_dependents_still_run_after_dependency_fails(two_packages):
    ran = []

    def action(project):
        ran.append(project.name)
        if project.name == "b":
            raise RuntimeError("b broke")

    result = walk(two_packages, action, dependency_order=DependencyInclusion(runtime=True))

    assert ran == ["b", "a"]
    assert [f.project.name for f in result.errors] == ["b"]
    assert [s.project.name for s in result.results] == ["a"]


def test_every_project_lands_in_exactly_one_list():
    projects = [make_project(f"p{i}") for i in range(10)]

    def action(project):
        if int(project.name[1:]) % 3 == 0:
            raise ValueError(project.name)
        return project.name

    result = walk(projects, action, parallel=True)

    seen = [s.project.name for s in result.results] + [f.project.name for f in result.errors]
    assert len(result) == 10
    assert sorted(seen) == sorted(p.name for p in projects)
    assert sorted(f.project.name for f in result.errors) == ["p0", "p3", "p6", "p9"]


def test_batch_members_run_concurrently():
    projects = [make_project(n) for n in ("a", "b", "c")]
    barrier = threading.Barrier(3, timeout=5)

    # would raise BrokenBarrierError if the three actions were not in flight together
    result = walk(projects, lambda p: barrier.wait(), parallel=True)

    assert not result.has_errors


def test_serial_mode_runs_one_at_a_time():
    projects = [make_project(n) for n in ("a", "b", "c")]
    lock = threading.Lock()
    active = []
    peak = []

    def action(project):
        with lock:
            active.append(project.name)
            peak.append(len(active))
        with lock:
            active.remove(project.name)

    walk(projects, action, parallel=False)

    assert max(peak) == 1


def test_next_batch_waits_for_whole_batch_to_settle():
    events = []
    lock = threading.Lock()
    slow_done = threading.Event()

    def action(project):
        if project.name == "slow":
            slow_done.wait(0.2)
            with lock:
                events.append("slow-end")
        elif project.name == "fast":
            with lock:
                events.append("fast-end")
            raise RuntimeError("fast fails")
        else:
            with lock:
                events.append("late-start")

    batches = [[make_project("fast"), make_project("slow")], [make_project("late")]]

    result = walk_batches(batches, action)

    assert events.index("late-start") > events.index("slow-end")
    # completion order inside a batch
    assert [f.project.name for f in result.errors] == ["fast"]
    assert [s.project.name for s in result.results] == ["slow", "late"]


def test_max_workers_caps_concurrency():
    projects = [make_project(f"p{i}") for i in range(6)]
    lock = threading.Lock()
    active = []
    peak = []

    def action(project):
        with lock:
            active.append(project.name)
            peak.append(len(active))
        threading.Event().wait(0.01)
        with lock:
            active.remove(project.name)

    walk(projects, action, parallel=True, max_workers=2)

    assert max(peak) <= 2


def test_cycle_aborts_before_any_action():
    projects = [make_project("a", deps=["b"]), make_project("b", deps=["a"])]
    ran = []

    with pytest.raises(CycleDetected):
        walk(projects, ran.append, dependency_order=True)

    assert ran == []


def test_run_command_captures_output(tmp_path):
    result = run_command("echo hello", tmp_path, project="x")

    assert isinstance(result, CommandResult)
    assert result.exit_code == 0
    assert result.stdout.strip() == "hello"


def test_run_command_raises_on_non_zero_exit(tmp_path):
    with pytest.raises(CommandFailed) as exc:
        run_command("echo oops >&2; exit 3", tmp_path, project="x")

    assert exc.value.exit_code == 3
    assert "oops" in exc.value.stderr
    assert "exit=3" in str(exc.value)


def test_run_command_puts_local_bin_on_path(tmp_path):
    bin_dir = tmp_path / "node_modules" / ".bin"
    bin_dir.mkdir(parents=True)
    tool = bin_dir / "greet"
    tool.write_text("#!/bin/sh\necho hi from greet\n", encoding="utf-8")
    tool.chmod(0o755)

    assert run_command("greet", tmp_path).stdout.strip() == "hi from greet"


def test_run_command_missing_cwd(tmp_path):
    with pytest.raises(FileNotFoundError):
        run_command("true", tmp_path / "nope")


def test_workspace_execute_runs_in_each_project_root(workspace):
    projects = discover_projects(workspace)

    result = workspace_execute(projects, "pwd -P", dependency_order=True)

    assert not result.has_errors
    assert {s.project.name: s.value.stdout.strip() for s in result.results} == {
        p.name: str(p.root) for p in projects
    }


def test_workspace_run_skips_projects_without_script(workspace):
    projects = discover_projects(workspace)

    result = workspace_run(projects, "build", dependency_order=True, workspace_root=workspace)

    values = {s.project.name: s.value for s in result.results}
    assert not result.has_errors
    assert values["a"].stdout.strip() == "building a"
    assert values["b"].stdout.strip() == "building b"
    assert values["c"] is None


def test_workspace_run_without_if_present_fails_missing_script(workspace):
    projects = discover_projects(workspace)

    result = workspace_run(projects, "build", if_present=False)

    assert [f.project.name for f in result.errors] == ["c"]
    assert isinstance(result.errors[0].error, ScriptNotFound)


def test_workspace_run_script_failure_is_isolated(workspace):
    projects = discover_projects(workspace)

    result = workspace_run(projects, "fail", parallel=False)

    assert [f.project.name for f in result.errors] == ["a"]
    assert result.errors[0].error.exit_code == 3
    assert sorted(s.project.name for s in result.results) == ["b", "c"]


def test_workspace_run_sets_lifecycle_env(workspace):
    write_package(workspace / "packages" / "b", {"name": "b", "scripts": {"env": "echo $npm_lifecycle_event $npm_package_name"}})
    projects = discover_projects(workspace)

    result = workspace_run([p for p in projects if p.name == "b"], "env")

    assert result.results[0].value.stdout.strip() == "env b"


def test_system_exit_in_action_is_isolated():
    ran = []

    def action(project):
        ran.append(project.name)
        if project.name == "a":
            sys.exit(2)
        return project.name

    batches = [[make_project("a"), make_project("b")], [make_project("c")]]

    result = walk_batches(batches, action)

    assert sorted(ran) == ["a", "b", "c"]
    assert [f.project.name for f in result.errors] == ["a"]
    assert isinstance(result.errors[0].error, SystemExit)
    assert sorted(s.project.name for s in result.results) == ["b", "c"]
