from __future__ import annotations

import json
from pathlib import Path

import pytest

from monowalk.model import Project
from monowalk.ui.console import Console, set_console


def write_package(directory: Path, data: dict) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return path


def make_project(name: str, deps=None, dev=None, peer=None, optional=None, scripts=None) -> Project:
    return Project(
        name=name,
        root=Path("/ws") / name,
        dependencies={d: "*" for d in deps or []},
        dev_dependencies={d: "*" for d in dev or []},
        peer_dependencies={d: "*" for d in peer or []},
        optional_dependencies={d: "*" for d in optional or []},
        scripts=scripts or {},
    )


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console(debug=False))
    yield


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """
    packages/a depends (runtime) on b and on external left-pad,
    packages/b has no workspace deps,
    packages/c dev-depends on a.
    """
    write_package(tmp_path, {"name": "root", "private": True, "workspaces": ["packages/*"]})
    write_package(
        tmp_path / "packages" / "a",
        {
            "name": "a",
            "version": "1.0.0",
            "dependencies": {"b": "^1.0.0", "left-pad": "^1.3.0"},
            "scripts": {"build": "echo building a", "fail": "exit 3"},
        },
    )
    write_package(
        tmp_path / "packages" / "b",
        {"name": "b", "version": "1.0.0", "scripts": {"build": "echo building b"}},
    )
    write_package(
        tmp_path / "packages" / "c",
        {"name": "c", "devDependencies": {"a": "workspace:*"}},
    )
    # not a project: no package.json
    (tmp_path / "packages" / "docs").mkdir(parents=True)
    return tmp_path
