# descriptor.py
# Loads package.json descriptors into Project objects.
# This module is the only place that reads descriptor files; everything
# downstream works on immutable Project values.

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from .config import DESCRIPTOR_FILENAME
from .errors import DescriptorNotFound, MalformedDescriptor
from .model import Project

# package.json key -> Project field
_DEPENDENCY_KEYS = {
    "dependencies": "dependencies",
    "devDependencies": "dev_dependencies",
    "peerDependencies": "peer_dependencies",
    "optionalDependencies": "optional_dependencies",
}


def descriptor_path(root: str | Path) -> Path:
    return Path(root) / DESCRIPTOR_FILENAME


def has_descriptor(root: str | Path) -> bool:
    return descriptor_path(root).is_file()


def read_descriptor(root: str | Path) -> Dict[str, Any]:
    """
    Read the raw descriptor mapping at `root`.

    Raises:
        DescriptorNotFound: no package.json in `root`
        MalformedDescriptor: file is not a JSON object
    """
    path = descriptor_path(root)
    if not path.is_file():
        raise DescriptorNotFound(path=path)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedDescriptor(path=path, reason=str(e)) from e

    if not isinstance(data, dict):
        raise MalformedDescriptor(path=path, reason=f"expected an object, got {type(data).__name__}")
    return data


def _string_map(data: Dict[str, Any], key: str, path: Path) -> Dict[str, str]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise MalformedDescriptor(path=path, reason=f"{key!r} must map strings to strings")
    return dict(value)


def workspace_patterns(data: Dict[str, Any], path: Path | None = None) -> List[str]:
    """
    Member glob patterns declared by a descriptor.

    Accepts both shapes used in the wild:
      "workspaces": ["packages/*"]
      "workspaces": {"packages": ["packages/*"]}
    The first non-empty source wins.
    """
    value = data.get("workspaces")
    candidates: list = []
    if isinstance(value, list):
        candidates.append(value)
    elif isinstance(value, dict):
        candidates.append(value.get("packages"))
    elif value is not None:
        raise MalformedDescriptor(path=path or Path(DESCRIPTOR_FILENAME), reason="'workspaces' must be a list or an object")

    for patterns in candidates:
        if not patterns:
            continue
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise MalformedDescriptor(
                path=path or Path(DESCRIPTOR_FILENAME),
                reason="workspace patterns must be a list of strings",
            )
        return list(patterns)
    return []


def project_from_data(data: Dict[str, Any], root: Path) -> Project:
    path = descriptor_path(root)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise MalformedDescriptor(path=path, reason="missing or empty 'name'")

    version = data.get("version")
    if version is not None and not isinstance(version, str):
        raise MalformedDescriptor(path=path, reason="'version' must be a string")

    deps = {field: _string_map(data, key, path) for key, field in _DEPENDENCY_KEYS.items()}

    return Project(
        name=name.strip(),
        root=root,
        version=version,
        private=bool(data.get("private", False)),
        scripts=_string_map(data, "scripts", path),
        workspaces=tuple(workspace_patterns(data, path)),
        **deps,
    )


def load_project(root: str | Path) -> Project:
    """
    Load the project rooted at `root`.

    Raises:
        DescriptorNotFound, MalformedDescriptor
    """
    root_p = Path(root).resolve()
    return project_from_data(read_descriptor(root_p), root_p)
