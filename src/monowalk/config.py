# config.py
# Environment-driven defaults. CLI options always win over these.
from __future__ import annotations

import os
from typing import Optional

DESCRIPTOR_FILENAME = "package.json"


def env_int(name: str, minimum: int = 1) -> Optional[int]:
    """Integer from the environment; unset, non-numeric or too small -> None."""
    raw = os.environ.get(name, "").strip()
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= minimum else None


def env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw not in ("0", "false", "no", "off")


ROOT = os.environ.get("MONOWALK_ROOT") or "."

# None -> one worker per project in a batch (fire all)
WORKERS = env_int("MONOWALK_WORKERS")

PARALLEL = env_bool("MONOWALK_PARALLEL", True)

# Keep only the tail of captured output on failures
OUTPUT_TAIL = 4000
