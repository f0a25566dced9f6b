"""Build ids — one id per build, shared by every wrapped step.

The outermost wrapper picks the id (from the id file, or a fresh one) and
re-executes itself with ``--id`` so nested invocations agree on it.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

from skipper.core.errors import atomic_write


def new_build_id() -> str:
    """Return a fresh build id that sorts by creation time."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"{stamp}-{uuid.uuid4().hex[:12]}"


def read_build_id(path: Path) -> str:
    """Read the persisted build id.

    Returns "" when the file is missing or empty. Surrounding whitespace is
    stripped so hand-edited files still work.
    """
    try:
        return path.read_text().strip()
    except FileNotFoundError:
        return ""


def save_build_id(path: Path, build_id: str) -> None:
    # No trailing newline, makes things simpler for other programs.
    path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write(path, build_id)


def ensure_build_id(path: Path) -> str:
    """Return the persisted build id, creating and saving one if needed."""
    build_id = read_build_id(path)
    if not build_id:
        build_id = new_build_id()
        save_build_id(path, build_id)
    return build_id


def child_wrapper_args(build_id: str, argv: list[str]) -> list[str]:
    """Insert ``--id <build_id>`` right after the program name."""
    return [*argv[:1], "--id", build_id, *argv[1:]]
