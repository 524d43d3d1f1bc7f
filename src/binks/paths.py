"""Resolve paths reported by the file watchers."""

from __future__ import annotations

import os
from pathlib import Path


def resolve_path(file: str, root: str | os.PathLike[str], *, cwd: str | os.PathLike[str] | None = None) -> Path:
    """Return the absolute path of ``file`` reported relative to the watch ``root``.

    ``root`` itself may be relative; it is anchored at ``cwd`` (the process
    working directory by default).
    """

    base = Path(cwd) if cwd is not None else Path.cwd()
    return Path(os.path.normpath(base / root / file))


__all__ = ["resolve_path"]
