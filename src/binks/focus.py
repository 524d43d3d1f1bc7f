"""Detect in-file focus markers for the two kinds of test files."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

ACCEPTANCE_MARKER = "@focus"
EXAMPLE_MARKERS = ("focus: true", ":focus => true")


class FileKind(str, Enum):
    """Test-file kinds, told apart by their suffix."""

    ACCEPTANCE = ".feature"
    EXAMPLE = "_spec.rb"

    @property
    def suffix(self) -> str:
        return self.value


def classify(file: str) -> FileKind | None:
    for kind in FileKind:
        if file.endswith(kind.suffix):
            return kind
    return None


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        # removed between the watch event and the inspection
        logger.debug("File vanished before focus inspection: %s", path)
        return None


def has_acceptance_focus(path: Path) -> bool:
    if classify(path.name) is not FileKind.ACCEPTANCE:
        return False
    content = _read(path)
    return content is not None and ACCEPTANCE_MARKER in content


def has_example_focus(path: Path) -> bool:
    if classify(path.name) is not FileKind.EXAMPLE:
        return False
    content = _read(path)
    return content is not None and any(marker in content for marker in EXAMPLE_MARKERS)


def has_focus(path: Path) -> bool:
    """Return True when ``path`` carries the focus marker of its kind."""

    return has_acceptance_focus(path) or has_example_focus(path)


__all__ = [
    "ACCEPTANCE_MARKER",
    "EXAMPLE_MARKERS",
    "FileKind",
    "classify",
    "has_acceptance_focus",
    "has_example_focus",
    "has_focus",
]
