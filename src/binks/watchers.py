"""Watchdog adapters for test files and the checked-out branch."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler, FileSystemMovedEvent
from watchdog.observers.api import BaseObserver

from .categories import ChangeBatch, WatchCategory
from .paths import resolve_path

logger = logging.getLogger(__name__)

HEAD_PREFIX = "ref: refs/heads/"


def read_branch(head_path: Path, *, missing_ok: bool = False) -> str | None:
    """Return the branch named by a git ``HEAD`` file.

    A detached HEAD yields the commit id. A missing file returns None when
    ``missing_ok`` is set and raises otherwise.
    """

    try:
        content = Path(head_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        if missing_ok:
            return None
        raise
    return content.removeprefix(HEAD_PREFIX).rstrip("\r\n")


def _event_paths(event: FileSystemEvent) -> list[str]:
    if event.is_directory:
        return []
    if isinstance(event, FileSystemMovedEvent):
        return [os.fsdecode(event.dest_path)]
    return [os.fsdecode(event.src_path)]


class _Handler(FileSystemEventHandler):
    def __init__(self, notify: Callable[[str], None]) -> None:
        super().__init__()
        self._notify = notify

    def _dispatch_paths(self, event: FileSystemEvent) -> None:
        for path in _event_paths(event):
            self._notify(path)

    on_created = _dispatch_paths
    on_modified = _dispatch_paths
    on_moved = _dispatch_paths


class FileWatcher:
    """Coalesces per-file watch events under one category root into batches.

    Events from the observer thread are handed to the event loop; once no
    new path has arrived for ``debounce`` seconds the collected paths are
    emitted as one :class:`ChangeBatch`, in first-seen order.
    """

    def __init__(
        self,
        category: WatchCategory,
        emit: Callable[[ChangeBatch], None],
        *,
        loop: asyncio.AbstractEventLoop,
        debounce: float = 0.05,
        cwd: str | None = None,
    ) -> None:
        self._category = category
        self._emit = emit
        self._loop = loop
        self._debounce = debounce
        self._root = resolve_path("", category.root, cwd=cwd)
        self._pending: dict[str, None] = {}
        self._timer: asyncio.TimerHandle | None = None

    @property
    def category(self) -> WatchCategory:
        return self._category

    @property
    def root(self) -> Path:
        return self._root

    def schedule(self, observer: BaseObserver) -> bool:
        if not self._root.is_dir():
            logger.warning("Not watching %s: directory does not exist", self._category.root)
            return False
        observer.schedule(_Handler(self.notify), str(self._root), recursive=True)
        logger.info("Watching %s for %s", self._root, self._category.pattern)
        return True

    def notify(self, path: str) -> None:
        """Observer-thread entry point for one changed path."""

        relpath = Path(os.path.relpath(path, self._root)).as_posix()
        if relpath.startswith("../") or not self._category.matches(relpath):
            return
        self._loop.call_soon_threadsafe(self._collect, relpath)

    def _collect(self, relpath: str) -> None:
        self._pending[relpath] = None
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._loop.call_later(self._debounce, self._flush)

    def _flush(self) -> None:
        self._timer = None
        if not self._pending:
            return
        batch = ChangeBatch(category=self._category, files=tuple(self._pending))
        self._pending.clear()
        self._emit(batch)


class BranchWatcher:
    """Signals modifications of the git ``HEAD`` file."""

    def __init__(
        self,
        head_path: Path,
        emit: Callable[[], None],
        *,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._head_path = Path(head_path).absolute()
        self._emit = emit
        self._loop = loop

    @property
    def head_path(self) -> Path:
        return self._head_path

    def read(self, *, missing_ok: bool = False) -> str | None:
        return read_branch(self._head_path, missing_ok=missing_ok)

    def schedule(self, observer: BaseObserver) -> bool:
        git_dir = self._head_path.parent
        if not git_dir.is_dir():
            logger.warning("Not watching branch changes: %s does not exist", git_dir)
            return False
        observer.schedule(_Handler(self.notify), str(git_dir), recursive=False)
        logger.info("Watching %s for branch changes", self._head_path)
        return True

    def notify(self, path: str) -> None:
        if Path(path).absolute() != self._head_path:
            return
        self._loop.call_soon_threadsafe(self._emit)


__all__ = ["BranchWatcher", "FileWatcher", "HEAD_PREFIX", "read_branch"]
