"""Turn change batches into runner commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .categories import ChangeBatch, WatchCategory
from .focus import FileKind, classify, has_focus
from .paths import resolve_path
from .status import StatusPrinter

logger = logging.getLogger(__name__)

# used when a category names no runner of its own
KIND_RUNNERS: dict[FileKind, tuple[str, tuple[str, ...]]] = {
    FileKind.ACCEPTANCE: ("cucumber", ("--color", "--no-source")),
    FileKind.EXAMPLE: ("rspec", ()),
}


@dataclass(frozen=True, slots=True)
class Command:
    """A single runner invocation for one changed file."""

    file_path: str
    base: str
    args: tuple[str, ...]

    @property
    def argv(self) -> tuple[str, ...]:
        return (self.base, *self.args)


class CommandBuilder:
    """Builds runner commands and tracks which file, if any, holds focus.

    Only one file is focused at a time: focusing a new file replaces the
    previous one. Saving the focused file without its marker clears the
    focus and yields no command for that file.
    """

    def __init__(
        self,
        wrapper: Sequence[str] = ("bundle", "exec", "spring"),
        *,
        status: StatusPrinter | None = None,
        cwd: str | None = None,
    ) -> None:
        if not wrapper:
            raise ValueError("wrapper must name an executable")
        self._base = wrapper[0]
        self._prefix = tuple(wrapper[1:])
        self._status = status or StatusPrinter()
        self._cwd = cwd
        self._focus: str | None = None

    @property
    def focus(self) -> str | None:
        """The file currently holding focus, as reported by its watcher."""

        return self._focus

    def build(self, batch: ChangeBatch) -> list[Command]:
        """Return the run-worthy commands for ``batch``, in batch order."""

        commands = (self._build_one(file, batch.category) for file in batch.files)
        return [command for command in commands if command is not None]

    def _build_one(self, file: str, category: WatchCategory) -> Command | None:
        kind = classify(file)
        if category.runner is not None:
            runner, flags = category.runner, category.flags
        elif kind is not None:
            runner, flags = KIND_RUNNERS[kind]
        else:
            logger.warning("No runner for %s: set 'runner' on category %s", file, category.name)
            return None

        path = resolve_path(file, category.root, cwd=self._cwd)
        before_path: list[str] = []
        after_flags: list[str] = []
        if has_focus(path):
            if kind is FileKind.ACCEPTANCE:
                after_flags = ["--tags", "@focus", "--fail-fast"]
            else:
                before_path = ["--tag", "focus"]
            self._set_focus(file)
        elif self._focus is not None and self._focus == file:
            self._focus = None
            self._status.focus_removed(file)
            return None

        args = (*self._prefix, runner, *before_path, str(path), *flags, *after_flags)
        return Command(file_path=file, base=self._base, args=args)

    def _set_focus(self, file: str) -> None:
        if self._focus != file:
            self._status.focus_set(file)
        self._focus = file


__all__ = ["Command", "CommandBuilder"]
