"""Interactive console: meta-commands and input forwarding."""

from __future__ import annotations

import logging
import sys
import threading
from typing import Callable, TextIO

from .coordinator import RunCoordinator
from .status import StatusPrinter

logger = logging.getLogger(__name__)

QUIT_COMMANDS = frozenset({"quit", "exit"})


class Console:
    """Dispatches console lines.

    Lines starting with the sentinel are meta-commands; everything else is
    forwarded verbatim to the running child.
    """

    def __init__(
        self,
        coordinator: RunCoordinator,
        *,
        sentinel: str = ":",
        status: StatusPrinter | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._sentinel = sentinel
        self._status = status or StatusPrinter()

    def handle_line(self, line: str) -> None:
        if line.startswith(self._sentinel):
            self.handle_command(line[len(self._sentinel):])
            return
        if not self._coordinator.forward_input(line):
            logger.debug("No run in progress, discarding input line")

    def handle_command(self, command: str) -> None:
        name = command.strip()
        if name in QUIT_COMMANDS:
            self._coordinator.on_interrupt_request()
        else:
            self._status.unknown_command(name)

    def cancel(self) -> None:
        self._coordinator.on_interrupt_request()


class StdinReader:
    """Reads lines on a daemon thread and hands each to ``emit``.

    ``emit`` is called from the reader thread and must be thread-safe.
    """

    def __init__(self, emit: Callable[[str], None], stream: TextIO | None = None) -> None:
        self._emit = emit
        self._stream = stream
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._read, name="binks-stdin", daemon=True)
        self._thread.start()

    def _read(self) -> None:
        stream = self._stream or sys.stdin
        for line in stream:
            self._emit(line.rstrip("\r\n"))
        logger.debug("Console input closed")


__all__ = ["Console", "QUIT_COMMANDS", "StdinReader"]
