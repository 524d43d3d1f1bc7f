"""Human-readable status lines written to the terminal."""

from __future__ import annotations

import shutil
import sys
from typing import Iterable, TextIO

PROJECT_URL = "https://github.com/calvinwalzel/binks"

BANNER = r"""
  .______    __  .__   __.  __  ___      _______.
  |   _  \  |  | |  \ |  | |  |/  /     /       |
  |  |_)  | |  | |   \|  | |  '  /     |   (----`
  |   _  <  |  | |  . `  | |    <       \   \
  |  |_)  | |  | |  |\   | |  .  \  .----)   |
  |______/  |__| |__| \__| |__|\__\ |_______/
"""


class StatusPrinter:
    """Writes one short line per state transition."""

    def __init__(self, stream: TextIO | None = None, *, width: int | None = None) -> None:
        self._stream = stream
        self._width = width

    @property
    def stream(self) -> TextIO:
        # resolved lazily so capsys and redirected stdout are honoured
        return self._stream or sys.stdout

    def _write(self, *lines: str) -> None:
        for line in lines:
            self.stream.write(line + "\n")
        self.stream.flush()

    def separator(self) -> str:
        width = self._width or shutil.get_terminal_size(fallback=(80, 24)).columns
        return "-" * width

    def clear_screen(self) -> None:
        self.stream.write("\033c")
        self.stream.flush()

    def banner(self, version: str) -> None:
        self._write(BANNER.rstrip("\n"), "", f"  Version {version} - {PROJECT_URL}", "")

    def watching(self, roots: Iterable[str]) -> None:
        self._write(f"  👀   Watching for file changes in {' & '.join(roots)}", "")

    def run_started(self, file: str) -> None:
        self._write(self.separator(), f"  ⚠️   {file}", self.separator(), "")

    def run_finished(self, returncode: int | None) -> None:
        self._write(f"  🏁  exit code {returncode}", "")

    def spawn_failed(self, error: BaseException) -> None:
        self._write(f"  💥  {error}")

    def focus_set(self, file: str) -> None:
        self._write(f"  🎯   Focus set on {file}")

    def focus_removed(self, file: str) -> None:
        self._write(self.separator(), f"  ⏩   Focus removed {file}", self.separator())

    def branch_changed(self, old: str | None, new: str | None) -> None:
        self._write(f"  🔁   Branch change detected, from {old} to {new}")

    def runner_stopping(self) -> None:
        self._write("  🧽   Stopping background runner...")

    def unknown_command(self, command: str) -> None:
        self._write(f"  ❓  Unknown command: {command}")


__all__ = ["BANNER", "PROJECT_URL", "StatusPrinter"]
