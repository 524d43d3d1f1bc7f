"""Async child-process boundary for the test runner."""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence


class RunnerError(RuntimeError):
    """Base class for runner process errors."""


class RunnerNotFoundError(RunnerError):
    """Raised when the runner executable cannot be located."""


@dataclass(slots=True)
class ExitStatus:
    """Holds the outcome of a runner invocation.

    ``returncode`` is None when the process never started; ``error`` then
    carries the launch failure.
    """

    args: tuple[str, ...]
    returncode: int | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    @property
    def started(self) -> bool:
        return self.error is None


class ProcessLauncher:
    """Start runner processes with the daemon's terminal attached.

    Children get a piped stdin (so console lines can be forwarded) and
    inherit stdout and stderr. They run in their own session, so a Ctrl-C
    typed at the terminal reaches only the daemon, which forwards it.
    """

    def __init__(self, *, env: Mapping[str, str] | None = None, new_session: bool = True) -> None:
        self._env = dict(env) if env is not None else None
        self._new_session = new_session

    @staticmethod
    def _resolve_executable(name: str) -> str:
        if os.sep in name:
            candidate = Path(name)
            if candidate.exists() and candidate.is_file():
                return str(candidate)
            raise RunnerNotFoundError(f"Runner executable not found at {candidate}")

        binary = shutil.which(name)
        if binary is None:
            raise RunnerNotFoundError(f"Runner executable {name!r} not found on PATH")
        return binary

    async def spawn(self, argv: Sequence[str]) -> asyncio.subprocess.Process:
        """Launch ``argv`` interactively.

        Raises :class:`RunnerNotFoundError` or :class:`OSError` when the
        process cannot be started.
        """

        executable = self._resolve_executable(argv[0])
        return await asyncio.create_subprocess_exec(
            executable,
            *argv[1:],
            stdin=asyncio.subprocess.PIPE,
            stdout=None,
            stderr=None,
            env=self._env,
            start_new_session=self._new_session,
        )

    async def run(self, argv: Sequence[str]) -> ExitStatus:
        """Run ``argv`` to completion with its output discarded.

        Launch failures are returned in the status instead of raised.
        """

        args = tuple(argv)
        try:
            executable = self._resolve_executable(args[0])
            process = await asyncio.create_subprocess_exec(
                executable,
                *args[1:],
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                env=self._env,
            )
        except (RunnerError, OSError) as exc:
            return ExitStatus(args=args, returncode=None, error=str(exc))
        returncode = await process.wait()
        return ExitStatus(args=args, returncode=returncode)


__all__ = ["ExitStatus", "ProcessLauncher", "RunnerError", "RunnerNotFoundError"]
