"""Single-flight coordination of test runs."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Sequence

from .categories import ChangeBatch
from .commands import Command, CommandBuilder
from .process import ExitStatus, ProcessLauncher, RunnerError
from .status import StatusPrinter

logger = logging.getLogger(__name__)


class RunCoordinator:
    """Owns the run lock, the running child and the tracked branch.

    At most one child runs at a time. A change batch that arrives while a
    run is in flight is dropped, not queued. A branch change takes the lock
    unconditionally, interrupts the running child and restarts the
    background runner; while it is in progress child exit codes are not
    reported.

    All methods must be called from the event loop thread.
    """

    def __init__(
        self,
        builder: CommandBuilder,
        launcher: ProcessLauncher,
        *,
        status: StatusPrinter | None = None,
        stop_command: Sequence[str] = ("bundle", "exec", "spring", "stop"),
        interrupt_grace: float = 0.1,
        settle_delay: float = 0.5,
        branch: str | None = None,
    ) -> None:
        self._builder = builder
        self._launcher = launcher
        self._status = status or StatusPrinter()
        self._stop_command = tuple(stop_command)
        self._interrupt_grace = interrupt_grace
        self._settle_delay = settle_delay
        self._branch = branch
        self._locked = False
        self._child: asyncio.subprocess.Process | None = None
        self._branch_changes = 0
        self._quit = asyncio.Event()

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def child(self) -> asyncio.subprocess.Process | None:
        return self._child

    @property
    def branch(self) -> str | None:
        return self._branch

    @property
    def branch_changing(self) -> bool:
        return self._branch_changes > 0

    @property
    def quit_requested(self) -> bool:
        return self._quit.is_set()

    def request_quit(self) -> None:
        self._quit.set()

    async def wait_for_quit(self) -> None:
        await self._quit.wait()

    async def on_file_change(self, batch: ChangeBatch) -> ExitStatus | None:
        """Run the first command built from ``batch`` unless a run is in flight.

        Returns the run's exit status, or None when the batch was dropped or
        produced nothing to run.
        """

        if self._locked or self._child is not None:
            logger.debug("Run in progress, dropping change batch %s", batch.files)
            return None

        self._locked = True
        try:
            commands = self._builder.build(batch)
            if not commands:
                return None
            if len(commands) > 1:
                logger.debug(
                    "Running %s only, %d other file(s) skipped",
                    commands[0].file_path,
                    len(commands) - 1,
                )
            return await self._run(commands[0])
        finally:
            if not self.branch_changing:
                self._locked = False

    async def _run(self, command: Command) -> ExitStatus:
        self._status.run_started(command.file_path)
        try:
            process = await self._launcher.spawn(command.argv)
        except (RunnerError, OSError) as exc:
            logger.error("Failed to start %s: %s", command.argv[0], exc)
            self._status.spawn_failed(exc)
            return ExitStatus(args=command.argv, returncode=None, error=str(exc))

        self._child = process
        if self.branch_changing:
            # started while a branch change was already in progress
            self._interrupt_with_backstop(process)
        try:
            returncode = await process.wait()
        finally:
            self._child = None

        self._report_exit(returncode, suppressed=self.branch_changing)
        return ExitStatus(args=command.argv, returncode=returncode)

    def _report_exit(self, returncode: int | None, *, suppressed: bool) -> None:
        if suppressed:
            logger.debug("Child exited with %s during branch change", returncode)
            return
        self._status.run_finished(returncode)

    async def on_branch_change(self, new_branch: str | None) -> bool:
        """Interrupt the current run and restart the background runner.

        Returns False without side effects when ``new_branch`` is the branch
        already tracked.
        """

        if new_branch == self._branch:
            return False

        self._branch_changes += 1
        self._locked = True
        try:
            if self._child is not None:
                self._interrupt_with_backstop(self._child)

            self._status.branch_changed(self._branch, new_branch)
            self._branch = new_branch

            await self.stop_background_runner()
            await asyncio.sleep(self._settle_delay)
        finally:
            self._branch_changes -= 1
            if not self._branch_changes:
                self._locked = False
        return True

    async def stop_background_runner(self) -> ExitStatus:
        self._status.runner_stopping()
        result = await self._launcher.run(self._stop_command)
        if not result.started:
            logger.warning("Could not stop background runner: %s", result.error)
        elif not result.ok:
            logger.warning("Background runner stop exited with %s", result.returncode)
        return result

    def on_interrupt_request(self) -> None:
        """Interrupt the running child, or quit when nothing is running."""

        if self._child is not None:
            self._interrupt(self._child)
        else:
            self.request_quit()

    async def shutdown(self, timeout: float) -> int | None:
        """Stop the running child before the daemon exits.

        The child gets the same interrupt and backstop as on a branch change.
        If it is still alive after ``timeout`` seconds it is killed, so no
        child outlives the daemon. Returns the child's exit code, or None
        when nothing was running.
        """

        child = self._child
        if child is None:
            return None
        self._interrupt_with_backstop(child)
        try:
            return await asyncio.wait_for(child.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Child ignored interrupts for %.1fs, killing it", timeout)
        try:
            child.kill()
        except ProcessLookupError:
            pass
        return await child.wait()

    def forward_input(self, line: str) -> bool:
        """Write ``line`` to the running child's stdin; discard it otherwise."""

        child = self._child
        if child is None or child.stdin is None:
            return False
        try:
            child.stdin.write((line + "\n").encode("utf-8"))
        except (BrokenPipeError, ConnectionResetError) as exc:
            logger.debug("Child stdin closed: %s", exc)
            return False
        return True

    def _interrupt_with_backstop(self, process: asyncio.subprocess.Process) -> None:
        self._interrupt(process)
        loop = asyncio.get_running_loop()
        loop.call_later(self._interrupt_grace, self._interrupt_again, process)

    def _interrupt_again(self, process: asyncio.subprocess.Process) -> None:
        if self._child is process:
            self._interrupt(process)

    @staticmethod
    def _interrupt(process: asyncio.subprocess.Process) -> bool:
        try:
            process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            return False
        return True


__all__ = ["RunCoordinator"]
