"""Event loop wiring and command-line entry point for Binks."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from typing import Callable, Coroutine, Iterable, TextIO

from pydantic import ValidationError
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from . import __version__
from .categories import CategoryLoadError, ChangeBatch, WatchCategory, load_categories
from .commands import CommandBuilder
from .config import BinksSettings, get_settings, resolve_categories_path
from .console import Console, StdinReader
from .coordinator import RunCoordinator
from .process import ProcessLauncher
from .status import StatusPrinter
from .watchers import BranchWatcher, FileWatcher, read_branch

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FileChanged:
    batch: ChangeBatch


@dataclass(frozen=True, slots=True)
class BranchChanged:
    pass


@dataclass(frozen=True, slots=True)
class ConsoleLine:
    line: str


@dataclass(frozen=True, slots=True)
class CancelRequested:
    pass


Event = FileChanged | BranchChanged | ConsoleLine | CancelRequested


def configure_logging(level: str) -> None:
    """Configure root logging for the Binks daemon."""

    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


class Daemon:
    """Feeds watcher, branch and console events through a single queue.

    The consumer never awaits a run itself: file and branch events start
    tasks, so the coordinator sees every event as it arrives and can drop
    batches while a run is in flight.
    """

    def __init__(
        self,
        settings: BinksSettings,
        *,
        categories: Iterable[WatchCategory],
        status: StatusPrinter | None = None,
        launcher: ProcessLauncher | None = None,
        headless: bool = False,
        clear: bool = True,
        observer_factory: Callable[[], BaseObserver] = Observer,
        stdin: TextIO | None = None,
    ) -> None:
        self._settings = settings
        self._categories = tuple(categories)
        self._status = status or StatusPrinter()
        self._headless = headless
        self._clear = clear
        self._observer_factory = observer_factory
        self._stdin = stdin

        builder = CommandBuilder(settings.wrapper_args, status=self._status)
        self._coordinator = RunCoordinator(
            builder,
            launcher or ProcessLauncher(),
            status=self._status,
            stop_command=settings.stop_args,
            interrupt_grace=settings.interrupt_grace_seconds,
            settle_delay=settings.settle_seconds,
            branch=read_branch(settings.head_path, missing_ok=True),
        )
        self._console = Console(self._coordinator, sentinel=settings.console_sentinel, status=self._status)

        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[Event] | None = None
        self._branch_watcher: BranchWatcher | None = None
        self._tasks: set[asyncio.Task] = set()
        self._failure: BaseException | None = None

    @property
    def coordinator(self) -> RunCoordinator:
        return self._coordinator

    @property
    def console(self) -> Console:
        return self._console

    def post(self, event: Event) -> None:
        """Queue ``event``; must be called on the loop thread."""

        if self._queue is None:
            raise RuntimeError("Daemon is not running")
        self._queue.put_nowait(event)

    def post_threadsafe(self, event: Event) -> None:
        if self._loop is None:
            raise RuntimeError("Daemon is not running")
        self._loop.call_soon_threadsafe(self.post, event)

    def dispatch(self, event: Event) -> None:
        if isinstance(event, FileChanged):
            self._spawn(self._coordinator.on_file_change(event.batch))
        elif isinstance(event, BranchChanged):
            if self._branch_watcher is None:
                return
            self._spawn(self._coordinator.on_branch_change(self._branch_watcher.read()))
        elif isinstance(event, ConsoleLine):
            self._console.handle_line(event.line)
        elif isinstance(event, CancelRequested):
            self._console.cancel()
        else:
            raise TypeError(f"Unknown event {event!r}")

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            event = await self._queue.get()
            self.dispatch(event)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error("Unhandled error, shutting down: %s", exc, exc_info=exc)
        if self._failure is None:
            self._failure = exc
        self._coordinator.request_quit()

    async def run(self) -> int:
        """Run until quit is requested; return the process exit code."""

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()

        if self._clear:
            self._status.clear_screen()
        self._status.banner(__version__)

        await self._coordinator.stop_background_runner()

        observer = self._observer_factory()
        watched = self._schedule_watchers(observer)
        observer.start()
        self._status.watching(watched)

        self._spawn(self._consume())
        if not self._headless:
            StdinReader(lambda line: self.post_threadsafe(ConsoleLine(line)), self._stdin).start()
        signal_installed = self._install_cancel_handler()

        try:
            await self._coordinator.wait_for_quit()
        finally:
            if signal_installed:
                self._loop.remove_signal_handler(signal.SIGINT)
            await self._coordinator.shutdown(self._settings.shutdown_timeout_seconds)
            observer.stop()
            observer.join()
            for task in list(self._tasks):
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)

        return 1 if self._failure is not None else 0

    def _schedule_watchers(self, observer: BaseObserver) -> list[str]:
        assert self._loop is not None
        watched: list[str] = []
        for category in self._categories:
            watcher = FileWatcher(
                category,
                lambda batch: self.post(FileChanged(batch)),
                loop=self._loop,
                debounce=self._settings.debounce_seconds,
            )
            if watcher.schedule(observer):
                watched.append(category.root)

        branch_watcher = BranchWatcher(
            self._settings.head_path,
            lambda: self.post(BranchChanged()),
            loop=self._loop,
        )
        if branch_watcher.schedule(observer):
            self._branch_watcher = branch_watcher
        return watched

    def _install_cancel_handler(self) -> bool:
        assert self._loop is not None
        try:
            self._loop.add_signal_handler(signal.SIGINT, self.post, CancelRequested())
        except (NotImplementedError, RuntimeError):
            logger.debug("Cannot install SIGINT handler on this platform")
            return False
        return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="binks",
        description="Re-run feature and spec files through a pre-warmed runner whenever they change.",
    )
    parser.add_argument("--config", default=None, help="YAML file listing the watch categories")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Do not read console input; Ctrl-C still interrupts the current run",
    )
    parser.add_argument("--no-clear", action="store_true", help="Do not clear the terminal on startup")
    parser.add_argument(
        "--log-level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        default=None,
        help="Override BINKS_LOG_LEVEL",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``binks`` command."""

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
        if args.config is not None:
            settings = settings.model_copy(
                update={"categories_path": resolve_categories_path(args.config)}
            )
        categories = load_categories(settings.categories_path)
    except (ValidationError, CategoryLoadError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        raise SystemExit(1)

    configure_logging(args.log_level or settings.log_level)

    daemon = Daemon(settings, categories=categories, headless=args.headless, clear=not args.no_clear)
    exit_code = asyncio.run(daemon.run())
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
