"""Watch mode: respawn the runner when files change."""

import asyncio
import logging
import os
import signal
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from watchfiles import Change, PythonFilter, awatch

from mt_utils.config import FAILURES_FILE
from mt_utils.failures import failures_filter, load_failures
from mt_utils.models.options import RunOptions
from mt_utils.resolver import TEST_FILE_PATTERNS

log = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[2J\033[H"


class SourceFilter(PythonFilter):
    """Python sources and lockfiles."""

    def __init__(self) -> None:
        super().__init__(extra_extensions=(".lock",))


def is_test_file(path: str) -> bool:
    """Check a path against the test file naming conventions."""
    return any(Path(path).match(pattern) for pattern in TEST_FILE_PATTERNS)


def child_command() -> Sequence[str]:
    """Command that starts a fresh runner process."""
    return [sys.executable, "-m", "mt_utils"]


@dataclass(kw_only=True)
class Watcher:
    """Supervises one child test run at a time.

    Events arriving while a child is running are dropped.
    """

    options: RunOptions
    entries: Sequence[str] = ()
    root: Path = field(default_factory=Path.cwd)
    _process: asyncio.subprocess.Process | None = field(default=None, init=False)
    _task: asyncio.Task[int] | None = field(default=None, init=False)

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def initial_args(self) -> Sequence[str]:
        """Arguments of the first run: the full options and entries."""
        return [*self.options.to_args(), *self.entries]

    def respawn_args(self, changes: Iterable[tuple[Change, str]]) -> Sequence[str]:
        """Arguments of a run triggered by file changes.

        Previously failing tests take priority over the changed files.
        """
        forwarded = RunOptions(
            seed=self.options.seed,
            slow=self.options.slow,
            hide_slow=self.options.hide_slow,
            no_color=self.options.no_color,
            slow_threshold=self.options.slow_threshold,
        )
        # The child picks its own seed.
        args = list(forwarded.to_args(seed=False))

        failures = load_failures(self.root / FAILURES_FILE)
        if failures:
            return [*args, "--name", failures_filter(failures)]

        changed = sorted(
            {
                os.path.relpath(path, self.root)
                for change, path in changes
                if change != Change.deleted and is_test_file(path)
            }
        )
        return [*args, *changed]

    async def spawn(self, args: Sequence[str]) -> int:
        """Start a child run and wait for it to exit."""
        log.info("Running %s", " ".join(args))
        env = {**os.environ, "MT_RECORD_FAILURES": "1"}
        self._process = await asyncio.create_subprocess_exec(
            *child_command(), *args, cwd=self.root, env=env
        )
        try:
            return await self._process.wait()
        finally:
            self._process = None

    def handle_changes(self, changes: Iterable[tuple[Change, str]]) -> bool:
        """Start a run for a batch of changes unless one is in flight."""
        if self.busy:
            log.debug("Run in progress, dropping changes")
            return False

        if sys.stdout.isatty():
            sys.stdout.write(CLEAR_SCREEN)
            sys.stdout.flush()

        self._task = asyncio.create_task(self.spawn(self.respawn_args(changes)))
        return True

    async def run(self) -> None:
        """Run once, then keep re-running on changes until interrupted."""
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        def handle_signal() -> None:
            log.info("Interrupt received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, handle_signal)

        try:
            self._task = asyncio.create_task(self.spawn(self.initial_args()))
            async for changes in awatch(
                self.root, watch_filter=SourceFilter(), stop_event=stop_event
            ):
                self.handle_changes(changes)
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Forward an interrupt to the running child and wait for it."""
        if self._process is not None and self._process.returncode is None:
            log.info("Stopping child process %d", self._process.pid)
            self._process.send_signal(signal.SIGINT)
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        print("Exiting...")
