"""Concurrent recursive copy engine.

``CopyEngine.copy_path`` is what every task runs: it classifies a source
path and copies it as a directory or a regular file. Directories hand each
of their entries to a new task, so the tree is copied with one task per
entry and no task ever waits for its children.
"""

from __future__ import annotations

import logging
import os
import stat
import time
from collections.abc import Callable

from copytool.config import CopySettings
from copytool.dispatch import PoolLauncher, TaskDispatcher, TaskTracker, ThreadLauncher
from copytool.filesystem import RealFileSystem, RetryingOpener, copy_content, describe_error
from copytool.paths import root_pair
from copytool.protocols import FileSystem, TaskLauncher
from copytool.stats import CopyStats, StatsSnapshot
from copytool.types import FileKind, PathPair
from copytool.walker import DirectoryWalker

logger = logging.getLogger(__name__)

SOURCE_FLAGS = os.O_RDONLY
DEST_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL


class CopyEngine:
    """Copies a source tree to a destination path.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(
        self,
        filesystem: FileSystem,
        opener: RetryingOpener,
        dispatcher: TaskDispatcher,
        settings: CopySettings,
        stats: CopyStats,
    ) -> None:
        """Initialize the engine with required dependencies.

        Args:
            filesystem: Filesystem abstraction.
            opener: Opener that waits out descriptor exhaustion.
            dispatcher: Starts one task per directory entry.
            settings: Tunables for the run.
            stats: Counters updated by every task.
        """
        self.fs = filesystem
        self.opener = opener
        self.dispatcher = dispatcher
        self.walker = DirectoryWalker(dispatcher)
        self.settings = settings
        self.stats = stats

    @classmethod
    def create(
        cls,
        settings: CopySettings | None = None,
        filesystem: FileSystem | None = None,
        launcher: TaskLauncher | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> CopyEngine:
        """Factory method for production instantiation.

        Args:
            settings: Run settings (defaults if not provided).
            filesystem: Optional filesystem abstraction.
            launcher: Optional task launcher. Defaults to a thread per
                entry, or a bounded pool when ``settings.max_tasks`` is set.
            sleep: Sleep function used by both retry loops.

        Returns:
            Configured CopyEngine instance.
        """
        settings = settings or CopySettings()
        filesystem = filesystem or RealFileSystem()
        if launcher is None:
            launcher = (
                PoolLauncher(settings.max_tasks) if settings.max_tasks else ThreadLauncher()
            )
        stats = CopyStats()
        dispatcher = TaskDispatcher(
            launcher=launcher,
            tracker=TaskTracker(),
            stats=stats,
            retry_interval=settings.retry_interval,
            sleep=sleep,
        )
        opener = RetryingOpener(filesystem, retry_interval=settings.retry_interval, sleep=sleep)
        return cls(
            filesystem=filesystem,
            opener=opener,
            dispatcher=dispatcher,
            settings=settings,
            stats=stats,
        )

    def run(self, source: str, destination: str) -> StatsSnapshot | None:
        """Copy ``source`` to ``destination``.

        The root is copied on the calling thread. Descendants run as
        detached tasks; unless ``settings.wait`` is off, this call returns
        only after all of them have finished.

        Args:
            source: Path to copy.
            destination: Path to create.

        Returns:
            Counter values at return time, or None if the root pair could
            not be built and nothing was attempted.
        """
        pair = root_pair(source, destination)
        if pair is None:
            return None

        self.copy_path(pair)

        if self.settings.wait:
            self.wait()
            self.dispatcher.launcher.shutdown()
        return self.stats.snapshot()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every dispatched task has finished.

        Returns:
            False if ``timeout`` expired first.
        """
        return self.dispatcher.tracker.wait(timeout)

    def copy_path(self, pair: PathPair) -> None:
        """Classify one path and copy it.

        This is the body of every task. Errors are logged against the
        implicated path and never propagate.

        Args:
            pair: Pair owned by the calling task.
        """
        try:
            info = self.fs.lstat(pair.source)
        except OSError as e:
            logger.error("%s: %s", pair.source, describe_error(e))
            self.stats.record_error()
            return

        kind = FileKind.from_mode(info.st_mode)
        mode = stat.S_IMODE(info.st_mode)
        if kind is FileKind.DIRECTORY:
            self.copy_directory(pair, mode)
        elif kind is FileKind.REGULAR_FILE:
            self.copy_regular_file(pair, mode)
        else:
            logger.debug("%s: not a directory or regular file, skipping", pair.source)
            self.stats.record_skip()

    def copy_directory(self, pair: PathPair, mode: int) -> None:
        """Create the destination directory and dispatch its entries.

        An existing destination directory is reported and left untouched;
        its contents are not merged.
        """
        try:
            self.fs.mkdir(pair.destination, mode)
        except OSError as e:
            logger.error("%s: %s", pair.destination, describe_error(e))
            self.stats.record_error()
            return
        self.stats.record_directory()

        entries = self.opener.open_directory(pair.source)
        if entries is None:
            self.stats.record_error()
            return

        try:
            result = self.walker.traverse(entries, pair, self.copy_path)
        finally:
            self._close_directory(entries, pair.source)

        errors = result.dropped + (0 if result.completed else 1)
        if errors:
            self.stats.record_error(errors)

    def copy_regular_file(self, pair: PathPair, mode: int) -> None:
        """Copy one regular file into a newly created destination file.

        The destination is opened exclusively, so an existing file is never
        overwritten.
        """
        src_fd = self.opener.open_file(pair.source, SOURCE_FLAGS, mode)
        if src_fd is None:
            self.stats.record_error()
            return

        dest_fd = self.opener.open_file(pair.destination, DEST_FLAGS, mode)
        if dest_fd is None:
            self.stats.record_error()
            self._close_file(src_fd, pair.source)
            return

        copied = copy_content(self.fs, src_fd, dest_fd, pair, self.settings.chunk_size)
        if copied is None:
            self.stats.record_error()
        else:
            self.stats.record_file(copied)

        self._close_file(src_fd, pair.source)
        self._close_file(dest_fd, pair.destination)

    def _close_file(self, fd: int, path: str) -> None:
        try:
            self.fs.close(fd)
        except OSError as e:
            logger.error("%s: %s", path, describe_error(e))
            self.stats.record_error()

    def _close_directory(self, entries, path: str) -> None:
        close = getattr(entries, "close", None)
        if close is None:
            return
        try:
            close()
        except OSError as e:
            logger.error("%s: %s", path, describe_error(e))
            self.stats.record_error()
