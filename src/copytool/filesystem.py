"""Filesystem access for the copy engine.

RealFileSystem wraps the os-level calls so tests can replace them.
RetryingOpener waits out descriptor exhaustion instead of failing, and
copy_content moves the bytes of one regular file.
"""

from __future__ import annotations

import errno
import logging
import os
import time
from collections.abc import Callable, Iterator

from copytool.protocols import FileSystem
from copytool.types import PathPair

logger = logging.getLogger(__name__)

RETRY_SECONDS = 5.0
BUF_SIZE = 4096

# errno values meaning the process or system descriptor table is full
DESCRIPTOR_EXHAUSTED = frozenset({errno.EMFILE, errno.ENFILE})


def describe_error(e: OSError) -> str:
    """Return the human-readable reason of an OSError."""
    return e.strerror or str(e)


class RealFileSystem:
    """Production filesystem implementation.

    Wraps the os module descriptor-level calls.
    Satisfies the FileSystem protocol structurally.
    """

    def lstat(self, path: str) -> os.stat_result:
        """Return metadata for a path without following symlinks."""
        return os.lstat(path)

    def mkdir(self, path: str, mode: int) -> None:
        """Create a directory."""
        os.mkdir(path, mode)

    def open(self, path: str, flags: int, mode: int = 0o777) -> int:
        """Open a file descriptor."""
        return os.open(path, flags, mode)

    def scandir(self, path: str) -> Iterator[os.DirEntry]:
        """Open a directory for enumeration."""
        return os.scandir(path)

    def read(self, fd: int, size: int) -> bytes:
        """Read from a file descriptor."""
        return os.read(fd, size)

    def write(self, fd: int, data: bytes | memoryview) -> int:
        """Write to a file descriptor."""
        return os.write(fd, data)

    def close(self, fd: int) -> None:
        """Close a file descriptor."""
        os.close(fd)


class RetryingOpener:
    """Opens files and directories, waiting while descriptors are exhausted.

    Descriptor exhaustion (EMFILE, ENFILE) is retried forever with a fixed
    pause. Every other error is reported against the path and the caller
    gets None back.
    """

    def __init__(
        self,
        filesystem: FileSystem,
        retry_interval: float = RETRY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the opener.

        Args:
            filesystem: Filesystem abstraction used for the open calls.
            retry_interval: Seconds to wait between attempts.
            sleep: Sleep function (injectable for tests).
        """
        self.fs = filesystem
        self.retry_interval = retry_interval
        self._sleep = sleep

    def open_file(self, path: str, flags: int, mode: int = 0o777) -> int | None:
        """Open a file descriptor, retrying on descriptor exhaustion.

        Args:
            path: File to open.
            flags: ``os.O_*`` flags.
            mode: Permission bits used when the file is created.

        Returns:
            The descriptor, or None if the open failed for another reason.
        """
        return self._open_with_retry(path, lambda: self.fs.open(path, flags, mode))

    def open_directory(self, path: str) -> Iterator[os.DirEntry] | None:
        """Open a directory handle, retrying on descriptor exhaustion.

        Returns:
            An entry iterator (close it when done), or None on failure.
        """
        return self._open_with_retry(path, lambda: self.fs.scandir(path))

    def _open_with_retry(self, path, opener):
        while True:
            try:
                return opener()
            except OSError as e:
                if e.errno not in DESCRIPTOR_EXHAUSTED:
                    logger.error("%s: %s", path, describe_error(e))
                    return None
                logger.debug(
                    "%s: descriptor table exhausted, retrying in %.1fs", path, self.retry_interval
                )
            self._sleep(self.retry_interval)


def copy_content(
    fs: FileSystem,
    src_fd: int,
    dest_fd: int,
    pair: PathPair,
    chunk_size: int = BUF_SIZE,
) -> int | None:
    """Copy everything readable from ``src_fd`` into ``dest_fd``.

    Each chunk is written in a loop because a single write may accept fewer
    bytes than offered. Bytes already written are kept if a later read or
    write fails.

    Args:
        fs: Filesystem abstraction providing read and write.
        src_fd: Descriptor opened for reading.
        dest_fd: Descriptor opened for writing.
        pair: Paths the descriptors belong to, used in error reports.
        chunk_size: Bytes requested per read.

    Returns:
        Number of bytes copied, or None if copying stopped on an error.
    """
    total = 0
    while True:
        try:
            chunk = fs.read(src_fd, chunk_size)
        except OSError as e:
            logger.error("%s: %s", pair.source, describe_error(e))
            return None
        if not chunk:
            return total

        view = memoryview(chunk)
        offset = 0
        while offset < len(view):
            try:
                offset += fs.write(dest_fd, view[offset:])
            except OSError as e:
                logger.error("%s: %s", pair.destination, describe_error(e))
                return None
        total += offset
