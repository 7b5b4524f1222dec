"""Protocol definitions for the copy engine's collaborators.

The engine only talks to the operating system through these interfaces,
so tests can substitute doubles that fail, refuse resources or write
short without touching real kernel limits.

All concrete implementations satisfy these protocols structurally (duck typing).
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for the low-level filesystem calls the copier needs."""

    def lstat(self, path: str) -> os.stat_result:
        """Return metadata for ``path`` without following symlinks."""
        ...

    def mkdir(self, path: str, mode: int) -> None:
        """Create a single directory with the given permission bits."""
        ...

    def open(self, path: str, flags: int, mode: int = 0o777) -> int:
        """Open a file descriptor."""
        ...

    def scandir(self, path: str) -> Iterator[os.DirEntry]:
        """Open a directory handle that yields its entries."""
        ...

    def read(self, fd: int, size: int) -> bytes:
        """Read at most ``size`` bytes."""
        ...

    def write(self, fd: int, data: bytes | memoryview) -> int:
        """Write ``data`` and return how many bytes were accepted."""
        ...

    def close(self, fd: int) -> None:
        """Close a file descriptor."""
        ...


@runtime_checkable
class TaskLauncher(Protocol):
    """Protocol for starting detached units of work.

    Implementations raise ``TaskCapacityError`` when the system refuses to
    create another task right now; any other exception is permanent.
    """

    def launch(self, target: Callable[[], None], name: str) -> None:
        """Start ``target`` concurrently without waiting for it.

        Args:
            target: Callable to run.
            name: Label for the task, used in thread names.
        """
        ...

    def shutdown(self) -> None:
        """Release launcher resources once all work has finished."""
        ...
