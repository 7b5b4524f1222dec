"""Shared data types for copytool."""

from __future__ import annotations

import stat
from dataclasses import dataclass
from enum import Enum

__all__ = ["FileKind", "PathPair", "WalkResult"]


@dataclass(frozen=True)
class PathPair:
    """A unit of copy work: one source path and where it goes.

    Attributes:
        source: Path of the entry to copy.
        destination: Path the entry is reproduced at.
    """

    source: str
    destination: str

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not isinstance(self.source, str) or not self.source:
            raise ValueError("source cannot be empty")
        if not isinstance(self.destination, str) or not self.destination:
            raise ValueError("destination cannot be empty")


class FileKind(Enum):
    """Filesystem type of a path, as reported without following symlinks."""

    DIRECTORY = "directory"
    REGULAR_FILE = "file"
    OTHER = "other"

    @classmethod
    def from_mode(cls, mode: int) -> FileKind:
        """Classify an ``st_mode`` value."""
        if stat.S_ISDIR(mode):
            return cls.DIRECTORY
        if stat.S_ISREG(mode):
            return cls.REGULAR_FILE
        return cls.OTHER


@dataclass
class WalkResult:
    """Result of enumerating one directory.

    Attributes:
        dispatched: Children handed off to their own task.
        dropped: Children skipped because their pair could not be built
            or their task could not be started.
        completed: False if enumeration failed before the last entry.
    """

    dispatched: int = 0
    dropped: int = 0
    completed: bool = True
