"""Run counters shared by all copy tasks."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time copy of the run counters."""

    directories: int = 0
    files: int = 0
    bytes: int = 0
    skipped: int = 0
    errors: int = 0


class CopyStats:
    """Lock-guarded counters updated from every task.

    Counters are informational only. They are the one place per-entry
    failures are aggregated, and never change the exit status.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._directories = 0
        self._files = 0
        self._bytes = 0
        self._skipped = 0
        self._errors = 0

    def record_directory(self) -> None:
        with self._lock:
            self._directories += 1

    def record_file(self, size: int) -> None:
        with self._lock:
            self._files += 1
            self._bytes += size

    def record_skip(self) -> None:
        with self._lock:
            self._skipped += 1

    def record_error(self, count: int = 1) -> None:
        with self._lock:
            self._errors += count

    def snapshot(self) -> StatsSnapshot:
        """Return the current counter values."""
        with self._lock:
            return StatsSnapshot(
                directories=self._directories,
                files=self._files,
                bytes=self._bytes,
                skipped=self._skipped,
                errors=self._errors,
            )
