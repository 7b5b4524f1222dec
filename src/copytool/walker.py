"""Directory enumeration that fans each entry out to its own task."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator

from copytool.dispatch import TaskDispatcher
from copytool.filesystem import describe_error
from copytool.paths import join_paths
from copytool.types import PathPair, WalkResult

logger = logging.getLogger(__name__)

PSEUDO_ENTRIES = frozenset({".", ".."})


class DirectoryWalker:
    """Hands every entry of a directory to the dispatcher.

    The walker never descends itself. It returns as soon as the directory
    has been enumerated, however long the dispatched subtrees take.
    """

    def __init__(self, dispatcher: TaskDispatcher) -> None:
        self.dispatcher = dispatcher

    def traverse(
        self,
        entries: Iterator[os.DirEntry],
        parent: PathPair,
        work: Callable[[PathPair], None],
    ) -> WalkResult:
        """Dispatch ``work`` for every entry of an open directory.

        Args:
            entries: Open directory handle yielding entries with a ``name``.
            parent: Pair of the directory being enumerated.
            work: Callable each child pair is processed with.

        Returns:
            Counts of dispatched and dropped children, and whether
            enumeration reached the end.
        """
        result = WalkResult()
        iterator = iter(entries)
        while True:
            try:
                entry = next(iterator, None)
            except OSError as e:
                logger.error("%s: %s", parent.source, describe_error(e))
                result.completed = False
                break
            if entry is None:
                break

            if entry.name in PSEUDO_ENTRIES:
                continue

            child = join_paths(parent, entry.name)
            if child is None:
                result.dropped += 1
                continue

            if self.dispatcher.dispatch(child, work):
                result.dispatched += 1
            else:
                result.dropped += 1
        return result
