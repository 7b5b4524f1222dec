"""Building source/destination path pairs."""

from __future__ import annotations

import logging
import os

from copytool.types import PathPair

logger = logging.getLogger(__name__)


def join_paths(parent: PathPair | None, name: str) -> PathPair | None:
    """Build the pair for a child entry of ``parent``.

    The separator is left out when ``name`` is empty, which yields a copy of
    the parent pair (used for the root).

    Args:
        parent: Pair of the containing directory.
        name: Entry name inside the directory.

    Returns:
        The child pair, or None if it could not be built. Callers skip the
        entry in that case.
    """
    if parent is None or not parent.source or not parent.destination:
        logger.error("join_paths: invalid source and/or destination path")
        return None

    delimiter = os.sep if name else ""
    try:
        return PathPair(
            source=f"{parent.source}{delimiter}{name}",
            destination=f"{parent.destination}{delimiter}{name}",
        )
    except (ValueError, MemoryError) as e:
        logger.error("join_paths: %s", e)
        return None


def root_pair(source: str, destination: str) -> PathPair | None:
    """Build the pair for the top of a copy.

    Returns:
        The root pair, or None if either path is empty.
    """
    try:
        parent = PathPair(source=source, destination=destination)
    except ValueError as e:
        logger.error("Invalid root paths: %s", e)
        return None
    return join_paths(parent, "")
