"""Application context for dependency injection.

This module separates object creation from object use, so the CLI command
can be tested with a prepared engine instead of a real one.
"""

from __future__ import annotations

from dataclasses import dataclass

from copytool.config import CopySettings
from copytool.engine import CopyEngine
from copytool.filesystem import RealFileSystem
from copytool.protocols import FileSystem


@dataclass
class AppContext:
    """Container for application dependencies.

    Provides a single injection point for everything the CLI uses.
    """

    settings: CopySettings
    engine: CopyEngine
    filesystem: FileSystem


def create_context(settings: CopySettings | None = None) -> AppContext:
    """Factory for application dependencies.

    Creates all services with proper wiring. Use this in production code.
    For tests, construct AppContext directly with test doubles.

    Args:
        settings: Run settings (read from the environment if not provided).

    Returns:
        Configured AppContext with all dependencies.
    """
    settings = settings or CopySettings.from_env()
    filesystem = RealFileSystem()
    engine = CopyEngine.create(settings=settings, filesystem=filesystem)

    return AppContext(settings=settings, engine=engine, filesystem=filesystem)
