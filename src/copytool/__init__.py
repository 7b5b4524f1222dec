"""Concurrent recursive directory copier."""

__version__ = "0.1.0"

# Export protocol interfaces for type hints and dependency injection
from copytool.protocols import FileSystem, TaskLauncher

__all__ = [
    "__version__",
    "FileSystem",
    "TaskLauncher",
]
