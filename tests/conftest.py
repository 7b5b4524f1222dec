"""Shared test fixtures."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from copytool.config import CopySettings
from copytool.console import HANDLER_NAME
from copytool.engine import CopyEngine
from copytool.filesystem import RealFileSystem


class ShortWriteFileSystem(RealFileSystem):
    """Real filesystem whose writes accept only a few bytes at a time."""

    def __init__(self, max_write: int = 3) -> None:
        self.max_write = max_write
        self.write_calls = 0

    def write(self, fd: int, data: bytes | memoryview) -> int:
        self.write_calls += 1
        return os.write(fd, data[: self.max_write])


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """Create ``a/ {x.txt="hi", b/ {y.txt="bye"}}``."""
    root = tmp_path / "a"
    (root / "b").mkdir(parents=True)
    (root / "x.txt").write_text("hi")
    (root / "b" / "y.txt").write_text("bye")
    return root


@pytest.fixture
def short_write_fs() -> ShortWriteFileSystem:
    """Filesystem that forces partial writes."""
    return ShortWriteFileSystem(max_write=3)


@pytest.fixture
def fast_settings() -> CopySettings:
    """Settings that never sleep between retries."""
    return CopySettings(retry_interval=0)


@pytest.fixture
def engine(fast_settings: CopySettings) -> CopyEngine:
    """Create a CopyEngine using the factory method."""
    return CopyEngine.create(settings=fast_settings)


@pytest.fixture
def mock_filesystem() -> MagicMock:
    """Create a mock FileSystem for testing.

    The mock tracks all filesystem operations without touching real files.
    """
    fs = MagicMock()
    fs.read.return_value = b""
    return fs


@pytest.fixture
def mock_sleep() -> MagicMock:
    """Sleep stand-in that records requested pauses."""
    return MagicMock()



@pytest.fixture(autouse=True)
def reset_package_logging() -> Iterator[None]:
    """Drop the stderr handler a test installed so it does not outlive the stream."""
    yield
    package_logger = logging.getLogger("copytool")
    for handler in list(package_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
