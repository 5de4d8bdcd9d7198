"""
Pytest configuration and fixtures for buildqueue tests.

Specialized fixtures are organized in the fixtures/ directory:
- fixtures.watcher: FakeWorkspace, RecordingRunner and their fixtures
"""

import logging
import sys

import pytest

# Load fixture modules
pytest_plugins = [
    "fixtures.watcher",
]


@pytest.fixture
def sentinel_path(tmp_path):
    return tmp_path / "build-queue-empty"


@pytest.fixture
def python_command():
    """argv that runs `code` with the current interpreter."""

    def _command(code: str) -> list[str]:
        return [sys.executable, "-c", code]

    return _command


@pytest.fixture(autouse=True)
def reset_buildqueue_logger():
    """Remove handlers installed by setup_logging() so streams don't leak between tests."""
    yield
    logger = logging.getLogger("buildqueue")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
