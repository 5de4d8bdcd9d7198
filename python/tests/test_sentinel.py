"""
Tests for the queue-empty marker file.
"""

import os

import pytest

from buildqueue.sentinel import SentinelFile


@pytest.mark.asyncio
async def test_mark_drained_creates_missing_file(sentinel_path):
    """Test: An absent marker is created (empty) rather than treated as an error."""
    await SentinelFile(sentinel_path).mark_drained()

    assert sentinel_path.exists()
    assert sentinel_path.read_bytes() == b""


@pytest.mark.asyncio
async def test_mark_drained_updates_mtime(sentinel_path):
    sentinel_path.write_text("keep me")
    os.utime(sentinel_path, (0, 0))

    await SentinelFile(sentinel_path).mark_drained()

    assert sentinel_path.stat().st_mtime > 0
    assert sentinel_path.read_text() == "keep me"


@pytest.mark.asyncio
async def test_mark_drained_propagates_other_errors(tmp_path):
    """Test: A marker in a missing directory cannot be created and the error propagates."""
    sentinel = SentinelFile(tmp_path / "missing-dir" / "build-queue-empty")

    with pytest.raises(OSError):
        await sentinel.mark_drained()


def test_sentinel_accepts_str_path(tmp_path):
    sentinel = SentinelFile(str(tmp_path / "marker"))
    assert sentinel.path == tmp_path / "marker"
