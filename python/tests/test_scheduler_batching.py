"""
Tests for batch extraction and change expansion.

These tests focus on:
1. extract_batch(): grouping by (target, configuration), cap, order
2. Batch.describe(): project name truncation for status lines
3. BuildScheduler.on_change(): expansion into BuildTasks
"""

import pytest

from buildqueue.watcher import Batch, BuildScheduler, BuildTask, extract_batch
from buildqueue.watcher.types import ProjectBuildTargets


# ============================================================================
# EXTRACT BATCH
# ============================================================================


def test_extract_batch_groups_matching_tasks():
    """Test: Tasks sharing the head's target+configuration form one batch."""
    buffer = [
        BuildTask("a", None, "build"),
        BuildTask("b", None, "build"),
        BuildTask("c", None, "build"),
    ]

    batch, remaining = extract_batch(buffer, limit=10)

    assert batch == Batch(target="build", configuration=None, projects=("a", "b", "c"))
    assert remaining == []


def test_extract_batch_keeps_other_groups_in_order():
    """Test: Non-matching tasks stay behind in their original relative order."""
    buffer = [
        BuildTask("a", "watch", "build"),
        BuildTask("x", None, "build"),
        BuildTask("b", "watch", "build"),
        BuildTask("y", "watch", "test"),
        BuildTask("z", None, "build"),
    ]

    batch, remaining = extract_batch(buffer, limit=10)

    assert batch.target == "build"
    assert batch.configuration == "watch"
    assert batch.projects == ("a", "b")
    assert remaining == [
        BuildTask("x", None, "build"),
        BuildTask("y", "watch", "test"),
        BuildTask("z", None, "build"),
    ]


def test_extract_batch_configuration_none_differs_from_named():
    """Test: configuration None and a named configuration are separate groups."""
    buffer = [BuildTask("a", None, "build"), BuildTask("b", "production", "build")]

    batch, remaining = extract_batch(buffer, limit=10)

    assert batch.projects == ("a",)
    assert remaining == [BuildTask("b", "production", "build")]


def test_extract_batch_deduplicates_projects():
    """Test: The same project queued twice is built once."""
    buffer = [
        BuildTask("a", None, "build"),
        BuildTask("b", None, "build"),
        BuildTask("a", None, "build"),
    ]

    batch, remaining = extract_batch(buffer, limit=10)

    assert batch.projects == ("a", "b")
    assert remaining == []


def test_extract_batch_respects_limit():
    """Test: Matching tasks beyond the cap stay buffered for the next batch."""
    buffer = [BuildTask(f"p{i}", None, "build") for i in range(12)]

    batch, remaining = extract_batch(buffer, limit=10)

    assert batch.projects == tuple(f"p{i}" for i in range(10))
    assert remaining == [BuildTask("p10", None, "build"), BuildTask("p11", None, "build")]


def test_extract_batch_empty_buffer_raises():
    """Test: An empty buffer has no head task."""
    with pytest.raises(ValueError, match="empty"):
        extract_batch([], limit=10)


# ============================================================================
# BATCH DESCRIPTION
# ============================================================================


def test_batch_describe_short_list():
    batch = Batch(target="build", configuration=None, projects=("a", "b"))
    assert batch.describe(echo_limit=5) == "a b"


def test_batch_describe_truncates():
    """Test: Only the first names are shown, plus a count of the rest."""
    batch = Batch(target="build", configuration=None, projects=tuple("abcdefg"))
    assert batch.describe(echo_limit=3) == "a b c (+4 targets)"


# ============================================================================
# CHANGE EXPANSION
# ============================================================================


@pytest.mark.asyncio
async def test_on_change_appends_one_task_per_target(make_workspace, runner):
    """Test: Each returned target becomes one BuildTask, in order."""
    workspace = make_workspace(
        mapping={
            "core": [
                ProjectBuildTargets("core", ["build", "docs"], "watch"),
                ProjectBuildTargets("website", ["thumbnails"], None),
            ]
        }
    )
    scheduler = BuildScheduler(workspace, runner, quiet_period=5.0)

    scheduler.on_change("core")

    assert scheduler.pending == (
        BuildTask("core", "watch", "build"),
        BuildTask("core", "watch", "docs"),
        BuildTask("website", None, "thumbnails"),
    )
    assert scheduler.is_scheduled()
    scheduler.close()


@pytest.mark.asyncio
async def test_on_change_blank_project_is_noop(workspace, runner):
    """Test: Empty or whitespace identifiers neither buffer nor arm the timer."""
    scheduler = BuildScheduler(workspace, runner, quiet_period=5.0)

    scheduler.on_change("")
    scheduler.on_change("   ")

    assert scheduler.pending == ()
    assert not scheduler.is_scheduled()


@pytest.mark.asyncio
async def test_on_change_without_targets_does_not_arm_timer(make_workspace, runner):
    """Test: A project mapping to no builds leaves an empty buffer unscheduled."""
    workspace = make_workspace(mapping={"docs": []})
    scheduler = BuildScheduler(workspace, runner, quiet_period=5.0)

    scheduler.on_change("docs")

    assert scheduler.pending == ()
    assert not scheduler.is_scheduled()


def test_scheduler_rejects_invalid_limit(workspace, runner):
    with pytest.raises(ValueError):
        BuildScheduler(workspace, runner, batch_limit=0)
