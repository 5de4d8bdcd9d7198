"""
Tests for QueueSettings defaults, validation and environment overrides.
"""

from pathlib import Path

import pytest

from buildqueue.settings import QueueSettings


def test_defaults():
    settings = QueueSettings()

    assert settings.quiet_period == 1.0
    assert settings.batch_limit == 25
    assert settings.project_echo_limit == 5
    assert settings.fast_respawn_threshold == 0.5
    assert settings.max_fast_respawns == 5
    assert settings.restart_delay == 1.0
    assert settings.nx_command == ("nx",)
    assert settings.sentinel_path == Path(".build-queue-empty")


def test_from_env_without_overrides_uses_defaults():
    assert QueueSettings.from_env({}) == QueueSettings()


def test_from_env_reads_overrides():
    settings = QueueSettings.from_env(
        {
            "BUILDQUEUE_QUIET_PERIOD_MS": "250",
            "BUILDQUEUE_BATCH_LIMIT": "10",
            "BUILDQUEUE_PROJECT_ECHO_LIMIT": "3",
            "BUILDQUEUE_FAST_RESPAWN_MS": "750",
            "BUILDQUEUE_MAX_FAST_RESPAWNS": "2",
            "BUILDQUEUE_RESTART_DELAY_MS": "0",
            "BUILDQUEUE_NX": "npx nx",
            "BUILDQUEUE_NX_ARGS": "--skip-nx-cache --verbose",
            "BUILDQUEUE_SENTINEL": "/tmp/queue-empty",
        }
    )

    assert settings.quiet_period == 0.25
    assert settings.batch_limit == 10
    assert settings.project_echo_limit == 3
    assert settings.fast_respawn_threshold == 0.75
    assert settings.max_fast_respawns == 2
    assert settings.restart_delay == 0.0
    assert settings.nx_command == ("npx", "nx")
    assert settings.nx_args == ("--skip-nx-cache", "--verbose")
    assert settings.sentinel_path == Path("/tmp/queue-empty")


def test_from_env_ignores_empty_values():
    assert QueueSettings.from_env({"BUILDQUEUE_BATCH_LIMIT": ""}).batch_limit == 25


def test_from_env_rejects_non_numbers():
    with pytest.raises(ValueError, match="BUILDQUEUE_QUIET_PERIOD_MS"):
        QueueSettings.from_env({"BUILDQUEUE_QUIET_PERIOD_MS": "soon"})


@pytest.mark.parametrize("value", ["2.7", "10.0", "ten"])
def test_from_env_rejects_non_integer_limits(value):
    """Test: Limits are whole numbers; fractional values are not truncated."""
    with pytest.raises(ValueError, match="BUILDQUEUE_BATCH_LIMIT must be an integer"):
        QueueSettings.from_env({"BUILDQUEUE_BATCH_LIMIT": value})


@pytest.mark.parametrize(
    "overrides",
    [
        {"quiet_period": 0},
        {"fast_respawn_threshold": -1},
        {"restart_delay": -0.1},
        {"batch_limit": 0},
        {"max_fast_respawns": 0},
        {"nx_command": ()},
    ],
)
def test_invalid_values_raise(overrides):
    with pytest.raises(ValueError):
        QueueSettings(**overrides)
