"""
Tunable parameters for the build queue watcher.

Every value has a default matching day-to-day use in the monorepo and can be
overridden from the environment:

    BUILDQUEUE_QUIET_PERIOD_MS     quiet period before a batch is built
    BUILDQUEUE_BATCH_LIMIT         max distinct projects per build invocation
    BUILDQUEUE_PROJECT_ECHO_LIMIT  max project names shown per status line
    BUILDQUEUE_FAST_RESPAWN_MS     watch sessions shorter than this are "fast"
    BUILDQUEUE_MAX_FAST_RESPAWNS   fatal once consecutive fast restarts exceed this
    BUILDQUEUE_RESTART_DELAY_MS    pause between watch sessions
    BUILDQUEUE_NX                  nx executable (default: nx)
    BUILDQUEUE_NX_ARGS             extra args placed before every nx sub-command
    BUILDQUEUE_SENTINEL            marker file touched when the queue drains
"""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

ENV_PREFIX = "BUILDQUEUE_"


@dataclass(frozen=True)
class QueueSettings:
    """Timing, batching and command-line settings. Durations are in seconds."""

    quiet_period: float = 1.0
    batch_limit: int = 25
    project_echo_limit: int = 5
    fast_respawn_threshold: float = 0.5
    max_fast_respawns: int = 5
    restart_delay: float = 1.0
    nx_command: tuple[str, ...] = ("nx",)
    nx_args: tuple[str, ...] = ()
    sentinel_path: Path = field(default_factory=lambda: Path(".build-queue-empty"))

    def __post_init__(self) -> None:
        for name in ("quiet_period", "fast_respawn_threshold"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.restart_delay < 0:
            raise ValueError("restart_delay must not be negative")
        for name in ("batch_limit", "project_echo_limit", "max_fast_respawns"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        if not self.nx_command:
            raise ValueError("nx_command must not be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "QueueSettings":
        """Build settings from BUILDQUEUE_* environment variables."""
        env = os.environ if environ is None else environ
        overrides: dict = {}

        def read(key: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + key)
            return value if value not in (None, "") else None

        def read_ms(key: str) -> Optional[float]:
            value = read(key)
            return None if value is None else _parse_number(key, value) / 1000

        def read_int(key: str) -> Optional[int]:
            value = read(key)
            return None if value is None else _parse_int(key, value)

        for attr, value in (
            ("quiet_period", read_ms("QUIET_PERIOD_MS")),
            ("fast_respawn_threshold", read_ms("FAST_RESPAWN_MS")),
            ("restart_delay", read_ms("RESTART_DELAY_MS")),
            ("batch_limit", read_int("BATCH_LIMIT")),
            ("project_echo_limit", read_int("PROJECT_ECHO_LIMIT")),
            ("max_fast_respawns", read_int("MAX_FAST_RESPAWNS")),
        ):
            if value is not None:
                overrides[attr] = value

        nx = read("NX")
        if nx is not None:
            overrides["nx_command"] = tuple(shlex.split(nx))
        nx_args = read("NX_ARGS")
        if nx_args is not None:
            overrides["nx_args"] = tuple(shlex.split(nx_args))
        sentinel = read("SENTINEL")
        if sentinel is not None:
            overrides["sentinel_path"] = Path(sentinel)

        return cls(**overrides)


def _parse_number(key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{key} must be a number, got {value!r}") from None


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{key} must be an integer, got {value!r}") from None
