"""
Respawn storm detection for the watch process.

The watch process is restarted whenever it exits. A session that ends
shortly after it started counts as a fast respawn; too many of those in a
row means something is broken (typically the nx daemon) and restarting
again would only spin.

States:
    STABLE    last session ran at least the threshold
    FLAPPING  consecutive fast respawns, count <= max
    FATAL     count exceeded max; the watcher must stop
"""

import time
from enum import Enum
from typing import Callable, Optional


class GuardState(Enum):
    STABLE = "stable"
    FLAPPING = "flapping"
    FATAL = "fatal"


class RespawnStormError(RuntimeError):
    """The watch process keeps exiting right after it starts."""

    def __init__(self, consecutive: int) -> None:
        super().__init__(f"Watch process respawned {consecutive} times in quick succession")
        self.consecutive = consecutive


RESPAWN_DIAGNOSTIC = """Repeated respawn detected!

    The Nx Daemon maybe erroring, try restarting it to resolve with either:
    - `nx daemon --stop`
    - `yarn`

    Or alternatively view its logs at:
    - .nx/cache/d/daemon.log
"""


class RespawnGuard:
    """
    Counts consecutive fast watch sessions.

    Call session_started() when a watch process is spawned and
    record_exit() when it ends. The clock is injectable so the state
    machine can be driven without real time passing.
    """

    def __init__(
        self,
        threshold: float,
        max_consecutive: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.threshold = threshold
        self.max_consecutive = max_consecutive
        self._clock = clock
        self._started_at: Optional[float] = None
        self.consecutive = 0

    @property
    def state(self) -> GuardState:
        if self.consecutive > self.max_consecutive:
            return GuardState.FATAL
        if self.consecutive > 0:
            return GuardState.FLAPPING
        return GuardState.STABLE

    def session_started(self) -> None:
        self._started_at = self._clock()

    def record_exit(self) -> GuardState:
        """Update the counter for a session that just ended and return the new state."""
        if self._started_at is None:
            raise RuntimeError("record_exit() called before session_started()")

        elapsed = self._clock() - self._started_at
        self._started_at = None
        if elapsed < self.threshold:
            self.consecutive += 1
        else:
            self.consecutive = 0
        return self.state

    def check(self) -> None:
        """Raise RespawnStormError once the guard is FATAL."""
        if self.state is GuardState.FATAL:
            raise RespawnStormError(self.consecutive)
