"""
Quiet-period timer for the build scheduler.

DebounceTimer holds at most one pending timer. Arming it again cancels the
pending one, so the callback only fires once nothing has re-armed it for a
full quiet period.

Example:
--------
change a at t=0ms    } arm (deadline 100ms)
change b at t=10ms   } re-arm (deadline 110ms)
change c at t=20ms   } re-arm (deadline 120ms)
-> callback runs once at t=120ms
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class DebounceTimer:
    """Single-slot timer whose callback is a coroutine function."""

    def __init__(
        self,
        delay: float,
        callback: Callable[[], Awaitable[None]],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """
        Initialize the timer (not armed).

        Args:
        -----
        delay: Quiet period in seconds
        callback: Coroutine function started as a task when the timer fires
        loop: Event loop to schedule on (default: the running loop at arm time)

        Raises:
        -------
        ValueError: If delay is not positive
        """
        if delay <= 0:
            raise ValueError("delay must be positive")

        self._delay = delay
        self._callback = callback
        self._loop = loop
        self._timer_handle: Optional[asyncio.TimerHandle] = None
        # Strong references to callback tasks until they finish
        self._tasks: set[asyncio.Task] = set()

    @property
    def delay(self) -> float:
        return self._delay

    def is_armed(self) -> bool:
        """True while a timer is pending."""
        return self._timer_handle is not None

    def arm(self) -> None:
        """Cancel any pending timer and start a new one."""
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._timer_handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        """Cancel the pending timer, if any."""
        if self._timer_handle:
            self._timer_handle.cancel()
            self._timer_handle = None

    def _fire(self) -> None:
        self._timer_handle = None
        task = asyncio.ensure_future(self._callback())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for callback tasks that are already running."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
