"""
Build-queue-empty marker file.

Other processes (a live-reload server, a website dev server) watch this
file's modification time to learn that every queued build has finished.
Its content is irrelevant.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class SentinelFile:
    """Marker whose mtime is bumped each time the build queue drains."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    async def mark_drained(self) -> None:
        """
        Set the marker's mtime to now, creating it empty if it is missing.

        Raises:
        -------
        OSError: any I/O failure other than the file being absent
        """
        await asyncio.to_thread(self._touch)
        logger.debug(f"Touched {self.path}")

    def _touch(self) -> None:
        try:
            os.utime(self.path, None)
        except FileNotFoundError:
            # Append mode: never truncates a file created concurrently
            with open(self.path, "a"):
                pass
