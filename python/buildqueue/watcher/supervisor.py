"""
Watch process supervisor.

Keeps `nx watch` running for the lifetime of the watcher. Each stdout line is
one changed project name; names that are not ignored are handed to the
scheduler. Whenever the watch process exits (for any reason, including exit
code 0) it is restarted after a short delay, unless the RespawnGuard decides
the restarts have turned into a storm.
"""

import asyncio
import logging
from typing import Callable, NoReturn, Optional, Sequence

from buildqueue.logging_config import SUCCESS
from buildqueue.processes import ChildProcessRegistry, open_line_stream
from buildqueue.watcher.respawn import (
    RESPAWN_DIAGNOSTIC,
    GuardState,
    RespawnGuard,
)
from buildqueue.watcher.types import WorkspaceConfigProtocol

logger = logging.getLogger(__name__)


class WatchSupervisor:
    """
    Restart loop around the watch process.

    Constructor Args:
    -----------------
    workspace: Supplies the ignored projects
    on_change: Called with each non-ignored changed project name
    watch_command: argv of the watch process
    registry: Tracks the spawned watch process for shutdown
    guard: Respawn storm detection
    restart_delay: Seconds to wait between watch sessions
    """

    def __init__(
        self,
        workspace: WorkspaceConfigProtocol,
        on_change: Callable[[str], None],
        watch_command: Sequence[str],
        registry: ChildProcessRegistry,
        guard: RespawnGuard,
        restart_delay: float = 1.0,
    ) -> None:
        if not watch_command:
            raise ValueError("watch_command must not be empty")

        self._workspace = workspace
        self._on_change = on_change
        self._watch_command = list(watch_command)
        self._registry = registry
        self._guard = guard
        self._restart_delay = restart_delay
        self.sessions = 0

    def handle_line(self, line: str) -> None:
        """Forward one line of watch output to the scheduler."""
        project = line.strip()
        if not project:
            return
        if self._workspace.is_ignored(project):
            logger.debug(f"Ignoring change in {project}")
            return
        self._on_change(project)

    async def run_session(self) -> Optional[int]:
        """
        Run the watch process once, until it exits.

        Returns:
        --------
        The exit code, or None if the process could not be spawned or its
        output could not be read.
        """
        self.sessions += 1
        self._guard.session_started()
        logger.log(SUCCESS, "Starting watch...")
        try:
            async with open_line_stream(self._watch_command, self._registry) as stream:
                try:
                    async for line in stream:
                        self.handle_line(line)
                except ValueError as e:
                    # StreamReader reports an over-long line as ValueError
                    logger.error(f"Unreadable watch output, stopping watch process: {e}")
                    return None
                return stream.returncode
        except OSError as e:
            logger.error(f"Failed to start watch process {self._watch_command[0]}: {e}")
            return None

    async def run(self) -> NoReturn:
        """
        Watch forever.

        Raises:
        -------
        RespawnStormError: the watch process keeps exiting right after it starts
        """
        while True:
            returncode = await self.run_session()

            if self._guard.record_exit() is GuardState.FATAL:
                logger.critical(RESPAWN_DIAGNOSTIC)
                self._guard.check()

            if returncode is not None:
                logger.warning(f"Watch process exited with code {returncode}, restarting...")
            await asyncio.sleep(self._restart_delay)
