"""
Batched build scheduling.

BuildScheduler owns the task buffer, the quiet-period timer and the
running flag:

1. on_change(project) expands a changed project into BuildTasks through
   the workspace configuration and appends them to the buffer.
2. schedule() (re-)arms the quiet-period timer while the buffer is non-empty.
3. on_timer_fire() takes one homogeneous batch off the buffer and runs the
   build for it. At most one build runs at a time; when it finishes the
   timer is armed again for whatever is left.
4. When a successful build leaves the buffer empty the sentinel file is
   touched.

All state is mutated on the event loop thread only, so no lock is needed.
"""

import logging
from typing import Awaitable, Callable, Optional, Sequence

from buildqueue.logging_config import SUCCESS
from buildqueue.nx import BuildFailedError
from buildqueue.sentinel import SentinelFile
from buildqueue.watcher.debouncer import DebounceTimer
from buildqueue.watcher.types import Batch, BuildTask, WorkspaceConfigProtocol

logger = logging.getLogger(__name__)

BuildRunner = Callable[[str, Optional[str], Sequence[str]], Awaitable[object]]


def extract_batch(buffer: Sequence[BuildTask], limit: int) -> tuple[Batch, list[BuildTask]]:
    """
    Split `buffer` into the next batch and the tasks left for later.

    The batch takes the target and configuration of the head task and
    collects matching projects in buffer order, up to `limit` distinct
    projects. Everything else, including matching tasks beyond the limit,
    stays behind in its original order.

    Raises:
    -------
    ValueError: If buffer is empty
    """
    if not buffer:
        raise ValueError("cannot extract a batch from an empty buffer")

    head = buffer[0]
    projects: dict[str, None] = {}  # insertion-ordered set
    remaining: list[BuildTask] = []
    for task in buffer:
        if (
            len(projects) < limit
            and task.target == head.target
            and task.configuration == head.configuration
        ):
            projects[task.project] = None
        else:
            remaining.append(task)

    batch = Batch(target=head.target, configuration=head.configuration, projects=tuple(projects))
    return batch, remaining


class BuildScheduler:
    """
    Buffers build tasks and runs them in debounced, serialized batches.

    Constructor Args:
    -----------------
    workspace: Maps changed projects to the builds they need
    build_runner: Async callable (target, configuration, projects) that
        raises BuildFailedError when the build fails
    sentinel: Marker touched whenever the queue drains (optional)
    quiet_period: Seconds without changes before a batch is built
    batch_limit: Max distinct projects per build invocation
    project_echo_limit: Max project names shown in status lines
    """

    def __init__(
        self,
        workspace: WorkspaceConfigProtocol,
        build_runner: BuildRunner,
        sentinel: Optional[SentinelFile] = None,
        quiet_period: float = 1.0,
        batch_limit: int = 25,
        project_echo_limit: int = 5,
    ) -> None:
        if batch_limit < 1:
            raise ValueError("batch_limit must be at least 1")

        self._workspace = workspace
        self._build_runner = build_runner
        self._sentinel = sentinel
        self._batch_limit = batch_limit
        self._project_echo_limit = project_echo_limit

        self._buffer: list[BuildTask] = []
        self._running = False
        self._timer = DebounceTimer(quiet_period, self.on_timer_fire)

    @property
    def pending(self) -> tuple[BuildTask, ...]:
        """Buffered tasks, oldest first."""
        return tuple(self._buffer)

    def is_running(self) -> bool:
        return self._running

    def is_scheduled(self) -> bool:
        return self._timer.is_armed()

    def on_change(self, project: str) -> None:
        """Queue the builds needed because `project` changed."""
        if not project or not project.strip():
            return

        for entry in self._workspace.get_project_build_targets(project):
            for target in entry.targets:
                self._buffer.append(BuildTask(entry.project, entry.configuration, target))

        self.schedule()

    def schedule(self) -> None:
        """Restart the quiet period if anything is buffered."""
        if self._buffer:
            self._timer.arm()

    async def on_timer_fire(self) -> None:
        """Build the next batch, unless a build is already running."""
        if self._running or not self._buffer:
            return
        self._running = True

        batch, self._buffer = extract_batch(self._buffer, self._batch_limit)
        description = batch.describe(self._project_echo_limit)
        try:
            logger.log(SUCCESS, f"Starting build for: {description}")
            await self._build_runner(batch.target, batch.configuration, batch.projects)
            logger.log(SUCCESS, f"Completed build for: {description}")
            logger.log(SUCCESS, f"Build queue has {len(self._buffer)} remaining.")

            if not self._buffer and self._sentinel is not None:
                await self._sentinel.mark_drained()
        except BuildFailedError as e:
            logger.error(f"Build failed for: {description}: {e}")
        except Exception as e:
            # Keep scheduling; the sentinel or runner failed unexpectedly
            logger.error(f"Build failed for: {description}: {e}", exc_info=True)
        finally:
            self._running = False
            self.schedule()

    def close(self) -> None:
        """Cancel the pending timer; buffered tasks are discarded."""
        self._timer.cancel()
        self._buffer.clear()

    async def wait_idle(self) -> None:
        """Wait for a build started by the timer to finish."""
        await self._timer.wait_idle()
