"""
Watcher lifecycle - wiring, startup and shutdown.

Handles:
1. Building the scheduler, build runner, sentinel and supervisor for a workspace
2. SIGTERM handling (cancel the main task, like Ctrl+C under asyncio.run)
3. Shutdown: terminate every child process still tracked (nx watch and any
   in-flight nx run-many) on every exit path
"""

import asyncio
import contextlib
import logging
import signal
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from buildqueue.nx import NxBuildRunner, watch_command
from buildqueue.processes import ChildProcessRegistry
from buildqueue.sentinel import SentinelFile
from buildqueue.settings import QueueSettings
from buildqueue.watcher import BuildScheduler, RespawnGuard, WatchSupervisor
from buildqueue.watcher.types import WorkspaceConfigProtocol

logger = logging.getLogger(__name__)


def _install_signal_handlers(task: asyncio.Task) -> None:
    loop = asyncio.get_running_loop()
    # asyncio.run already turns Ctrl+C into cancellation of the main task.
    # add_signal_handler is not available on Windows event loops.
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGTERM, task.cancel)


def _remove_signal_handlers() -> None:
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.remove_signal_handler(signal.SIGTERM)


@asynccontextmanager
async def lifespan(registry: ChildProcessRegistry) -> AsyncIterator[ChildProcessRegistry]:
    """Signal handling around the watcher; children are terminated on exit."""
    task = asyncio.current_task()
    if task is not None:
        _install_signal_handlers(task)
    try:
        yield registry
    finally:
        _remove_signal_handlers()
        count = registry.terminate_all()
        if count:
            logger.info(f"Terminated {count} running nx process(es)")
        logger.info("Build queue watcher stopped")


def create_scheduler(
    workspace: WorkspaceConfigProtocol,
    settings: QueueSettings,
    registry: ChildProcessRegistry,
) -> BuildScheduler:
    return BuildScheduler(
        workspace,
        build_runner=NxBuildRunner(settings, registry),
        sentinel=SentinelFile(settings.sentinel_path),
        quiet_period=settings.quiet_period,
        batch_limit=settings.batch_limit,
        project_echo_limit=settings.project_echo_limit,
    )


def create_supervisor(
    workspace: WorkspaceConfigProtocol,
    scheduler: BuildScheduler,
    settings: QueueSettings,
    registry: ChildProcessRegistry,
) -> WatchSupervisor:
    return WatchSupervisor(
        workspace,
        on_change=scheduler.on_change,
        watch_command=watch_command(settings),
        registry=registry,
        guard=RespawnGuard(
            threshold=settings.fast_respawn_threshold,
            max_consecutive=settings.max_fast_respawns,
        ),
        restart_delay=settings.restart_delay,
    )


async def run_workspace(
    workspace: WorkspaceConfigProtocol,
    settings: QueueSettings,
    registry: Optional[ChildProcessRegistry] = None,
) -> None:
    """
    Watch `workspace` until cancelled or a respawn storm is detected.

    Raises:
    -------
    RespawnStormError: the watch process could not be kept alive
    asyncio.CancelledError: SIGINT/SIGTERM or caller cancellation
    """
    registry = registry if registry is not None else ChildProcessRegistry()
    scheduler = create_scheduler(workspace, settings, registry)
    supervisor = create_supervisor(workspace, scheduler, settings, registry)

    logger.info(
        f"Batching builds with a {settings.quiet_period * 1000:.0f}ms quiet period, "
        f"up to {settings.batch_limit} projects per build"
    )
    logger.info(f"Queue-empty marker: {settings.sentinel_path}")

    async with lifespan(registry):
        try:
            await supervisor.run()
        finally:
            scheduler.close()
