"""
Build queue watcher: turns `nx watch` output into batched `nx run-many` calls.

Typical usage:
--------------
    from buildqueue.watcher import BuildScheduler, RespawnGuard, WatchSupervisor

    scheduler = BuildScheduler(workspace, build_runner, sentinel, quiet_period=1.0)
    supervisor = WatchSupervisor(
        workspace,
        on_change=scheduler.on_change,
        watch_command=["nx", "watch", "--all", "--", "echo", "${NX_PROJECT_NAME}"],
        registry=registry,
        guard=RespawnGuard(threshold=0.5, max_consecutive=5),
    )
    await supervisor.run()  # only returns by raising RespawnStormError

Flow:
-----
    nx watch stdout line -> WatchSupervisor.handle_line (drops ignored projects)
        -> BuildScheduler.on_change (expands into BuildTasks, re-arms timer)
        -> quiet period elapses -> BuildScheduler.on_timer_fire
        -> one batch per (target, configuration), at most one build at a time
        -> buffer empty after a successful build -> sentinel file touched
"""

from buildqueue.watcher.debouncer import DebounceTimer
from buildqueue.watcher.respawn import GuardState, RespawnGuard, RespawnStormError
from buildqueue.watcher.scheduler import BuildScheduler, extract_batch
from buildqueue.watcher.supervisor import WatchSupervisor
from buildqueue.watcher.types import (
    Batch,
    BuildTask,
    ProjectBuildTargets,
    WorkspaceConfigProtocol,
)

__all__ = [
    "Batch",
    "BuildScheduler",
    "BuildTask",
    "DebounceTimer",
    "GuardState",
    "ProjectBuildTargets",
    "RespawnGuard",
    "RespawnStormError",
    "WatchSupervisor",
    "WorkspaceConfigProtocol",
    "extract_batch",
]
