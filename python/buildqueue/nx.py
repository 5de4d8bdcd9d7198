"""nx command lines used by the watcher and the build runner."""

import logging
from typing import Optional, Sequence

from buildqueue.logging_config import SUCCESS
from buildqueue.processes import ChildProcessRegistry, ProcessResult, run_process
from buildqueue.settings import QueueSettings

logger = logging.getLogger(__name__)

# nx substitutes the variable itself when running the echo command
WATCH_ARGS = ("watch", "--all", "--", "echo", "${NX_PROJECT_NAME}")


class BuildFailedError(RuntimeError):
    """An `nx run-many` invocation exited non-zero or could not be spawned."""

    def __init__(self, result: ProcessResult) -> None:
        super().__init__(result.describe())
        self.result = result


def watch_command(settings: QueueSettings) -> list[str]:
    """`nx watch` printing each changed project's name on its own line."""
    return [*settings.nx_command, *settings.nx_args, *WATCH_ARGS]


def run_many_command(
    settings: QueueSettings,
    target: str,
    configuration: Optional[str],
    projects: Sequence[str],
) -> list[str]:
    args = [*settings.nx_args, "run-many", "-t", target]
    if configuration is not None:
        args += ["-c", configuration]
    args += ["-p", *projects]
    return [*settings.nx_command, *args]


class NxBuildRunner:
    """Runs `nx run-many` for one batch, inheriting the console."""

    def __init__(self, settings: QueueSettings, registry: ChildProcessRegistry) -> None:
        self._settings = settings
        self._registry = registry

    async def __call__(
        self, target: str, configuration: Optional[str], projects: Sequence[str]
    ) -> ProcessResult:
        """
        Build `projects` for `target` (and `configuration`, if given).

        Raises:
        -------
        BuildFailedError: non-zero exit or spawn error
        """
        argv = run_many_command(self._settings, target, configuration, projects)
        logger.log(SUCCESS, f"Executing: {' '.join(argv)}")
        result = await run_process(argv, self._registry)
        if not result.ok:
            raise BuildFailedError(result)
        return result
