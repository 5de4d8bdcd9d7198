"""
Build queue type definitions and collaborator protocol.

This module defines the core types shared by the supervisor and scheduler:
- BuildTask: one unit of required work (project, configuration, target)
- Batch: a homogeneous group of tasks executed by one build runner invocation
- ProjectBuildTargets: one entry returned by a workspace configuration
- WorkspaceConfigProtocol: what a per-workspace configuration must provide
"""

from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional, Protocol, Sequence


class BuildTask(NamedTuple):
    """A single (project, configuration, target) that needs building."""

    project: str
    configuration: Optional[str]
    target: str


class ProjectBuildTargets(NamedTuple):
    """A project plus the ordered targets (and optional configuration) to build."""

    project: str
    targets: Sequence[str]
    configuration: Optional[str] = None


@dataclass(frozen=True)
class Batch:
    """
    Tasks extracted from the head of the task buffer.

    All projects share one target and configuration. Projects are distinct
    and kept in the order they were first buffered.
    """

    target: str
    configuration: Optional[str]
    projects: tuple[str, ...]

    def describe(self, echo_limit: int) -> str:
        """Project names for status lines, truncated after `echo_limit` names."""
        message = " ".join(self.projects[:echo_limit])
        if len(self.projects) > echo_limit:
            message += f" (+{len(self.projects) - echo_limit} targets)"
        return message


class WorkspaceConfigProtocol(Protocol):
    """
    Per-workspace configuration consumed by the watcher.

    Maps a changed project name to the builds it requires, and names the
    projects whose changes are never built.
    """

    ignored_projects: frozenset[str]

    def is_ignored(self, project: str) -> bool:
        """True if changes to `project` must be dropped."""
        ...

    def get_project_build_targets(self, project: str) -> Iterable[ProjectBuildTargets]:
        """Builds required when `project` changes (possibly none)."""
        ...
