"""
Workspace configuration loading.

A workspace configuration is a YAML document:

    ignored_projects:          # exact project names, never built
      - all
    ignored_patterns:          # gitwildmatch patterns on project names
      - "*-e2e"
    rules:                     # first matching rule wins
      - match: "*-example"
        builds:
          - targets: [generate-example]
            configuration: watch
      - match: ag-charts-community
        builds:
          - targets: [build]          # project defaults to the changed one
          - project: ag-charts-website
            targets: [generate-thumbnails]

A project matching no rule needs no builds.
"""

import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pathspec import PathSpec

from buildqueue.watcher.types import ProjectBuildTargets

logger = logging.getLogger(__name__)

WORKSPACES = ("charts", "grid")


class WorkspaceConfigError(ValueError):
    """Unknown workspace selector or malformed workspace configuration."""


@dataclass(frozen=True)
class BuildRule:
    """Builds required by the projects matching one pattern."""

    pattern: str
    builds: tuple[ProjectBuildTargets, ...]
    spec: PathSpec = field(compare=False, repr=False)

    def matches(self, project: str) -> bool:
        return self.spec.match_file(project)


@dataclass(frozen=True)
class WorkspaceConfig:
    """Per-workspace mapping from changed projects to required builds."""

    name: str
    ignored_projects: frozenset[str] = frozenset()
    ignored_patterns: tuple[str, ...] = ()
    rules: tuple[BuildRule, ...] = ()
    _ignore_spec: PathSpec = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_ignore_spec", PathSpec.from_lines("gitwildmatch", self.ignored_patterns)
        )

    def is_ignored(self, project: str) -> bool:
        return project in self.ignored_projects or self._ignore_spec.match_file(project)

    def get_project_build_targets(self, project: str) -> list[ProjectBuildTargets]:
        for rule in self.rules:
            if rule.matches(project):
                return [
                    ProjectBuildTargets(
                        project=build.project.replace("{project}", project),
                        targets=build.targets,
                        configuration=build.configuration,
                    )
                    for build in rule.builds
                ]
        logger.debug(f"No build rule matches {project}")
        return []


def _as_str_list(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise WorkspaceConfigError(f"{where} must be a list of strings")
    return list(value)


def _parse_build(raw: Any, where: str) -> ProjectBuildTargets:
    if not isinstance(raw, dict):
        raise WorkspaceConfigError(f"{where} must be a mapping")
    targets = _as_str_list(raw.get("targets"), f"{where}.targets")
    if not targets:
        raise WorkspaceConfigError(f"{where}.targets must not be empty")
    configuration = raw.get("configuration")
    if configuration is not None and not isinstance(configuration, str):
        raise WorkspaceConfigError(f"{where}.configuration must be a string")
    project = raw.get("project", "{project}")
    if not isinstance(project, str) or not project:
        raise WorkspaceConfigError(f"{where}.project must be a non-empty string")
    return ProjectBuildTargets(project=project, targets=tuple(targets), configuration=configuration)


def _parse_rule(raw: Any, index: int) -> BuildRule:
    where = f"rules[{index}]"
    if not isinstance(raw, dict) or not isinstance(raw.get("match"), str):
        raise WorkspaceConfigError(f"{where} must be a mapping with a 'match' pattern")
    builds = raw.get("builds") or []
    if not isinstance(builds, list):
        raise WorkspaceConfigError(f"{where}.builds must be a list")
    pattern = raw["match"]
    return BuildRule(
        pattern=pattern,
        builds=tuple(_parse_build(b, f"{where}.builds[{i}]") for i, b in enumerate(builds)),
        spec=PathSpec.from_lines("gitwildmatch", [pattern]),
    )


def parse_workspace(name: str, document: Any) -> WorkspaceConfig:
    """Validate a parsed YAML document and build a WorkspaceConfig."""
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise WorkspaceConfigError(f"workspace {name!r} must be a YAML mapping")

    rules = document.get("rules") or []
    if not isinstance(rules, list):
        raise WorkspaceConfigError("rules must be a list")

    return WorkspaceConfig(
        name=name,
        ignored_projects=frozenset(_as_str_list(document.get("ignored_projects"), "ignored_projects")),
        ignored_patterns=tuple(_as_str_list(document.get("ignored_patterns"), "ignored_patterns")),
        rules=tuple(_parse_rule(rule, i) for i, rule in enumerate(rules)),
    )


def load_workspace_file(path: Union[str, Path], name: Optional[str] = None) -> WorkspaceConfig:
    """Load a workspace configuration from a YAML file."""
    path = Path(path)
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise WorkspaceConfigError(f"Invalid YAML in {path}: {e}") from e
    return parse_workspace(name or path.stem, document)


def load_workspace(name: str) -> WorkspaceConfig:
    """
    Load one of the bundled workspace configurations.

    Raises:
    -------
    WorkspaceConfigError: If `name` is not a known workspace
    """
    if name not in WORKSPACES:
        raise WorkspaceConfigError(
            f"Invalid library to watch. Options: {', '.join(WORKSPACES)}"
        )
    text = resources.files("buildqueue.workspaces").joinpath(f"{name}.yaml").read_text(
        encoding="utf-8"
    )
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkspaceConfigError(f"Invalid YAML in bundled workspace {name!r}: {e}") from e
    return parse_workspace(name, document)
