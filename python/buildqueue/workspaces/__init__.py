"""
Bundled workspace configurations.

Each supported library of the monorepo has a YAML file here describing which
nx builds a change to each project requires.
"""

from buildqueue.workspaces.loader import (
    WORKSPACES,
    BuildRule,
    WorkspaceConfig,
    WorkspaceConfigError,
    load_workspace,
    load_workspace_file,
    parse_workspace,
)

__all__ = [
    "WORKSPACES",
    "BuildRule",
    "WorkspaceConfig",
    "WorkspaceConfigError",
    "load_workspace",
    "load_workspace_file",
    "parse_workspace",
]
