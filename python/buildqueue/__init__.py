"""
buildqueue - batched nx builds for a live development workspace.

Watches the projects of a monorepo through `nx watch`, collapses bursts of
changes into `nx run-many` invocations grouped by target and configuration,
runs at most one build at a time, and touches a marker file whenever the
build queue drains so other processes (live reload, docs servers) can react.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
