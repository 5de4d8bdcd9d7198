"""
Command line entry point.

Usage:
    buildqueue charts
    buildqueue grid

Tunables are read from BUILDQUEUE_* environment variables (see settings.py).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from buildqueue import __version__
from buildqueue.lifecycle import run_workspace
from buildqueue.logging_config import setup_logging
from buildqueue.settings import QueueSettings
from buildqueue.watcher import RespawnStormError
from buildqueue.workspaces import WORKSPACES, load_workspace


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildqueue",
        description=(
            "Watch nx projects and run their builds in debounced batches, "
            "touching a marker file whenever the build queue drains."
        ),
    )
    parser.add_argument(
        "library",
        choices=WORKSPACES,
        help="Workspace configuration to watch",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Also show debug messages (ignored changes, marker updates)",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: .buildqueue/logs)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the watcher; returns the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        settings = QueueSettings.from_env()
        workspace = load_workspace(args.library)
    except ValueError as e:
        print(f"buildqueue: {e}", file=sys.stderr)
        return 2

    logger = setup_logging(
        log_dir=args.log_dir,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    logger.info(f"Watching {workspace.name} projects")

    try:
        asyncio.run(run_workspace(workspace, settings))
    except RespawnStormError:
        return 1
    except (KeyboardInterrupt, asyncio.CancelledError):
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
