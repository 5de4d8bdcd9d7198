"""
Logging configuration for the build queue watcher.

Two destinations:
- File: .buildqueue/logs/buildqueue-YYYY-MM-DD.log (new file each day)
- Console: colored status lines on stdout ("*** message"), the same stream the
  nx build runner writes to, so status lines interleave with build output.

Status classes map onto logging levels:
    info    -> INFO     (no color)
    success -> SUCCESS  (green, custom level 25)
    warning -> WARNING  (yellow)
    error   -> ERROR    (red, CRITICAL too)
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

RED = "\x1b[;31m"
GREEN = "\x1b[;32m"
YELLOW = "\x1b[;33m"
RESET = "\x1b[m"

LEVEL_COLORS = {
    SUCCESS: GREEN,
    logging.WARNING: YELLOW,
    logging.ERROR: RED,
    logging.CRITICAL: RED,
}


class ConsoleFormatter(logging.Formatter):
    """Render records as `*** <color>message<reset>` status lines."""

    def __init__(self, use_color: bool = True) -> None:
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno) if self.use_color else None
        if color:
            return f"*** {color}{message}{RESET}"
        return f"*** {message}"


def _wants_color(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    backup_count: int = 30,  # Keep 30 days of logs
    console: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Set up logging for the watcher with daily file rotation.

    Safe to call more than once: handlers that are already installed are
    not duplicated.

    Args:
        log_dir: Directory for log files (default: .buildqueue/logs)
        level: Logging level (default: INFO)
        backup_count: Number of daily backup files to keep (default: 30 days)
        console: If True, also emit colored status lines to the console
        stream: Console stream (default: sys.stdout)

    Returns:
        Configured logger instance
    """
    if log_dir is None:
        log_dir = Path.cwd() / ".buildqueue" / "logs"

    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("buildqueue")
    logger.setLevel(level)

    has_file_handler = any(
        isinstance(h, logging.handlers.TimedRotatingFileHandler)
        for h in logger.handlers
    )
    has_console_handler = any(
        isinstance(h.formatter, ConsoleFormatter) for h in logger.handlers
    )

    if has_file_handler and (not console or has_console_handler):
        return logger

    if not has_file_handler:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        log_file = log_dir / f"buildqueue-{datetime.now().strftime('%Y-%m-%d')}.log"

        class FlushingHandler(logging.handlers.TimedRotatingFileHandler):
            """Handler that flushes after every emit for immediate visibility."""

            def emit(self, record):
                super().emit(record)
                self.flush()

        file_handler = FlushingHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.debug(f"Log file: {log_file}")
        logger.debug(f"Log level: {logging.getLevelName(level)}")

    if console and not has_console_handler:
        console_stream = stream if stream is not None else sys.stdout
        console_handler = logging.StreamHandler(console_stream)
        console_handler.setFormatter(ConsoleFormatter(use_color=_wants_color(console_stream)))
        logger.addHandler(console_handler)

    return logger
