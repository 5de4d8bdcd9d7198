"""
Child process primitives.

- ChildProcessRegistry: every child spawned here is tracked while it runs so
  that shutdown can terminate whatever is still alive.
- run_process(): spawn, wait, and return a ProcessResult (never raises for
  spawn errors or non-zero exits).
- open_line_stream(): spawn with a piped stdout and iterate its decoded lines.
"""

import asyncio
import contextlib
import logging
import os
from dataclasses import dataclass
from typing import AsyncIterator, Iterator, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

# Longest stdout line open_line_stream() accepts before the read fails.
LINE_LIMIT = 1024 * 1024

# Seconds a child gets to exit after SIGTERM before it is killed.
TERMINATE_TIMEOUT = 5.0


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one child process run."""

    argv: tuple[str, ...]
    returncode: Optional[int]
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    def describe(self) -> str:
        if self.error is not None:
            return f"{type(self.error).__name__}: {self.error}"
        return f"exit code {self.returncode}"


class ChildProcessRegistry:
    """Set of live child processes owned by this watcher."""

    def __init__(self) -> None:
        self._children: set[asyncio.subprocess.Process] = set()

    def __len__(self) -> int:
        return len(self._children)

    def __contains__(self, process: object) -> bool:
        return process in self._children

    @contextlib.contextmanager
    def track(self, process: asyncio.subprocess.Process) -> Iterator[asyncio.subprocess.Process]:
        """Track `process` until the block exits, however it exits."""
        self._children.add(process)
        try:
            yield process
        finally:
            self._children.discard(process)

    def terminate_all(self) -> int:
        """Send SIGTERM to every live tracked child and forget them all."""
        terminated = 0
        for child in list(self._children):
            if child.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    child.terminate()
                    terminated += 1
        self._children.clear()
        if terminated:
            logger.debug(f"Terminated {terminated} child process(es)")
        return terminated


async def _terminate(
    process: asyncio.subprocess.Process, timeout: float = TERMINATE_TIMEOUT
) -> None:
    """SIGTERM `process` and wait for it; SIGKILL it if it outlives `timeout`."""
    if process.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Process {process.pid} ignored SIGTERM, killing it")
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()


async def run_process(
    argv: Sequence[str],
    registry: ChildProcessRegistry,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> ProcessResult:
    """
    Run a child with inherited stdin/stdout/stderr and wait for it.

    Spawn errors (missing executable, permissions) are folded into the
    result. If the caller is cancelled the child is terminated first.
    """
    argv = tuple(argv)
    try:
        process = await asyncio.create_subprocess_exec(
            *argv, env=dict(os.environ if env is None else env)
        )
    except OSError as e:
        logger.debug(f"Failed to spawn {argv[0]}: {e}")
        return ProcessResult(argv=argv, returncode=None, error=e)

    with registry.track(process):
        try:
            returncode = await process.wait()
        except asyncio.CancelledError:
            await _terminate(process)
            raise
    return ProcessResult(argv=argv, returncode=returncode)


class LineStream:
    """Decoded stdout lines of a running child (see open_line_stream)."""

    def __init__(self, process: asyncio.subprocess.Process, encoding: str = "utf-8") -> None:
        self.process = process
        self._encoding = encoding

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode

    async def __aiter__(self) -> AsyncIterator[str]:
        assert self.process.stdout is not None
        async for raw in self.process.stdout:
            yield raw.decode(self._encoding, errors="replace").rstrip("\r\n")
        await self.process.wait()


@contextlib.asynccontextmanager
async def open_line_stream(
    argv: Sequence[str],
    registry: ChildProcessRegistry,
    *,
    limit: int = LINE_LIMIT,
) -> AsyncIterator[LineStream]:
    """
    Spawn `argv` with stdout piped and yield a LineStream over it.

    Raises OSError if the process cannot be spawned. Iterating raises
    ValueError once a line grows past `limit` bytes. On leaving the block
    the child is terminated if it is still running.
    """
    process = await asyncio.create_subprocess_exec(
        *argv, stdout=asyncio.subprocess.PIPE, limit=limit
    )
    with registry.track(process):
        try:
            yield LineStream(process)
        finally:
            await _terminate(process)
