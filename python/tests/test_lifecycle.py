"""
End-to-end tests for run_workspace() with an nx stand-in.

The fake nx prints changed project names for `watch` and records its
arguments for `run-many`.
"""

import asyncio
import sys
import textwrap

import pytest

from buildqueue.lifecycle import run_workspace
from buildqueue.processes import ChildProcessRegistry
from buildqueue.settings import QueueSettings
from buildqueue.watcher import RespawnStormError

FAKE_NX = textwrap.dedent(
    """
    import sys
    import time

    if sys.argv[1] == "watch":
        for project in ["lib-a", "all", "lib-b", "lib-a"]:
            print(project, flush=True)
        time.sleep(30)
    elif sys.argv[1] == "run-many":
        with open({calls!r}, "a") as f:
            f.write(" ".join(sys.argv[1:]) + "\\n")
    """
)


@pytest.fixture
def fake_nx(tmp_path):
    calls = tmp_path / "calls.txt"
    script = tmp_path / "fake_nx.py"
    script.write_text(FAKE_NX.replace("{calls!r}", repr(str(calls))))
    return script, calls


@pytest.mark.asyncio
async def test_run_workspace_batches_and_signals_drain(tmp_path, fake_nx, make_workspace):
    """Test: Changes from the watch process are built once and the marker is touched."""
    script, calls = fake_nx
    sentinel = tmp_path / "build-queue-empty"
    settings = QueueSettings(
        quiet_period=0.2,
        nx_command=(sys.executable, str(script)),
        sentinel_path=sentinel,
    )
    registry = ChildProcessRegistry()

    task = asyncio.create_task(
        run_workspace(make_workspace(ignored={"all"}), settings, registry)
    )
    for _ in range(100):
        await asyncio.sleep(0.1)
        if sentinel.exists():
            break

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert sentinel.exists()
    assert calls.read_text().splitlines() == ["run-many -t build -p lib-a lib-b"]
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_run_workspace_stops_on_respawn_storm(make_workspace):
    settings = QueueSettings(
        nx_command=(sys.executable, "-c", "pass"),
        fast_respawn_threshold=30.0,
        restart_delay=0.0,
    )

    with pytest.raises(RespawnStormError):
        await asyncio.wait_for(run_workspace(make_workspace(), settings), timeout=30)
