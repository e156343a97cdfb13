from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence, Union

import pytest

from packages.core.supervisor.errors import QueryError, SpawnError
from packages.core.supervisor.reconciler import Reconciler
from packages.core.supervisor.supervisor import LaunchSupervisor
from packages.core.supervisor.types import LaunchRequest, ProcessEntry

POLL_S = 2.5

BASE_CONFIG = {
    "poll_interval_ms": 2500,
    "start_timeout_ticks": 10,
    "end_debounce_ticks": 2,
    "ceiling_seconds": 2400,
    "query_timeout_ms": 1000,
    "max_query_failures": 5,
}


class _FakeTimer:
    def __init__(self, due: float, seq: int, callback: Callable[[], None]):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock: timers only fire inside advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: List[_FakeTimer] = []

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> _FakeTimer:
        timer = _FakeTimer(self.now + delay_s, len(self.timers), callback)
        self.timers.append(timer)
        return timer

    def pending(self) -> List[_FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.pending() if t.due <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.now = timer.due
            timer.fired = True
            timer.callback()
        self.now = target

    def ticks(self, n: int) -> None:
        for _ in range(n):
            self.advance(POLL_S)


Sample = Union[bool, str]


class ScriptedProcessTable:
    """Yields one scripted sample per query; the last one repeats.

    True  -> the target process is listed
    False -> only unrelated processes are listed
    "error" -> the query raises QueryError
    """

    def __init__(self, samples: Sequence[Sample], process_name: str = "AppX", pid: int = 4242) -> None:
        self.samples = list(samples)
        self.process_name = process_name
        self.pid = pid
        self.queries = 0
        self.on_query: Optional[Callable[[], None]] = None

    def list_processes(self) -> List[ProcessEntry]:
        self.queries += 1
        if self.on_query is not None:
            self.on_query()
        sample = self.samples.pop(0) if len(self.samples) > 1 else self.samples[0]
        if sample == "error":
            raise QueryError("ps timed out")
        entries = [ProcessEntry(pid=1, name="systemd"), ProcessEntry(pid=42, name="Xorg")]
        if sample:
            entries.append(ProcessEntry(pid=self.pid, name=self.process_name))
        return entries


class _DummyHandle:
    def __init__(self, pid: int = 4000, returncode: Optional[int] = None):
        self.pid = pid
        self.returncode = returncode

    def poll(self) -> Optional[int]:
        return self.returncode


class FakeSpawner:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.spawned: List[tuple] = []
        self.terminated: List[List[int]] = []
        self.handles: List[_DummyHandle] = []

    def spawn(self, command: Sequence[str]) -> _DummyHandle:
        if self.fail:
            raise SpawnError(f"executable not found: {command[0]}")
        self.spawned.append(tuple(command))
        handle = _DummyHandle(pid=4000 + len(self.handles))
        self.handles.append(handle)
        return handle

    def terminate(self, pids: Iterable[int], grace_seconds: float = 3.0) -> int:
        pids = list(pids)
        self.terminated.append(pids)
        return len(pids)


class RecordingSurface:
    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def show_primary(self) -> None:
        self.calls.append(("show_primary",))

    def hide_primary(self) -> None:
        self.calls.append(("hide_primary",))

    def set_tile_loading(self, tile_id: str, loading: bool) -> None:
        self.calls.append(("loading", tile_id, loading))

    def notify(self, message: str, severity: str) -> None:
        self.calls.append(("notify", message, severity))

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)


class Harness:
    def __init__(self, samples: Sequence[Sample], spawn_fails: bool = False, config: Optional[dict] = None):
        self.scheduler = FakeScheduler()
        self.table = ScriptedProcessTable(samples)
        self.spawner = FakeSpawner(fail=spawn_fails)
        self.surface = RecordingSurface()
        self.reconciler = Reconciler(self.surface)
        self.conclusions: List[tuple] = []
        original = self.reconciler.conclude

        def counting_conclude(session, status):
            self.conclusions.append((session.session_id, status))
            return original(session, status)

        self.reconciler.conclude = counting_conclude
        self.events: List[dict] = []
        self.supervisor = LaunchSupervisor(
            config={**BASE_CONFIG, **(config or {})},
            scheduler=self.scheduler,
            reconciler=self.reconciler,
            spawner=self.spawner,
            process_table=self.table,
        )
        self.supervisor.on_event(self.events.append)

    def event_types(self) -> List[str]:
        return [e["type"] for e in self.events]


@pytest.fixture
def request_x() -> LaunchRequest:
    return LaunchRequest(target_id="x", command=["appX"], process_match_name="appx", display_name="App X")


@pytest.fixture
def harness_factory():
    return Harness
