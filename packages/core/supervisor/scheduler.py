from __future__ import annotations

from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """One-shot timers on the launcher's event loop.

    Callbacks must run on the same thread that owns the supervisor.
    """

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        ...
