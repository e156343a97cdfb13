from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Literal, Optional, Protocol, Sequence

from .scheduler import TimerHandle

SessionPhase = Literal["AWAITING_START", "RUNNING", "ENDING", "CONCLUDED", "CANCELLED"]
SessionStatus = Literal["STARTED", "ENDED", "FAILED_TO_START", "SPAWN_ERROR"]

ACTIVE_PHASES: tuple[SessionPhase, ...] = ("AWAITING_START", "RUNNING", "ENDING")
FAILURE_STATUSES: tuple[SessionStatus, ...] = ("FAILED_TO_START", "SPAWN_ERROR")


class ProcessHandle(Protocol):
    pid: int

    def poll(self) -> Optional[int]:
        ...


@dataclass(frozen=True)
class SupervisorConfig:
    poll_interval_ms: int = 2500
    start_timeout_ticks: int = 10
    end_debounce_ticks: int = 2
    ceiling_seconds: int = 40 * 60
    query_timeout_ms: int = 1000
    max_query_failures: int = 5


@dataclass(frozen=True)
class ProcessEntry:
    pid: int
    name: str


@dataclass(frozen=True)
class LaunchRequest:
    target_id: str
    command: Sequence[str]
    process_match_name: str
    display_name: str = ""

    def __post_init__(self) -> None:
        command = tuple(self.command)
        if not command or any(not str(tok) for tok in command):
            raise ValueError(f"launch command for {self.target_id!r} is empty")
        match = self.process_match_name.strip()
        if not match:
            raise ValueError(f"process match name for {self.target_id!r} is empty")
        object.__setattr__(self, "command", command)
        object.__setattr__(self, "process_match_name", match)
        if not self.display_name:
            object.__setattr__(self, "display_name", self.target_id)


@dataclass(eq=False)
class LaunchSession:
    request: LaunchRequest
    session_id: int
    cancelled: bool = False
    saw_running: bool = False
    not_running_samples: int = 0
    query_failures: int = 0
    ticks: int = 0
    phase: SessionPhase = "AWAITING_START"
    status: Optional[SessionStatus] = None
    detail: Optional[str] = None
    reconciled: bool = False
    handle: Optional[ProcessHandle] = None
    poll_timer: Optional[TimerHandle] = None
    ceiling_timer: Optional[TimerHandle] = None
    created_at: float = field(default_factory=time.monotonic)

    @property
    def active(self) -> bool:
        return not self.cancelled and self.phase in ACTIVE_PHASES

    @property
    def concluded(self) -> bool:
        return self.phase == "CONCLUDED"
