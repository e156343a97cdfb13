from __future__ import annotations

import time
from typing import Iterable, List, Protocol

import psutil

from .errors import QueryError
from .types import ProcessEntry


class ProcessTable(Protocol):
    def list_processes(self) -> List[ProcessEntry]:
        ...


class PsutilProcessTable:
    """Process table snapshot via psutil, bounded by a per-call deadline."""

    def __init__(self, timeout_s: float = 1.0) -> None:
        self._timeout_s = timeout_s

    def list_processes(self) -> List[ProcessEntry]:
        deadline = time.monotonic() + self._timeout_s
        entries: List[ProcessEntry] = []
        try:
            for p in psutil.process_iter(attrs=["pid", "name", "status"]):
                if time.monotonic() > deadline:
                    raise QueryError(f"process table query exceeded {self._timeout_s:.2f}s")
                try:
                    # An exited but unreaped process keeps its name
                    if p.info.get("status") == psutil.STATUS_ZOMBIE:
                        continue
                    n = p.info.get("name")
                    if n:
                        entries.append(ProcessEntry(pid=int(p.info.get("pid") or p.pid), name=str(n)))
                except (psutil.NoSuchProcess, psutil.AccessDenied):
                    continue
        except psutil.Error as e:
            raise QueryError(f"process table query failed: {e}") from e
        return entries


def matching_pids(snapshot: Iterable[ProcessEntry], match_name: str) -> List[int]:
    needle = match_name.strip().lower()
    if not needle:
        return []
    return [e.pid for e in snapshot if needle in e.name.lower()]
