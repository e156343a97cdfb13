from __future__ import annotations

import itertools
import logging
import time
from typing import Callable, Optional

from .errors import QueryError, SpawnError
from .poller import LivenessPoller
from .process_table import ProcessTable, PsutilProcessTable, matching_pids
from .reconciler import Reconciler
from .scheduler import Scheduler
from .spawner import PopenSpawner, Spawner
from .types import LaunchRequest, LaunchSession, SessionStatus, SupervisorConfig

log = logging.getLogger(__name__)


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime())


class LaunchSupervisor:
    """Launches one external app at a time and brings the launcher back when it ends.

    All methods must be called from the thread that runs the scheduler.
    """

    def __init__(
        self,
        config: dict,
        scheduler: Scheduler,
        reconciler: Reconciler,
        spawner: Optional[Spawner] = None,
        process_table: Optional[ProcessTable] = None,
    ) -> None:
        self._cfg = SupervisorConfig(**config)
        self._reconciler = reconciler
        self._spawner = spawner or PopenSpawner()
        self._table = process_table or PsutilProcessTable(timeout_s=self._cfg.query_timeout_ms / 1000.0)
        self._poller = LivenessPoller(
            scheduler,
            self._table,
            self._cfg,
            on_status=self._on_status,
            on_ceiling=self._on_ceiling,
        )
        self._ids = itertools.count(1)
        self._active: Optional[LaunchSession] = None
        self._last: Optional[LaunchSession] = None
        self._event_cb: Optional[Callable[[dict], None]] = None

    def on_event(self, cb: Callable[[dict], None]) -> None:
        self._event_cb = cb

    def update_config(self, config: dict) -> None:
        # An already armed ceiling timer keeps its original deadline
        self._cfg = SupervisorConfig(**config)
        self._poller.update_config(self._cfg)

    @property
    def active_session(self) -> Optional[LaunchSession]:
        return self._active

    def launch(self, request: LaunchRequest) -> LaunchSession:
        if self._active is not None:
            self.cancel(reason="superseded")

        session = LaunchSession(request=request, session_id=next(self._ids))
        self._active = session
        self._last = session
        log.info("Launching %s: %s", request.target_id, " ".join(request.command))

        try:
            session.handle = self._spawner.spawn(request.command)
        except SpawnError as e:
            log.error("Spawn failed for %s: %s", request.target_id, e)
            session.detail = str(e)
            self._conclude(session, "SPAWN_ERROR")
            return session

        self._emit(session, "APP_LAUNCHED", None)
        self._poller.arm(session)
        return session

    def cancel(self, reason: str = "user") -> Optional[LaunchSession]:
        session = self._active
        if session is None:
            return None
        self._poller.disarm(session)
        session.cancelled = True
        session.phase = "CANCELLED"
        self._active = None
        log.info("Cancelled session %s for %s (%s)", session.session_id, session.request.target_id, reason)
        self._emit(session, "SESSION_CANCELLED", reason)
        return session

    def report_spawn_error(self, session: LaunchSession, detail: str) -> None:
        """Conclude the active session with SPAWN_ERROR from outside the poller.

        PopenSpawner fails synchronously inside launch(), and an early non-zero
        exit is caught by the poller, so nothing in the app calls this. It is
        kept for spawners that learn about a failure after launch() returned
        (for example one that starts the app through a service manager).
        Reports for a session that is no longer active are dropped.
        """
        if session is not self._active or not session.active:
            log.debug("Discarding stale spawn error for session %s: %s", session.session_id, detail)
            return
        session.detail = detail
        self._conclude(session, "SPAWN_ERROR")

    def terminate(self, session: Optional[LaunchSession] = None) -> int:
        """Kill the processes belonging to a session. Does not cancel it."""
        session = session or self._active or self._last
        if session is None:
            return 0

        pids: list[int] = []
        if session.handle is not None and session.handle.poll() is None:
            pids.append(session.handle.pid)
        try:
            pids.extend(matching_pids(self._table.list_processes(), session.request.process_match_name))
        except QueryError as e:
            log.warning("Could not look up processes for %s: %s", session.request.target_id, e)

        if not pids:
            return 0
        count = self._spawner.terminate(pids)
        log.info("Terminated %d process(es) for %s", count, session.request.target_id)
        return count

    def shutdown(self) -> None:
        self.cancel(reason="shutdown")

    def _emit(self, session: LaunchSession, event_type: str, reason: Optional[str]) -> None:
        if self._event_cb:
            self._event_cb({
                "type": event_type,
                "target": session.request.target_id,
                "session": session.session_id,
                "at": _now_iso(),
                "reason": reason,
            })

    def _on_status(self, session: LaunchSession, status: SessionStatus) -> None:
        if status == "STARTED":
            log.info("%s is running", session.request.target_id)
            self._emit(session, "APP_STARTED", None)
            self._reconciler.started(session)
            return
        self._conclude(session, status)

    def _on_ceiling(self, session: LaunchSession) -> None:
        if self._active is session:
            self._active = None
        self._emit(session, "CEILING_REACHED", f"no conclusion after {self._cfg.ceiling_seconds}s")
        self._reconciler.abandoned(session)

    def _conclude(self, session: LaunchSession, status: SessionStatus) -> None:
        if session.cancelled or session.concluded:
            return
        self._poller.disarm(session)
        session.phase = "CONCLUDED"
        session.status = status
        if self._active is session:
            self._active = None

        if status == "ENDED":
            log.info("%s ended", session.request.target_id)
            self._emit(session, "APP_ENDED", None)
        else:
            log.warning("%s concluded with %s: %s", session.request.target_id, status, session.detail)
            self._emit(session, "APP_FAILED", status)
        self._reconciler.conclude(session, status)
