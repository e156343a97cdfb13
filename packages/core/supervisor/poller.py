"""
Liveness poller for launched apps.

State machine: AWAITING_START -> RUNNING <-> ENDING -> CONCLUDED

The launched program is usually a wrapper that forks and exits (browsers,
flatpak, snap), so the child's own exit status says nothing about the app.
Instead the process table is sampled on a timer and a debounced decision is
taken on whether a process matching the request's match name is present.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .errors import QueryError
from .process_table import ProcessTable, matching_pids
from .scheduler import Scheduler
from .types import LaunchSession, SessionStatus, SupervisorConfig

log = logging.getLogger(__name__)

StatusCallback = Callable[[LaunchSession, SessionStatus], None]
CeilingCallback = Callable[[LaunchSession], None]


class LivenessPoller:
    def __init__(
        self,
        scheduler: Scheduler,
        process_table: ProcessTable,
        config: SupervisorConfig,
        on_status: StatusCallback,
        on_ceiling: CeilingCallback,
    ) -> None:
        self._scheduler = scheduler
        self._table = process_table
        self._cfg = config
        self._on_status = on_status
        self._on_ceiling = on_ceiling

    def update_config(self, config: SupervisorConfig) -> None:
        self._cfg = config

    def arm(self, session: LaunchSession) -> None:
        self.disarm(session)
        session.ceiling_timer = self._scheduler.call_later(
            float(self._cfg.ceiling_seconds), lambda: self._ceiling_reached(session)
        )
        self._schedule_tick(session)

    def disarm(self, session: LaunchSession) -> None:
        if session.poll_timer is not None:
            session.poll_timer.cancel()
            session.poll_timer = None
        if session.ceiling_timer is not None:
            session.ceiling_timer.cancel()
            session.ceiling_timer = None

    def observe(self, session: LaunchSession, matched: bool) -> Optional[SessionStatus]:
        """Apply one sample to the session and return the status it produced, if any."""
        if not session.active:
            return None

        cfg = self._cfg
        session.ticks += 1

        if session.phase == "AWAITING_START":
            if matched:
                session.phase = "RUNNING"
                session.saw_running = True
                session.not_running_samples = 0
                return "STARTED"
            session.not_running_samples += 1
            if session.not_running_samples >= cfg.start_timeout_ticks:
                return "FAILED_TO_START"
            if session.query_failures >= cfg.max_query_failures:
                return "FAILED_TO_START"
            return None

        # RUNNING or ENDING
        if matched:
            session.phase = "RUNNING"
            session.not_running_samples = 0
            return None

        session.not_running_samples += 1
        session.phase = "ENDING"
        if session.not_running_samples >= cfg.end_debounce_ticks:
            return "ENDED"
        if session.query_failures >= cfg.max_query_failures:
            return "ENDED"
        return None

    def _schedule_tick(self, session: LaunchSession) -> None:
        session.poll_timer = self._scheduler.call_later(
            self._cfg.poll_interval_ms / 1000.0, lambda: self._tick(session)
        )

    def _tick(self, session: LaunchSession) -> None:
        session.poll_timer = None
        if not session.active:
            return

        # poll() also reaps our own child once it exits
        code = session.handle.poll() if session.handle is not None else None
        if code is not None and code != 0 and not session.saw_running:
            session.detail = f"exited with code {code} before starting"
            self._on_status(session, "SPAWN_ERROR")
            return

        exited_pid = session.handle.pid if code is not None else None
        matched = self._sample(session, exited_pid)

        # The session may have been cancelled while the query was in flight
        if not session.active:
            log.debug("Discarding sample for inactive session %s", session.session_id)
            return

        status = self.observe(session, matched)
        log.debug(
            "Tick %d for %s: matched=%s phase=%s misses=%d",
            session.ticks, session.request.target_id, matched, session.phase, session.not_running_samples,
        )
        if status is not None:
            self._on_status(session, status)

        if session.active and session.poll_timer is None:
            self._schedule_tick(session)

    def _sample(self, session: LaunchSession, exited_pid: Optional[int] = None) -> bool:
        try:
            snapshot = self._table.list_processes()
        except QueryError as e:
            session.query_failures += 1
            log.warning("Process query failed (%d in a row): %s", session.query_failures, e)
            return False
        session.query_failures = 0
        pids = matching_pids(snapshot, session.request.process_match_name)
        return any(pid != exited_pid for pid in pids)

    def _ceiling_reached(self, session: LaunchSession) -> None:
        session.ceiling_timer = None
        if not session.active:
            return
        log.warning(
            "Giving up on %s after %ds without a conclusion", session.request.target_id, self._cfg.ceiling_seconds
        )
        self.disarm(session)
        session.cancelled = True
        session.phase = "CANCELLED"
        self._on_ceiling(session)
