from __future__ import annotations

import logging
from typing import Literal, Protocol

from .messages import build_status_message
from .types import LaunchSession, SessionStatus

log = logging.getLogger(__name__)

Severity = Literal["info", "error"]


class LauncherSurface(Protocol):
    def show_primary(self) -> None:
        ...

    def hide_primary(self) -> None:
        ...

    def set_tile_loading(self, tile_id: str, loading: bool) -> None:
        ...

    def notify(self, message: str, severity: Severity) -> None:
        ...


class Reconciler:
    """Brings the launcher back once a session has an outcome."""

    def __init__(self, surface: LauncherSurface) -> None:
        self._surface = surface

    def started(self, session: LaunchSession) -> None:
        if session.cancelled or session.reconciled:
            return
        self._surface.set_tile_loading(session.request.target_id, False)
        self._surface.hide_primary()

    def abandoned(self, session: LaunchSession) -> None:
        """Drop the loading state of a session that stopped being tracked without an outcome."""
        if session.reconciled:
            return
        self._surface.set_tile_loading(session.request.target_id, False)

    def conclude(self, session: LaunchSession, status: SessionStatus) -> bool:
        if session.reconciled or session.cancelled:
            log.debug("Session %s already reconciled, ignoring %s", session.session_id, status)
            return False
        session.reconciled = True

        self._surface.set_tile_loading(session.request.target_id, False)
        self._surface.show_primary()

        payload = build_status_message(session.request, status, session.detail)
        if payload is not None:
            self._surface.notify(payload["body"], payload["severity"])
        return True
