from __future__ import annotations

from typing import Optional

from .types import LaunchRequest, SessionStatus


def build_status_message(request: LaunchRequest, status: SessionStatus, detail: Optional[str] = None) -> Optional[dict]:
    title = "Streaming Launcher"
    name = request.display_name
    if status == "SPAWN_ERROR":
        body = f"Failed to launch {name}"
    elif status == "FAILED_TO_START":
        body = f"{name} did not start"
    else:
        return None
    if detail:
        body = f"{body} ({detail})"
    return {"title": title, "body": body, "severity": "error"}
