"""Best-effort push of local state to a remote mirror.

Local state is authoritative; a failed push never aborts the operation that
produced the state.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog

logger = structlog.get_logger()


class RemoteSync(Protocol):
    def push(self, user_id: str, kind: str, payload: dict[str, Any]) -> None: ...


class RecordingSync:
    """Collects pushes in memory. Used by tests and local development."""

    def __init__(self) -> None:
        self.pushed: list[tuple[str, str, dict[str, Any]]] = []

    def push(self, user_id: str, kind: str, payload: dict[str, Any]) -> None:
        self.pushed.append((user_id, kind, payload))


def push_safely(sync: RemoteSync | None, user_id: str, kind: str, payload: dict[str, Any]) -> bool:
    """Push one blob; log and return False on any failure."""
    if sync is None:
        return False
    try:
        sync.push(user_id, kind, payload)
    except Exception:
        logger.warning("remote_sync_failed", user_id=user_id, kind=kind, exc_info=True)
        return False
    return True
