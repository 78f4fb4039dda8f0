"""Inbound gameplay events.

Every event arrives in the same envelope:
{
    "event": "<event_type>",
    "ts": 1708617600.123456,
    "user_id": "u-123",
    "data": {"challenge_type": "focus_hold", "score": 92.0, "duration_ms": 30000}
}
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, Field

from focusflow.gamification.challenges import ChallengeType
from focusflow.logging import bind_user, clear_user

if TYPE_CHECKING:
    from focusflow.gamification.service import ChallengeOutcome, Identity, ProgressionService, SessionOutcome

logger = structlog.get_logger()


class EventType(str, Enum):
    """All supported gameplay event types."""

    CHALLENGE_COMPLETED = "challenge_completed"
    SESSION_COMPLETED = "session_completed"


class BaseEvent(BaseModel):
    """Envelope shared by every gameplay event."""

    event: str
    ts: float = 0.0
    user_id: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class ChallengeCompleted(BaseModel):
    """Data payload for challenge_completed events."""

    challenge_type: ChallengeType
    score: float = Field(ge=0, le=100)
    duration_ms: int = Field(0, ge=0)


class SessionCompleted(BaseModel):
    """Data payload for session_completed events. Carries no fields."""


EVENT_DATA_MODELS: dict[str, type[BaseModel]] = {
    EventType.CHALLENGE_COMPLETED: ChallengeCompleted,
    EventType.SESSION_COMPLETED: SessionCompleted,
}


def parse_event(raw: dict[str, Any]) -> tuple[BaseEvent, BaseModel]:
    """Parse a raw event dict into envelope + typed data.

    Raises:
        ValueError: If the event type is unknown.
        pydantic.ValidationError: If the payload does not validate.
    """
    envelope = BaseEvent.model_validate(raw)
    model_cls = EVENT_DATA_MODELS.get(envelope.event)
    if model_cls is None:
        msg = f"Unknown event type: {envelope.event}"
        raise ValueError(msg)
    data = model_cls.model_validate(envelope.data)
    return envelope, data


def handle_event(
    service: ProgressionService,
    identity: Identity,
    event: BaseModel,
) -> ChallengeOutcome | SessionOutcome:
    """Route a parsed event payload to the matching service operation."""
    bind_user(identity.user_id)
    try:
        if isinstance(event, ChallengeCompleted):
            return service.complete_challenge(identity, event.challenge_type, event.score, event.duration_ms)
        if isinstance(event, SessionCompleted):
            return service.complete_session(identity)
    finally:
        clear_user()
    logger.warning("unhandled_event", event_type=type(event).__name__, user_id=identity.user_id)
    msg = f"No handler for {type(event).__name__}"
    raise ValueError(msg)
