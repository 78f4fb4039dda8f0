"""Event parsing and dispatch tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from focusflow.gamification.challenges import ChallengeType
from focusflow.gamification.events import (
    EVENT_DATA_MODELS,
    ChallengeCompleted,
    EventType,
    SessionCompleted,
    handle_event,
    parse_event,
)
from focusflow.gamification.schemas import SkillProgress


class TestParseEvent:
    """Envelope + payload validation."""

    def test_every_event_type_has_a_model(self):
        assert set(EVENT_DATA_MODELS) == set(EventType)

    def test_challenge_completed(self):
        envelope, data = parse_event({
            "event": "challenge_completed",
            "ts": 1772445600.0,
            "user_id": "user-1",
            "data": {"challenge_type": "breath_pacing", "score": 88.5, "duration_ms": 30000},
        })
        assert envelope.user_id == "user-1"
        assert isinstance(data, ChallengeCompleted)
        assert data.challenge_type == ChallengeType.BREATH_PACING
        assert data.score == 88.5

    def test_session_completed(self):
        _, data = parse_event({"event": "session_completed"})
        assert isinstance(data, SessionCompleted)

    def test_unknown_event(self):
        with pytest.raises(ValueError, match="Unknown event type"):
            parse_event({"event": "level_skipped", "data": {}})

    def test_score_out_of_range(self):
        with pytest.raises(ValidationError):
            parse_event({"event": "challenge_completed", "data": {"challenge_type": "reset", "score": 120}})

    def test_unknown_challenge_type(self):
        with pytest.raises(ValidationError):
            parse_event({"event": "challenge_completed", "data": {"challenge_type": "juggling", "score": 50}})


class _FakeService:
    def __init__(self):
        self.calls = []

    def complete_challenge(self, identity, challenge_type, score, duration_ms):
        self.calls.append(("challenge", identity.user_id, challenge_type, score, duration_ms))
        return "challenge-outcome"

    def complete_session(self, identity):
        self.calls.append(("session", identity.user_id))
        return "session-outcome"


class TestHandleEvent:
    """Routing parsed payloads to the service."""

    def test_challenge_routed(self, identity):
        service = _FakeService()
        event = ChallengeCompleted(challenge_type="rhythm_tap", score=70, duration_ms=1000)
        assert handle_event(service, identity, event) == "challenge-outcome"
        assert service.calls == [("challenge", "user-1", ChallengeType.RHYTHM_TAP, 70, 1000)]

    def test_session_routed(self, identity):
        service = _FakeService()
        assert handle_event(service, identity, SessionCompleted()) == "session-outcome"

    def test_unhandled_payload(self, identity):
        with pytest.raises(ValueError, match="No handler"):
            handle_event(_FakeService(), identity, SkillProgress(user_id="user-1"))
