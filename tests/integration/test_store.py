"""Store contract tests, run against the memory and SQLite stores."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from focusflow.database import close_db, get_engine, get_session
from focusflow.gamification.challenges import ChallengeType
from focusflow.gamification.schemas import (
    ChallengeResult,
    DailySession,
    HeartTransaction,
    HeartTransactionType,
)

NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone(timedelta(hours=-5)))


def _result(score=80.0):
    return ChallengeResult(
        user_id="u", challenge_type=ChallengeType.RESET, timestamp=NOW, score=score, duration_ms=1000,
    )


class TestStateBlobs:
    def test_empty_user(self, store):
        assert store.load_state("u") == {}

    def test_round_trip_and_upsert(self, store):
        store.save_state("u", {"progress": {"level": 1}, "skills": {"focus": 2.5}})
        store.save_state("u", {"progress": {"level": 2}})
        assert store.load_state("u") == {"progress": {"level": 2}, "skills": {"focus": 2.5}}

    def test_loaded_blobs_are_copies(self, store):
        store.save_state("u", {"progress": {"level": 1}})
        loaded = store.load_state("u")
        loaded["progress"]["level"] = 99
        assert store.load_state("u")["progress"]["level"] == 1

    def test_unknown_kind_rejected(self, store):
        with pytest.raises(ValueError, match="Unknown state kinds"):
            store.save_state("u", {"inventory": {}})

    def test_users_are_isolated(self, store):
        store.save_state("a", {"progress": {"level": 3}})
        assert store.load_state("b") == {}


class TestLogs:
    def test_results_keep_order_and_offset(self, store):
        first, second = _result(10), _result(20)
        store.save_state("u", {}, results=[first])
        store.save_state("u", {}, results=[second])
        loaded = store.list_challenge_results("u")
        assert [r.id for r in loaded] == [first.id, second.id]
        assert loaded[0].timestamp == NOW
        assert loaded[0].timestamp.utcoffset() == timedelta(hours=-5)

    def test_transactions_appended(self, store):
        tx = HeartTransaction(
            user_id="u", timestamp=NOW, type=HeartTransactionType.LOSS, amount=1, reason="focus_break",
        )
        store.save_state("u", {}, transactions=[tx])
        assert store.list_heart_transactions("u") == [tx]

    def test_daily_session_upsert(self, store):
        day = date(2026, 3, 2)
        session = DailySession(user_id="u", session_date=day, challenge_ids=["a"], total_xp=10)
        store.save_state("u", {}, sessions=[session])
        updated = session.model_copy(update={"challenge_ids": ["a", "b"], "total_xp": 20, "completed": True})
        store.save_state("u", {}, sessions=[updated])
        loaded = store.get_daily_session("u", day)
        assert loaded.id == session.id
        assert loaded.challenge_ids == ["a", "b"]
        assert loaded.completed
        assert store.get_daily_session("u", day + timedelta(days=1)) is None

    def test_clear_user(self, store):
        store.save_state(
            "u",
            {"progress": {"level": 1}},
            results=[_result()],
            sessions=[DailySession(user_id="u", session_date=date(2026, 3, 2))],
        )
        store.save_state("other", {"progress": {"level": 4}})
        store.clear_user("u")
        assert store.load_state("u") == {}
        assert store.list_challenge_results("u") == []
        assert store.get_daily_session("u", date(2026, 3, 2)) is None
        assert store.load_state("other") == {"progress": {"level": 4}}


class TestDatabaseLifecycle:
    def test_session_available_after_init(self, sql_store):
        with get_session() as session:
            assert session.bind is get_engine()

    def test_uninitialized_access_raises(self):
        close_db()
        with pytest.raises(RuntimeError, match="Database not initialized"):
            get_engine()
