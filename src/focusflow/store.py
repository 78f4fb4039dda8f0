"""Progress persistence.

State is stored as raw JSON-compatible blobs per (user, kind); parsing and
recovery from malformed blobs happen in the service layer. Logs
(challenge results, heart transactions) are append-only. ``save_state``
writes blobs and log entries in one unit so a crash never leaves a
half-applied completion behind.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from datetime import date
from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from focusflow.db.models import ChallengeResultRow, DailySessionRow, HeartTransactionRow, UserState
from focusflow.gamification.schemas import ChallengeResult, DailySession, HeartTransaction

STATE_KINDS = ("progress", "skills", "tree", "hearts", "badges", "new_badges")


class ProgressStore(Protocol):
    def load_state(self, user_id: str) -> dict[str, dict[str, Any]]: ...

    def save_state(
        self,
        user_id: str,
        blobs: dict[str, dict[str, Any]],
        *,
        results: Iterable[ChallengeResult] = (),
        transactions: Iterable[HeartTransaction] = (),
        sessions: Iterable[DailySession] = (),
    ) -> None: ...

    def list_challenge_results(self, user_id: str) -> list[ChallengeResult]: ...

    def list_heart_transactions(self, user_id: str) -> list[HeartTransaction]: ...

    def get_daily_session(self, user_id: str, day: date) -> DailySession | None: ...

    def clear_user(self, user_id: str) -> None: ...


def _check_kinds(blobs: dict[str, Any]) -> None:
    unknown = set(blobs) - set(STATE_KINDS)
    if unknown:
        msg = f"Unknown state kinds: {sorted(unknown)}"
        raise ValueError(msg)


class MemoryStore:
    """In-process store. Blobs are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._state: dict[str, dict[str, dict[str, Any]]] = {}
        self._results: dict[str, list[ChallengeResult]] = {}
        self._transactions: dict[str, list[HeartTransaction]] = {}
        self._sessions: dict[tuple[str, date], DailySession] = {}

    def load_state(self, user_id: str) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._state.get(user_id, {}))

    def save_state(
        self,
        user_id: str,
        blobs: dict[str, dict[str, Any]],
        *,
        results: Iterable[ChallengeResult] = (),
        transactions: Iterable[HeartTransaction] = (),
        sessions: Iterable[DailySession] = (),
    ) -> None:
        _check_kinds(blobs)
        self._state.setdefault(user_id, {}).update(copy.deepcopy(blobs))
        self._results.setdefault(user_id, []).extend(results)
        self._transactions.setdefault(user_id, []).extend(transactions)
        for session in sessions:
            self._sessions[(user_id, session.session_date)] = session

    def list_challenge_results(self, user_id: str) -> list[ChallengeResult]:
        return list(self._results.get(user_id, []))

    def list_heart_transactions(self, user_id: str) -> list[HeartTransaction]:
        return list(self._transactions.get(user_id, []))

    def get_daily_session(self, user_id: str, day: date) -> DailySession | None:
        return self._sessions.get((user_id, day))

    def clear_user(self, user_id: str) -> None:
        self._state.pop(user_id, None)
        self._results.pop(user_id, None)
        self._transactions.pop(user_id, None)
        for key in [k for k in self._sessions if k[0] == user_id]:
            del self._sessions[key]


class SqlStore:
    """SQLAlchemy-backed store. Each call runs in its own session."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def load_state(self, user_id: str) -> dict[str, dict[str, Any]]:
        with self._session_factory() as session:
            rows = session.execute(select(UserState).where(UserState.user_id == user_id)).scalars()
            return {row.kind: copy.deepcopy(row.payload) for row in rows}

    def save_state(
        self,
        user_id: str,
        blobs: dict[str, dict[str, Any]],
        *,
        results: Iterable[ChallengeResult] = (),
        transactions: Iterable[HeartTransaction] = (),
        sessions: Iterable[DailySession] = (),
    ) -> None:
        _check_kinds(blobs)
        with self._session_factory() as session, session.begin():
            for kind, payload in blobs.items():
                row = session.get(UserState, (user_id, kind))
                if row is None:
                    session.add(UserState(user_id=user_id, kind=kind, payload=payload))
                else:
                    row.payload = payload

            for result in results:
                session.add(ChallengeResultRow(
                    id=result.id,
                    user_id=user_id,
                    challenge_type=result.challenge_type.value,
                    score=result.score,
                    is_perfect=result.is_perfect,
                    payload=result.model_dump(mode="json"),
                ))

            for tx in transactions:
                session.add(HeartTransactionRow(
                    id=tx.id,
                    user_id=user_id,
                    type=tx.type.value,
                    amount=tx.amount,
                    reason=tx.reason,
                    payload=tx.model_dump(mode="json"),
                ))

            for daily in sessions:
                row = session.execute(
                    select(DailySessionRow).where(
                        DailySessionRow.user_id == user_id,
                        DailySessionRow.session_date == daily.session_date,
                    )
                ).scalar_one_or_none()
                if row is None:
                    session.add(DailySessionRow(
                        id=daily.id,
                        user_id=user_id,
                        session_date=daily.session_date,
                        challenge_ids=list(daily.challenge_ids),
                        total_xp=daily.total_xp,
                        completed=daily.completed,
                    ))
                else:
                    row.challenge_ids = list(daily.challenge_ids)
                    row.total_xp = daily.total_xp
                    row.completed = daily.completed

    def list_challenge_results(self, user_id: str) -> list[ChallengeResult]:
        with self._session_factory() as session:
            rows = session.execute(
                select(ChallengeResultRow)
                .where(ChallengeResultRow.user_id == user_id)
                .order_by(ChallengeResultRow.seq)
            ).scalars()
            return [ChallengeResult.model_validate(row.payload) for row in rows]

    def list_heart_transactions(self, user_id: str) -> list[HeartTransaction]:
        with self._session_factory() as session:
            rows = session.execute(
                select(HeartTransactionRow)
                .where(HeartTransactionRow.user_id == user_id)
                .order_by(HeartTransactionRow.seq)
            ).scalars()
            return [HeartTransaction.model_validate(row.payload) for row in rows]

    def get_daily_session(self, user_id: str, day: date) -> DailySession | None:
        with self._session_factory() as session:
            row = session.execute(
                select(DailySessionRow).where(
                    DailySessionRow.user_id == user_id,
                    DailySessionRow.session_date == day,
                )
            ).scalar_one_or_none()
            if row is None:
                return None
            return DailySession(
                id=row.id,
                user_id=row.user_id,
                session_date=row.session_date,
                challenge_ids=list(row.challenge_ids),
                total_xp=row.total_xp,
                completed=row.completed,
            )

    def clear_user(self, user_id: str) -> None:
        with self._session_factory() as session, session.begin():
            for model in (UserState, ChallengeResultRow, HeartTransactionRow, DailySessionRow):
                session.execute(delete(model).where(model.user_id == user_id))


def dump_blobs(**models: Any) -> dict[str, dict[str, Any]]:
    """Serialize pydantic models (or ready dicts) into storable blobs."""
    blobs: dict[str, dict[str, Any]] = {}
    for kind, model in models.items():
        if model is None:
            continue
        blobs[kind] = model if isinstance(model, dict) else model.model_dump(mode="json")
    return blobs
