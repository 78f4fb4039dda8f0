"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timezone

import pytest

from focusflow.clock import FixedClock
from focusflow.config import Settings
from focusflow.database import close_db, get_session_factory, init_db
from focusflow.gamification.service import Identity, ProgressionService
from focusflow.store import MemoryStore, SqlStore
from focusflow.sync import RecordingSync

# Monday, mid-morning: clear of the early-bird and night-owl hour windows
START = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sql_store() -> Generator[SqlStore, None, None]:
    init_db("sqlite://")
    yield SqlStore(get_session_factory())
    close_db()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Every service test runs against both store implementations."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def recording_sync() -> RecordingSync:
    return RecordingSync()


@pytest.fixture
def service(store, clock, settings, recording_sync) -> ProgressionService:
    return ProgressionService(store, clock, settings, sync=recording_sync)


@pytest.fixture
def identity() -> Identity:
    return Identity(user_id="user-1")


@pytest.fixture
def premium() -> Identity:
    return Identity(user_id="user-premium", is_premium=True)
