"""SQLAlchemy engine and session management."""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from focusflow.db.models import Base

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def init_db(url: str, create_tables: bool = True) -> None:
    """Initialize the database engine and session factory."""
    global _engine, _session_factory  # noqa: PLW0603
    if url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory SQLite lives in one connection; share it across sessions
        _engine = create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    else:
        _engine = create_engine(url, pool_pre_ping=True, echo=False)
    _session_factory = sessionmaker(_engine, expire_on_commit=False)

    if create_tables:
        Base.metadata.create_all(_engine)


def close_db() -> None:
    """Dispose of the database engine."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine:
        _engine.dispose()
        _engine = None
    _session_factory = None


def get_engine() -> Engine:
    """Get the engine instance."""
    if _engine is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _session_factory


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Yield a database session."""
    with get_session_factory()() as session:
        yield session
