"""Engine factory: wires settings, logging, database and clock into a service."""

import structlog

from focusflow.clock import SystemClock
from focusflow.config import Settings, get_settings
from focusflow.database import close_db, get_session_factory, init_db
from focusflow.gamification.service import ProgressionService
from focusflow.logging import setup_logging
from focusflow.store import SqlStore
from focusflow.sync import RemoteSync

logger = structlog.get_logger()


def create_service(settings: Settings | None = None, sync: RemoteSync | None = None) -> ProgressionService:
    """Configure logging, open the database and build a ``ProgressionService``.

    Local midnight and streak days are computed in ``settings.timezone``.
    """
    settings = settings or get_settings()
    setup_logging(settings)
    init_db(settings.database_url)

    service = ProgressionService(
        SqlStore(get_session_factory()),
        SystemClock(settings.timezone),
        settings,
        sync=sync,
    )
    logger.info("engine_started", environment=settings.environment, timezone=settings.timezone)
    return service


def shutdown() -> None:
    """Dispose of the database engine."""
    close_db()
    logger.info("engine_stopped")
