"""Structured logging for the engine.

Service modules log through structlog, rule modules through stdlib loggers.
Both end up in one root handler so every line carries the same timestamp,
level and bound user context.
"""

import logging
import sys

import structlog

from focusflow.config import Settings

_HANDLER_NAME = "focusflow"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def setup_logging(settings: Settings) -> None:
    """Render structlog and stdlib records as JSON or console lines.

    Safe to call again; the previous engine handler is replaced.
    """
    if settings.log_format == "json":
        rendering = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        rendering = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *rendering],
    ))

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))


def bind_user(user_id: str) -> None:
    """Attach the acting user to every log line emitted in this context."""
    structlog.contextvars.bind_contextvars(user_id=user_id)


def clear_user() -> None:
    structlog.contextvars.unbind_contextvars("user_id")
