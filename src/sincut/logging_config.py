"""Structured logging.

Events are snake_case names with key/value context, for example
``logger.info("coins_credited", user_id=1, amount=40)``. Values bound with
``bind_request_context`` are merged into every event of the current request.
"""

import logging
import sys

import structlog

from sincut.settings import settings

# Library loggers that only speak up at WARNING and above
QUIET_LOGGERS = ("passlib", "multipart", "httpx")


def setup_logging() -> None:
    """Configure structlog and the standard library root logger."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]
    if settings.log_format == "json":
        processors += [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=settings.env == "development"),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn and sqlalchemy log through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_request_context(**values) -> None:
    """Replace the per-request log context with ``values``."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
