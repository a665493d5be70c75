"""
core/logging.py
---------------
Structured logging using structlog.
DEBUG=true  → human-readable console output
DEBUG=false → JSON (for log aggregators like Datadog, CloudWatch)

Socket handlers bind their connection id with socket_context(); every line
logged while serving that socket carries it, including lines emitted from
the membership manager during a join.
"""

import logging
import sys

import structlog

from statuspage.core.config import settings


def _log_level() -> int:
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL.upper())
    return logging.DEBUG if settings.DEBUG else logging.INFO


def configure_logging() -> None:
    log_level = _log_level()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    if not settings.DEBUG:
        # Library chatter: request lines, SQL echo, websocket frame traces.
        for noisy in ("uvicorn.access", "sqlalchemy.engine", "websockets"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.DEBUG
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def socket_context(connection_id: str, **extra):
    """Bind connection_id (and any extra keys) for the lifetime of one socket task."""
    return structlog.contextvars.bound_contextvars(connection_id=connection_id, **extra)


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
