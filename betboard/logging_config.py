"""Structured logging configuration using structlog."""

import logging
import sys

import structlog

from betboard.config import BetboardSettings


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    service_name: str = "betboard",
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON; if False, output colored console format
        service_name: Name of the service bound to every log entry
    """
    log_level = getattr(logging, level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_format:
        renderers: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=[*shared_processors, *renderers],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def configure_logging_from_settings(settings: BetboardSettings) -> None:
    """Apply ``BETBOARD_LOG_LEVEL`` / ``BETBOARD_LOG_FORMAT``."""
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format.lower() == "json",
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_request_context(request_id: str, **kwargs: str) -> None:
    """Bind request-scoped fields (request id, method, path) to log entries."""
    structlog.contextvars.bind_contextvars(request_id=request_id, **kwargs)


def clear_request_context(*keys: str) -> None:
    """Drop request-scoped fields, keeping the service binding."""
    structlog.contextvars.unbind_contextvars("request_id", *keys)
