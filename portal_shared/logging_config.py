"""Structured logging for the portal API and the admin CLI.

Everything is logged as an event name plus key/value fields through
structlog. ``LOG_FORMAT=json`` renders one JSON object per line for log
shipping; ``console`` renders colored key=value lines for development.

    from portal_shared.logging_config import setup_logging
    import structlog

    setup_logging(service_name="api")
    structlog.get_logger(__name__).info("budget_action_applied", project_id=pid)
"""

from decimal import Decimal
from enum import Enum
import logging
import os
import sys
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Chatty third-party loggers capped at WARNING unless running at DEBUG
NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncpg", "uvicorn.access")


def render_domain_values(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Log amounts as exact decimal strings and enums by value."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = format(value, "f")
        elif isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def setup_logging(
    service_name: str | None = None,
    log_format: Literal["json", "console"] | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        service_name: Bound as ``service`` on every entry. Falls back to the
            SERVICE_NAME env var, then "unknown".
        log_format: "json" or "console". Falls back to LOG_FORMAT, then "console".
        log_level: Falls back to LOG_LEVEL, then "INFO".
    """
    service_name = service_name or os.getenv("SERVICE_NAME", "unknown")
    log_format = log_format or os.getenv("LOG_FORMAT", "console")
    log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        render_domain_values,
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    structlog.contextvars.bind_contextvars(service=service_name)

    structlog.get_logger(__name__).info(
        "logging_initialized", service=service_name, log_format=log_format, log_level=log_level
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(correlation_id: str, **fields: Any) -> None:
    """Bind the correlation id (and request fields) to every entry of this context."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id, **fields)


def clear_request_context() -> None:
    """Drop request fields while keeping the bound service name."""
    service = structlog.contextvars.get_contextvars().get("service")
    structlog.contextvars.clear_contextvars()
    if service is not None:
        structlog.contextvars.bind_contextvars(service=service)
