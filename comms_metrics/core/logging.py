"""Structured logging with structlog and request_id context.

Event names follow the `<area>.<event>` convention, e.g. `query.fetch_completed`.
"""

import logging
import time
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

from comms_metrics.core.config import Settings, get_settings

# Context variable for request correlation
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def add_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Add request_id from context to log events."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        settings: Settings to configure from. Defaults to the cached settings.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_request_id,
    ]

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and sqlalchemy log through the stdlib
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module).

    Returns:
        Configured structlog logger with request_id binding.
    """
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


@contextmanager
def log_duration(
    logger: structlog.typing.FilteringBoundLogger,
    event: str,
    **fields: Any,
) -> Iterator[dict[str, Any]]:
    """Log `event` with `duration_ms` once the wrapped block finishes.

    The yielded dict may be filled with extra fields (e.g. row counts) from
    inside the block. Nothing is logged if the block raises.

    Args:
        logger: Logger to emit on.
        event: Event name.
        **fields: Fields logged with the event.

    Yields:
        Mutable mapping of additional fields.
    """
    extra: dict[str, Any] = {}
    start = time.perf_counter()
    yield extra
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(event, **fields, **extra, duration_ms=round(duration_ms, 2))
