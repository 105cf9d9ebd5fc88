"""Core infrastructure: config, database, logging, middleware, exceptions."""

from comms_metrics.core.config import Settings, get_settings
from comms_metrics.core.database import Base, get_db, get_session_maker
from comms_metrics.core.exceptions import (
    CommsMetricsError,
    InvalidAggregation,
    InvalidDateRange,
    InvalidFilter,
    StoreUnavailable,
)
from comms_metrics.core.logging import get_logger, request_id_ctx

__all__ = [
    "Base",
    "CommsMetricsError",
    "InvalidAggregation",
    "InvalidDateRange",
    "InvalidFilter",
    "Settings",
    "StoreUnavailable",
    "get_db",
    "get_logger",
    "get_session_maker",
    "get_settings",
    "request_id_ctx",
]
