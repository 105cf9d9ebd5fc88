"""Filter resolution, metric store, and the raw-record query engine."""

from comms_metrics.features.query.filters import (
    FilterRequest,
    ResolvedFilter,
    resolve_date_range,
    resolve_filter,
)
from comms_metrics.features.query.routes import router
from comms_metrics.features.query.service import QueryEngine
from comms_metrics.features.query.store import MetricStore, SqlMetricStore, UpsertOutcome

__all__ = [
    "FilterRequest",
    "MetricStore",
    "QueryEngine",
    "ResolvedFilter",
    "SqlMetricStore",
    "UpsertOutcome",
    "resolve_date_range",
    "resolve_filter",
    "router",
]
