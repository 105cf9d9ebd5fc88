"""Aggregation, derived analytics, and the analytics API."""

from comms_metrics.features.analytics.aggregation import (
    DateAggregate,
    aggregate_by_country,
    aggregate_by_date,
    aggregate_by_platform,
)
from comms_metrics.features.analytics.computations import (
    ActivityItem,
    CountryShare,
    country_distribution,
    engagement_trend,
    growth_rate,
    growth_series,
    latest_snapshot,
    recent_activity,
    share_of_voice,
    snapshot_totals,
)
from comms_metrics.features.analytics.routes import router
from comms_metrics.features.analytics.service import AnalyticsService

__all__ = [
    "ActivityItem",
    "AnalyticsService",
    "CountryShare",
    "DateAggregate",
    "aggregate_by_country",
    "aggregate_by_date",
    "aggregate_by_platform",
    "country_distribution",
    "engagement_trend",
    "growth_rate",
    "growth_series",
    "latest_snapshot",
    "recent_activity",
    "router",
    "share_of_voice",
    "snapshot_totals",
]
