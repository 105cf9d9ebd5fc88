"""Metric record model: families, dimensions, measure catalog, and tables."""

from comms_metrics.features.metrics.catalog import (
    FAMILY_MEASURES,
    GLOBAL_COUNTRY,
    BusinessUnit,
    FieldKind,
    MetricFamily,
    Platform,
    additive_fields,
    is_additive,
)
from comms_metrics.features.metrics.models import (
    MetricRecord,
    NewsletterMetric,
    SocialEngagementMetric,
    SocialMetric,
    WebsiteMetric,
)

__all__ = [
    "FAMILY_MEASURES",
    "GLOBAL_COUNTRY",
    "BusinessUnit",
    "FieldKind",
    "MetricFamily",
    "MetricRecord",
    "NewsletterMetric",
    "Platform",
    "SocialEngagementMetric",
    "SocialMetric",
    "WebsiteMetric",
    "additive_fields",
    "is_additive",
]
