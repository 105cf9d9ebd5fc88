"""Shared building blocks used across features."""

from comms_metrics.shared.models import ReportingKeyMixin, TimestampMixin

__all__ = ["ReportingKeyMixin", "TimestampMixin"]
