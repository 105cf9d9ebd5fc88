"""Metric submission and batch ingest."""

from comms_metrics.features.ingest.routes import router
from comms_metrics.features.ingest.service import IngestService, dedupe_submissions

__all__ = ["IngestService", "dedupe_submissions", "router"]
