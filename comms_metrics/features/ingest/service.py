"""Ingest service: validated submissions -> key-tuple upserts."""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from comms_metrics.core.logging import get_logger
from comms_metrics.features.ingest.schemas import (
    BatchIngestRequest,
    BatchIngestResponse,
    FamilyIngestResult,
    MetricSubmission,
)
from comms_metrics.features.metrics.catalog import MetricFamily
from comms_metrics.features.metrics.models import MetricRecord
from comms_metrics.features.query.store import MetricStore

logger = get_logger(__name__)


@dataclass
class DedupeResult:
    """Rows left after collapsing duplicate keys within one batch."""

    rows: list[dict[str, Any]]
    duplicate_count: int


def dedupe_submissions(
    family: MetricFamily,
    submissions: Sequence[MetricSubmission],
) -> DedupeResult:
    """Collapse submissions sharing a key tuple; the last occurrence wins.

    PostgreSQL rejects an upsert statement that touches the same row twice,
    so duplicates are removed before the store sees them.

    Args:
        family: Family of the submissions.
        submissions: Submissions in request order.

    Returns:
        One row per distinct key, and how many rows were dropped.
    """
    by_key: dict[tuple[Any, ...], dict[str, Any]] = {}
    for submission in submissions:
        by_key[submission.key()] = submission.to_row()

    duplicates = len(submissions) - len(by_key)
    if duplicates:
        logger.warning(
            "ingest.duplicates_collapsed",
            family=family.value,
            submitted=len(submissions),
            duplicate_count=duplicates,
        )
    return DedupeResult(rows=list(by_key.values()), duplicate_count=duplicates)


class IngestService:
    """Upsert metric submissions by natural key."""

    def __init__(self, store: MetricStore) -> None:
        """Initialize ingest service.

        Args:
            store: Persistence collaborator.
        """
        self.store = store

    async def submit(self, submission: MetricSubmission) -> MetricRecord:
        """Upsert a single submission.

        Args:
            submission: Validated submission.

        Returns:
            The stored record.

        Raises:
            StoreUnavailable: If the store fails.
        """
        family = submission.family
        outcome = await self.store.upsert(family, [submission.to_row()])
        record = outcome.records[0]

        logger.info(
            "ingest.submission_stored",
            family=family.value,
            business_unit=record.business_unit,
            date=str(record.date),
            inserted=outcome.inserted_count == 1,
        )
        return record

    async def ingest_batch(self, request: BatchIngestRequest) -> BatchIngestResponse:
        """Upsert a multi-family batch, one transaction per family.

        Families are written in declaration order. A failure stops the batch;
        families already written stay written, since each upsert is idempotent
        and the batch can simply be resent.

        Args:
            request: Validated batch.

        Returns:
            Per-family counts.

        Raises:
            StoreUnavailable: If the store fails.
        """
        start_time = time.perf_counter()
        logger.info("ingest.batch_started", record_count=request.total_records)

        results: dict[str, FamilyIngestResult] = {}
        for family, submissions in request.by_family().items():
            if not submissions:
                continue
            deduped = dedupe_submissions(family, submissions)
            outcome = await self.store.upsert(family, deduped.rows)
            results[family.value] = FamilyIngestResult(
                submitted_count=len(submissions),
                inserted_count=outcome.inserted_count,
                updated_count=outcome.updated_count,
                duplicate_count=deduped.duplicate_count,
            )

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.info(
            "ingest.batch_completed",
            record_count=request.total_records,
            inserted=sum(r.inserted_count for r in results.values()),
            updated=sum(r.updated_count for r in results.values()),
            duplicates=sum(r.duplicate_count for r in results.values()),
            duration_ms=duration_ms,
        )

        return BatchIngestResponse(
            **results,
            total_processed=request.total_records,
            duration_ms=duration_ms,
        )
