"""Ingest API routes for metric submissions and batch seeding."""

from fastapi import APIRouter, Depends, status

from comms_metrics.core.logging import get_logger
from comms_metrics.features.ingest.schemas import (
    BatchIngestRequest,
    BatchIngestResponse,
    MetricSubmission,
    NewsletterMetricSubmission,
    SocialEngagementMetricSubmission,
    SocialMetricSubmission,
    WebsiteMetricSubmission,
)
from comms_metrics.features.ingest.service import IngestService
from comms_metrics.features.metrics.schemas import (
    NewsletterMetricRead,
    SocialEngagementMetricRead,
    SocialMetricRead,
    WebsiteMetricRead,
    to_read_schema,
)
from comms_metrics.features.query.deps import get_metric_store, with_query_timeout
from comms_metrics.features.query.store import MetricStore

logger = get_logger(__name__)

router = APIRouter(prefix="/ingest", tags=["ingest"])

_UPSERT_NOTE = """
**Idempotency:** the record is identified by its natural key. Submitting the
same key again overwrites the measures rather than creating a duplicate.
"""


async def _store_submission(
    store: MetricStore, submission: MetricSubmission
) -> SocialMetricRead | SocialEngagementMetricRead | WebsiteMetricRead | NewsletterMetricRead:
    service = IngestService(store)
    record = await with_query_timeout(
        service.submit(submission), f"{submission.family.value} submission"
    )
    return to_read_schema(submission.family, record)


@router.post(
    "/social",
    response_model=SocialMetricRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a social metric",
    description="Store followers, posts and impressions for one platform, business unit, "
    "country and day. Key: (date, platform, business_unit, country).\n" + _UPSERT_NOTE,
)
async def ingest_social(
    submission: SocialMetricSubmission,
    store: MetricStore = Depends(get_metric_store),
) -> SocialMetricRead:
    """Upsert one social metric."""
    return await _store_submission(store, submission)  # type: ignore[return-value]


@router.post(
    "/engagement",
    response_model=SocialEngagementMetricRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an engagement metric",
    description="Store engagement counts and rate for one platform, business unit and day. "
    "Key: (date, platform, business_unit). `engagement_rate` is a fraction in [0, 1].\n"
    + _UPSERT_NOTE,
)
async def ingest_engagement(
    submission: SocialEngagementMetricSubmission,
    store: MetricStore = Depends(get_metric_store),
) -> SocialEngagementMetricRead:
    """Upsert one engagement metric."""
    return await _store_submission(store, submission)  # type: ignore[return-value]


@router.post(
    "/website",
    response_model=WebsiteMetricRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a website metric",
    description="Store website traffic for one business unit, country and day. "
    "Key: (date, business_unit, country). `bounce_rate` is a fraction in [0, 1].\n"
    + _UPSERT_NOTE,
)
async def ingest_website(
    submission: WebsiteMetricSubmission,
    store: MetricStore = Depends(get_metric_store),
) -> WebsiteMetricRead:
    """Upsert one website metric."""
    return await _store_submission(store, submission)  # type: ignore[return-value]


@router.post(
    "/newsletter",
    response_model=NewsletterMetricRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a newsletter metric",
    description="Store newsletter sends for one business unit, country and day. "
    "Key: (date, business_unit, country). `open_rate` is a fraction in [0, 1].\n"
    + _UPSERT_NOTE,
)
async def ingest_newsletter(
    submission: NewsletterMetricSubmission,
    store: MetricStore = Depends(get_metric_store),
) -> NewsletterMetricRead:
    """Upsert one newsletter metric."""
    return await _store_submission(store, submission)  # type: ignore[return-value]


@router.post(
    "/batch",
    response_model=BatchIngestResponse,
    status_code=status.HTTP_200_OK,
    summary="Batch upsert metrics of every family",
    description="""
Upsert lists of social, engagement, website and newsletter metrics in one call.

Each family is written in its own transaction using
PostgreSQL ON CONFLICT DO UPDATE on the natural key.

**Duplicates:** rows sharing a key inside one batch collapse to the last
occurrence; the dropped rows are counted in `duplicate_count`.

**Idempotency:** resending the same batch updates the same rows.
""",
)
async def ingest_batch(
    request: BatchIngestRequest,
    store: MetricStore = Depends(get_metric_store),
) -> BatchIngestResponse:
    """Batch upsert metric records.

    Args:
        request: Batch with per-family lists.
        store: Metric store dependency.

    Returns:
        Per-family inserted, updated and duplicate counts.
    """
    logger.info("ingest.batch.request_received", record_count=request.total_records)
    service = IngestService(store)
    return await with_query_timeout(service.ingest_batch(request), "batch ingest")
