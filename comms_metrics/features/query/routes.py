"""API routes for raw metric queries.

Query parameters are read as optional strings and validated by the filter
resolver, so a missing or malformed dimension is a 400 problem response
rather than a framework-level 422.
"""

from fastapi import APIRouter, Depends, Query

from comms_metrics.core.config import get_settings
from comms_metrics.core.logging import get_logger
from comms_metrics.features.metrics.schemas import MetricRecordRead, to_read_schema
from comms_metrics.features.query.deps import get_metric_store, with_query_timeout
from comms_metrics.features.query.filters import FilterRequest, resolve_filter
from comms_metrics.features.query.service import QueryEngine
from comms_metrics.features.query.store import MetricStore

logger = get_logger(__name__)

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get(
    "/{family}",
    response_model=list[MetricRecordRead],
    summary="List raw metric records",
    description="""
Return the raw records of one metric family matching the filter, ordered by
date ascending.

**Required**: `business_unit`, `start_date`, `end_date` (inclusive, YYYY-MM-DD),
and `platform` for `social` and `engagement`.

**Country**: omit or pass `GLOBAL` for all countries; any other value is an
exact match. `engagement` has no country dimension.

An empty list means no data for the range; it is not an error.

**Example**: `GET /metrics/social?platform=FACEBOOK&business_unit=ASM&start_date=2024-01-01&end_date=2024-03-31`
""",
)
async def list_metrics(
    family: str,
    business_unit: str | None = Query(None, description="Business unit key (required)."),
    platform: str | None = Query(None, description="Platform (social/engagement only)."),
    country: str | None = Query(None, description="Country code; default GLOBAL."),
    start_date: str | None = Query(None, description="Inclusive start, YYYY-MM-DD (required)."),
    end_date: str | None = Query(None, description="Inclusive end, YYYY-MM-DD (required)."),
    store: MetricStore = Depends(get_metric_store),
) -> list[MetricRecordRead]:
    """Fetch raw records for a family.

    Args:
        family: Metric family path segment.
        business_unit: Business unit filter.
        platform: Platform filter.
        country: Country filter.
        start_date: Range start.
        end_date: Range end.
        store: Metric store dependency.

    Returns:
        Matching records.
    """
    resolved = resolve_filter(
        FilterRequest(
            metric_family=family,
            business_unit=business_unit,
            platform=platform,
            country=country,
            start_date=start_date,
            end_date=end_date,
        ),
        max_range_days=get_settings().analytics_max_date_range_days,
    )
    engine = QueryEngine(store)
    records = await with_query_timeout(engine.fetch(resolved), "metrics query")
    return [to_read_schema(resolved.family, r) for r in records]
