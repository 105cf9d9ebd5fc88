"""API routes for analytics endpoints.

These endpoints return chart-ready aggregates: daily trends, business unit
comparisons, platform share of voice, country distributions, headline
totals and the recent-activity feed. Filters are validated by the filter
resolver, so bad parameters are 400 problem responses.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from comms_metrics.core.config import get_settings
from comms_metrics.core.exceptions import InvalidFilter
from comms_metrics.core.logging import get_logger
from comms_metrics.features.analytics.schemas import (
    ComparisonResponse,
    CountryDistributionResponse,
    EngagementTrendResponse,
    FamilyCountryDistributionResponse,
    PlatformBreakdownResponse,
    RecentActivityResponse,
    RecentMetricsResponse,
    TotalMetricsResponse,
    TrendResponse,
)
from comms_metrics.features.analytics.service import AnalyticsService
from comms_metrics.features.metrics.catalog import (
    BusinessUnit,
    parse_business_unit,
    parse_family,
)
from comms_metrics.features.query.deps import get_metric_store, with_query_timeout
from comms_metrics.features.query.filters import (
    FilterRequest,
    parse_date_bound,
    resolve_date_range,
    resolve_filter,
)
from comms_metrics.features.query.store import MetricStore

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _optional_business_unit(value: str | None) -> BusinessUnit | None:
    if value is None or not value.strip():
        return None
    return parse_business_unit(value)


def _required_range(start_date: str | None, end_date: str | None) -> tuple[str, str]:
    if not start_date or not end_date:
        missing = [
            name
            for name, value in (("start_date", start_date), ("end_date", end_date))
            if not value
        ]
        raise InvalidFilter(
            f"Missing required parameter(s): {', '.join(missing)}",
            details={name: "required" for name in missing},
        )
    return start_date, end_date


def _optional_bounds(
    start_date: str | None, end_date: str | None
) -> tuple[date | None, date | None]:
    start = parse_date_bound(start_date, "start_date") if start_date else None
    end = parse_date_bound(end_date, "end_date") if end_date else None
    return start, end


# =============================================================================
# Trend Endpoints
# =============================================================================


@router.get(
    "/{family}/trend",
    response_model=TrendResponse,
    summary="Daily totals for one filter",
    description="""
Sum additive fields per calendar day for one metric family.

**Required**: `business_unit`, `start_date`, `end_date`, and `platform` for
`social` and `engagement`.

**Fields**: repeat `fields` to choose what to sum (e.g. `fields=likes&fields=shares`).
Defaults to every additive field of the family. Ratios and averages
(`engagement_rate`, `bounce_rate`, `open_rate`, `avg_session_duration`) cannot be
summed and return 400.

Days without data are absent, not zero-filled.

**Example**: `GET /analytics/website/trend?business_unit=ASM&start_date=2024-01-01&end_date=2024-01-31&fields=users`
""",
)
async def get_trend(
    family: str,
    business_unit: str | None = Query(None, description="Business unit key (required)."),
    platform: str | None = Query(None, description="Platform (social/engagement only)."),
    country: str | None = Query(None, description="Country code; default GLOBAL."),
    start_date: str | None = Query(None, description="Inclusive start, YYYY-MM-DD (required)."),
    end_date: str | None = Query(None, description="Inclusive end, YYYY-MM-DD (required)."),
    fields: list[str] | None = Query(None, description="Additive fields to sum (repeatable)."),
    store: MetricStore = Depends(get_metric_store),
) -> TrendResponse:
    """Compute a daily trend.

    Args:
        family: Metric family path segment.
        business_unit: Business unit filter.
        platform: Platform filter.
        country: Country filter.
        start_date: Range start.
        end_date: Range end.
        fields: Fields to sum.
        store: Metric store dependency.

    Returns:
        Daily totals, date ascending.
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
    service = AnalyticsService(store)
    return await with_query_timeout(service.trend(resolved, fields), "trend")


@router.get(
    "/{family}/comparison",
    response_model=ComparisonResponse,
    summary="Compare daily totals across business units",
    description="""
Daily totals for the same filter, one series per business unit.

Repeat `business_unit` to choose the units to compare
(e.g. `business_unit=ASM&business_unit=KCL`). Series are returned in request
order; fetches for each unit run concurrently.

**Example**: `GET /analytics/social/comparison?platform=INSTAGRAM&business_unit=ASM&business_unit=EM&start_date=2024-01-01&end_date=2024-06-30&fields=followers`
""",
)
async def get_comparison(
    family: str,
    business_unit: list[str] | None = Query(
        None, description="Business unit keys to compare (repeatable, at least one)."
    ),
    platform: str | None = Query(None, description="Platform (social/engagement only)."),
    country: str | None = Query(None, description="Country code; default GLOBAL."),
    start_date: str | None = Query(None, description="Inclusive start, YYYY-MM-DD (required)."),
    end_date: str | None = Query(None, description="Inclusive end, YYYY-MM-DD (required)."),
    fields: list[str] | None = Query(None, description="Additive fields to sum (repeatable)."),
    store: MetricStore = Depends(get_metric_store),
) -> ComparisonResponse:
    """Compare business units over one filter.

    Args:
        family: Metric family path segment.
        business_unit: Business units to compare.
        platform: Platform filter.
        country: Country filter.
        start_date: Range start.
        end_date: Range end.
        fields: Fields to sum.
        store: Metric store dependency.

    Returns:
        One daily series per business unit.
    """
    units = list(dict.fromkeys(u for u in business_unit or [] if u.strip()))
    if not units:
        raise InvalidFilter(
            "Missing required parameter(s): business_unit",
            details={"business_unit": "required"},
        )

    max_days = get_settings().analytics_max_date_range_days
    filters = [
        resolve_filter(
            FilterRequest(
                metric_family=family,
                business_unit=unit,
                platform=platform,
                country=country,
                start_date=start_date,
                end_date=end_date,
            ),
            max_range_days=max_days,
        )
        for unit in units
    ]
    service = AnalyticsService(store)
    return await with_query_timeout(service.comparison(filters, fields), "comparison")


@router.get(
    "/engagement-trends",
    response_model=EngagementTrendResponse,
    summary="Daily engagement across all platforms",
    description="""
Daily sums of engagement counts (likes, comments, shares, saves, clicks)
across every platform.

`business_unit` is optional; omit it to include every business unit.

**Example**: `GET /analytics/engagement-trends?start_date=2024-01-01&end_date=2024-01-31`
""",
)
async def get_engagement_trends(
    start_date: str | None = Query(None, description="Inclusive start, YYYY-MM-DD (required)."),
    end_date: str | None = Query(None, description="Inclusive end, YYYY-MM-DD (required)."),
    business_unit: str | None = Query(None, description="Optional business unit filter."),
    fields: list[str] | None = Query(None, description="Engagement counts to sum (repeatable)."),
    store: MetricStore = Depends(get_metric_store),
) -> EngagementTrendResponse:
    """Compute the cross-platform engagement trend.

    Args:
        start_date: Range start.
        end_date: Range end.
        business_unit: Optional business unit filter.
        fields: Fields to sum.
        store: Metric store dependency.

    Returns:
        Daily engagement totals, date ascending.
    """
    start, end = resolve_date_range(
        *_required_range(start_date, end_date),
        max_range_days=get_settings().analytics_max_date_range_days,
    )
    service = AnalyticsService(store)
    return await with_query_timeout(
        service.engagement_trends(start, end, _optional_business_unit(business_unit), fields),
        "engagement trends",
    )


# =============================================================================
# Breakdown Endpoints
# =============================================================================


@router.get(
    "/platform-breakdown",
    response_model=PlatformBreakdownResponse,
    summary="Followers and share of voice per platform",
    description="""
Followers per platform at the latest social snapshot, with each platform's
whole-number share of the total.

Percentages are rounded half-up independently and may not sum to exactly 100.
Platforms without data on the snapshot date are omitted.
""",
)
async def get_platform_breakdown(
    business_unit: str | None = Query(None, description="Optional business unit filter."),
    store: MetricStore = Depends(get_metric_store),
) -> PlatformBreakdownResponse:
    """Compute the platform breakdown.

    Args:
        business_unit: Optional business unit filter.
        store: Metric store dependency.

    Returns:
        Platform shares at the latest snapshot.
    """
    service = AnalyticsService(store)
    return await with_query_timeout(
        service.platform_breakdown(_optional_business_unit(business_unit)),
        "platform breakdown",
    )


@router.get(
    "/country-distribution",
    response_model=CountryDistributionResponse,
    summary="Headline values per country",
    description="""
Followers, website users and newsletter recipients per country, each family
read at its own latest snapshot. GLOBAL rows are excluded from the country
rows and included in `totals`.
""",
)
async def get_country_distribution(
    business_unit: str | None = Query(None, description="Optional business unit filter."),
    store: MetricStore = Depends(get_metric_store),
) -> CountryDistributionResponse:
    """Compute the cross-family country view.

    Args:
        business_unit: Optional business unit filter.
        store: Metric store dependency.

    Returns:
        Per-country headline values.
    """
    service = AnalyticsService(store)
    return await with_query_timeout(
        service.country_distribution(_optional_business_unit(business_unit)),
        "country distribution",
    )


@router.get(
    "/{family}/country-distribution",
    response_model=FamilyCountryDistributionResponse,
    summary="Per-country shares of one measure",
    description="""
Per-country totals and whole-number shares for one additive measure.

Gauges (`followers`) use the latest snapshot inside the range; counts are
summed over the whole range. GLOBAL rows are excluded. `engagement` has no
country dimension and returns 400.

**Example**: `GET /analytics/website/country-distribution?field=users&start_date=2024-01-01&end_date=2024-01-31`
""",
)
async def get_family_country_distribution(
    family: str,
    field: str = Query(..., description="Additive measure to distribute."),
    start_date: str | None = Query(None, description="Inclusive start, YYYY-MM-DD (required)."),
    end_date: str | None = Query(None, description="Inclusive end, YYYY-MM-DD (required)."),
    business_unit: str | None = Query(None, description="Optional business unit filter."),
    store: MetricStore = Depends(get_metric_store),
) -> FamilyCountryDistributionResponse:
    """Compute a per-family country distribution.

    Args:
        family: Metric family path segment.
        field: Measure to distribute.
        start_date: Range start.
        end_date: Range end.
        business_unit: Optional business unit filter.
        store: Metric store dependency.

    Returns:
        Country shares ordered by total descending.
    """
    metric_family = parse_family(family)
    start, end = resolve_date_range(
        *_required_range(start_date, end_date),
        max_range_days=get_settings().analytics_max_date_range_days,
    )
    service = AnalyticsService(store)
    return await with_query_timeout(
        service.family_country_distribution(
            metric_family, field, start, end, _optional_business_unit(business_unit)
        ),
        "country distribution",
    )


# =============================================================================
# Headline Endpoints
# =============================================================================


@router.get(
    "/total-metrics",
    response_model=TotalMetricsResponse,
    summary="Headline totals",
    description="""
Total followers, posts, website users and newsletter recipients, each at its
family's latest snapshot. Totals are zero for families without data.
""",
)
async def get_total_metrics(
    business_unit: str | None = Query(None, description="Optional business unit filter."),
    store: MetricStore = Depends(get_metric_store),
) -> TotalMetricsResponse:
    """Compute headline totals.

    Args:
        business_unit: Optional business unit filter.
        store: Metric store dependency.

    Returns:
        Headline totals.
    """
    service = AnalyticsService(store)
    return await with_query_timeout(
        service.total_metrics(_optional_business_unit(business_unit)),
        "total metrics",
    )


@router.get(
    "/recent-metrics",
    response_model=RecentMetricsResponse,
    summary="Most recent raw records",
    description="""
Most recent raw records of one family, newest first.

Defaults: the window ends today and covers the configured number of days
(30); `limit` defaults to the configured recent limit (50).

**Example**: `GET /analytics/recent-metrics?family=social&limit=10`
""",
)
async def get_recent_metrics(
    family: str = Query(..., description="Metric family."),
    start_date: str | None = Query(None, description="Inclusive start, YYYY-MM-DD."),
    end_date: str | None = Query(None, description="Inclusive end, YYYY-MM-DD."),
    limit: int | None = Query(None, ge=1, le=1000, description="Maximum records (1-1000)."),
    store: MetricStore = Depends(get_metric_store),
) -> RecentMetricsResponse:
    """List recent records.

    Args:
        family: Metric family.
        start_date: Optional range start.
        end_date: Optional range end.
        limit: Optional record limit.
        store: Metric store dependency.

    Returns:
        Recent records, newest first.
    """
    metric_family = parse_family(family)
    service = AnalyticsService(store)
    return await with_query_timeout(
        service.recent_metrics(metric_family, *_optional_bounds(start_date, end_date), limit),
        "recent metrics",
    )


@router.get(
    "/recent-activity",
    response_model=RecentActivityResponse,
    summary="Recent follower changes and engagement",
    description="""
Activity feed mixing the newest social snapshots and engagement records,
newest first.

- `followers` items compare a snapshot with the latest snapshot of the same
  platform, business unit and country in the 7 days before it. `value` is the
  absolute change; without a prior snapshot it is the follower count and
  `change` is `increase`.
- `engagement` items carry likes + comments + shares and are always `increase`.

The window defaults as for `/analytics/recent-metrics`; an inverted window is 400.

**Example**: `GET /analytics/recent-activity?limit=5`
""",
)
async def get_recent_activity(
    start_date: str | None = Query(None, description="Inclusive start, YYYY-MM-DD."),
    end_date: str | None = Query(None, description="Inclusive end, YYYY-MM-DD."),
    limit: int = Query(5, ge=1, le=100, description="Maximum items (1-100)."),
    store: MetricStore = Depends(get_metric_store),
) -> RecentActivityResponse:
    """Build the recent-activity feed.

    Args:
        start_date: Optional range start.
        end_date: Optional range end.
        limit: Maximum items.
        store: Metric store dependency.

    Returns:
        Activity items, newest first.
    """
    service = AnalyticsService(store)
    return await with_query_timeout(
        service.recent_activity(*_optional_bounds(start_date, end_date), limit=limit),
        "recent activity",
    )
