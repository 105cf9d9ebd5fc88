"""Service layer for analytics operations.

Composes store fetches with the pure aggregation and derived-analytics
functions. Nothing here talks SQL; every read goes through `MetricStore`.
"""

import asyncio
from collections.abc import Sequence
from datetime import date, timedelta

from comms_metrics.core.config import get_settings
from comms_metrics.core.exceptions import InvalidFilter
from comms_metrics.core.logging import get_logger
from comms_metrics.features.analytics.aggregation import (
    DateAggregate,
    aggregate_by_date,
    aggregate_by_platform,
    record_day,
    require_additive,
    require_country_family,
    snapshot_date,
)
from comms_metrics.features.analytics.computations import (
    ACTIVITY_LOOKBACK_DAYS,
    country_distribution,
    engagement_trend,
    growth_series,
    latest_snapshot,
    recent_activity,
    share_of_voice,
    snapshot_totals,
)
from comms_metrics.features.analytics.schemas import (
    ActivityItemRead,
    ComparisonResponse,
    ComparisonSeries,
    CountryDistributionResponse,
    CountryMetrics,
    CountryShareItem,
    EngagementTrendResponse,
    FamilyCountryDistributionResponse,
    PlatformBreakdownResponse,
    PlatformShare,
    RecentActivityResponse,
    RecentMetricsResponse,
    TotalMetricsResponse,
    TrendPoint,
    TrendResponse,
)
from comms_metrics.features.metrics.catalog import (
    BusinessUnit,
    MetricFamily,
    additive_fields,
    is_gauge,
)
from comms_metrics.features.metrics.models import MetricRecord
from comms_metrics.features.metrics.schemas import to_read_schema
from comms_metrics.features.query.filters import ResolvedFilter, resolve_date_range
from comms_metrics.features.query.service import QueryEngine
from comms_metrics.features.query.store import MetricStore

logger = get_logger(__name__)

# Headline measure per family in the cross-family country view
_COUNTRY_VIEW_FIELDS = {
    MetricFamily.SOCIAL: "followers",
    MetricFamily.WEBSITE: "users",
    MetricFamily.NEWSLETTER: "recipients",
}


def _points(aggregates: Sequence[DateAggregate]) -> list[TrendPoint]:
    return [
        TrendPoint(date=a.date, totals=dict(a.totals), record_count=a.record_count, growth=g)
        for a, g in zip(aggregates, growth_series(aggregates), strict=True)
    ]


class AnalyticsService:
    """Service for chart-ready metric analytics.

    Each method performs its store reads, then aggregates the complete
    record lists. Independent reads are awaited together.
    """

    def __init__(self, store: MetricStore) -> None:
        """Initialize analytics service.

        Args:
            store: Persistence collaborator.
        """
        self.store = store
        self.engine = QueryEngine(store)
        self.settings = get_settings()

    # =========================================================================
    # Trends
    # =========================================================================

    async def trend(
        self,
        resolved: ResolvedFilter,
        fields: Sequence[str] | None = None,
    ) -> TrendResponse:
        """Daily totals of additive fields for one filter.

        Args:
            resolved: Validated filter.
            fields: Fields to sum. Defaults to every additive field of the family.

        Returns:
            Trend rows, date ascending.

        Raises:
            InvalidAggregation: If a field is not additive.
            StoreUnavailable: If the store fails.
        """
        chosen = self._trend_fields(resolved.family, fields)
        records = await self.engine.fetch(resolved)
        aggregates = aggregate_by_date(records, chosen, family=resolved.family)

        logger.info(
            "analytics.trend_computed",
            family=resolved.family.value,
            business_unit=resolved.business_unit.value,
            record_count=len(records),
            point_count=len(aggregates),
        )

        return TrendResponse(
            family=resolved.family,
            business_unit=resolved.business_unit,
            platform=resolved.platform,
            country=resolved.country,
            start_date=resolved.start_date,
            end_date=resolved.end_date,
            fields=list(chosen),
            points=_points(aggregates),
        )

    async def comparison(
        self,
        filters: Sequence[ResolvedFilter],
        fields: Sequence[str] | None = None,
    ) -> ComparisonResponse:
        """Daily totals for the same filter across several business units.

        Args:
            filters: One resolved filter per business unit. All share family,
                platform, country and date range.
            fields: Fields to sum. Defaults to every additive field.

        Returns:
            One series per filter, in the order given.

        Raises:
            InvalidFilter: If no filters are given.
            InvalidAggregation: If a field is not additive.
            StoreUnavailable: If any fetch fails.
        """
        if not filters:
            raise InvalidFilter(
                "At least one business unit is required",
                details={"business_unit": "field required"},
            )
        first = filters[0]
        chosen = self._trend_fields(first.family, fields)

        results = await self.engine.fetch_many(filters)
        series = [
            ComparisonSeries(
                business_unit=resolved.business_unit,
                points=_points(aggregate_by_date(records, chosen, family=resolved.family)),
            )
            for resolved, records in zip(filters, results, strict=True)
        ]

        logger.info(
            "analytics.comparison_computed",
            family=first.family.value,
            business_units=[f.business_unit.value for f in filters],
            record_count=sum(len(r) for r in results),
        )

        return ComparisonResponse(
            family=first.family,
            platform=first.platform,
            country=first.country,
            start_date=first.start_date,
            end_date=first.end_date,
            fields=list(chosen),
            series=series,
        )

    async def engagement_trends(
        self,
        start_date: date,
        end_date: date,
        business_unit: BusinessUnit | None = None,
        fields: Sequence[str] | None = None,
    ) -> EngagementTrendResponse:
        """Daily engagement totals summed across all platforms.

        Raises:
            InvalidAggregation: If a field is not additive.
            StoreUnavailable: If the store fails.
        """
        chosen = self._trend_fields(MetricFamily.ENGAGEMENT, fields)
        records = await self.store.fetch(
            MetricFamily.ENGAGEMENT,
            start_date=start_date,
            end_date=end_date,
            business_unit=business_unit,
        )
        aggregates = engagement_trend(records, chosen)

        logger.info(
            "analytics.engagement_trends_computed",
            business_unit=business_unit.value if business_unit else None,
            record_count=len(records),
            point_count=len(aggregates),
        )

        return EngagementTrendResponse(
            business_unit=business_unit,
            start_date=start_date,
            end_date=end_date,
            fields=list(chosen),
            points=_points(aggregates),
        )

    # =========================================================================
    # Breakdowns
    # =========================================================================

    async def platform_breakdown(
        self,
        business_unit: BusinessUnit | None = None,
    ) -> PlatformBreakdownResponse:
        """Followers per platform and share of voice at the latest social snapshot.

        Raises:
            StoreUnavailable: If the store fails.
        """
        snapshot, records = await self._latest_records(MetricFamily.SOCIAL, business_unit)
        if snapshot is None:
            return PlatformBreakdownResponse(business_unit=business_unit)

        followers = aggregate_by_platform(records, "followers", at_date=snapshot)
        shares = share_of_voice(followers)

        logger.info(
            "analytics.platform_breakdown_computed",
            business_unit=business_unit.value if business_unit else None,
            snapshot_date=str(snapshot),
            platform_count=len(followers),
        )

        return PlatformBreakdownResponse(
            business_unit=business_unit,
            snapshot_date=snapshot,
            total_followers=sum(followers.values()),
            platforms=[
                PlatformShare(platform=p, followers=total, percentage=shares[p])
                for p, total in followers.items()
            ],
        )

    async def family_country_distribution(
        self,
        family: MetricFamily,
        field: str,
        start_date: date,
        end_date: date,
        business_unit: BusinessUnit | None = None,
    ) -> FamilyCountryDistributionResponse:
        """Per-country shares of one measure within a date range.

        Gauges are point-in-time, so they use the latest snapshot inside the
        range. Counts are summed over the whole range.

        Raises:
            InvalidAggregation: If the family has no country dimension or the
                field is not additive.
            StoreUnavailable: If the store fails.
        """
        require_country_family(family)
        require_additive(family, [field])

        records = await self.store.fetch(
            family,
            start_date=start_date,
            end_date=end_date,
            business_unit=business_unit,
        )

        snapshot: date | None = None
        if is_gauge(family, field):
            snapshot = snapshot_date(records)
            records = latest_snapshot(records)

        shares = country_distribution(records, field, family=family)

        logger.info(
            "analytics.country_distribution_computed",
            family=family.value,
            field=field,
            record_count=len(records),
            country_count=len(shares),
        )

        return FamilyCountryDistributionResponse(
            family=family,
            field=field,
            business_unit=business_unit,
            start_date=start_date,
            end_date=end_date,
            snapshot_date=snapshot,
            countries=[CountryShareItem.model_validate(s) for s in shares],
        )

    async def country_distribution(
        self,
        business_unit: BusinessUnit | None = None,
    ) -> CountryDistributionResponse:
        """Followers, website users and newsletter recipients per country.

        Each family is read at its own latest snapshot.

        Raises:
            StoreUnavailable: If the store fails.
        """
        families = list(_COUNTRY_VIEW_FIELDS)
        snapshots = await asyncio.gather(
            *(self._latest_records(f, business_unit) for f in families)
        )
        by_family = dict(zip(families, snapshots, strict=True))

        per_country: dict[MetricFamily, dict[str, int]] = {}
        totals: dict[MetricFamily, int] = {}
        for family, (_, records) in by_family.items():
            field = _COUNTRY_VIEW_FIELDS[family]
            per_country[family] = {
                s.country: s.total for s in country_distribution(records, field, family=family)
            }
            totals[family] = snapshot_totals(records, [field], family=family)[field]

        countries = sorted(
            set().union(*(c.keys() for c in per_country.values())),
            key=lambda c: (-per_country[MetricFamily.SOCIAL].get(c, 0), c),
        )

        return CountryDistributionResponse(
            business_unit=business_unit,
            social_snapshot_date=by_family[MetricFamily.SOCIAL][0],
            website_snapshot_date=by_family[MetricFamily.WEBSITE][0],
            newsletter_snapshot_date=by_family[MetricFamily.NEWSLETTER][0],
            totals=CountryMetrics(
                country="GLOBAL",
                followers=totals[MetricFamily.SOCIAL],
                website_users=totals[MetricFamily.WEBSITE],
                newsletter_recipients=totals[MetricFamily.NEWSLETTER],
            ),
            countries=[
                CountryMetrics(
                    country=country,
                    followers=per_country[MetricFamily.SOCIAL].get(country, 0),
                    website_users=per_country[MetricFamily.WEBSITE].get(country, 0),
                    newsletter_recipients=per_country[MetricFamily.NEWSLETTER].get(country, 0),
                )
                for country in countries
            ],
        )

    # =========================================================================
    # Headlines
    # =========================================================================

    async def total_metrics(
        self,
        business_unit: BusinessUnit | None = None,
    ) -> TotalMetricsResponse:
        """Headline totals at each family's latest snapshot.

        Raises:
            StoreUnavailable: If the store fails.
        """
        (social_date, social), (website_date, website), (newsletter_date, newsletter) = (
            await asyncio.gather(
                self._latest_records(MetricFamily.SOCIAL, business_unit),
                self._latest_records(MetricFamily.WEBSITE, business_unit),
                self._latest_records(MetricFamily.NEWSLETTER, business_unit),
            )
        )

        social_totals = snapshot_totals(
            social, ["followers", "number_of_posts"], family=MetricFamily.SOCIAL
        )
        website_totals = snapshot_totals(website, ["users"], family=MetricFamily.WEBSITE)
        newsletter_totals = snapshot_totals(
            newsletter, ["recipients"], family=MetricFamily.NEWSLETTER
        )

        logger.info(
            "analytics.total_metrics_computed",
            business_unit=business_unit.value if business_unit else None,
            social_snapshot_date=str(social_date) if social_date else None,
        )

        return TotalMetricsResponse(
            business_unit=business_unit,
            total_followers=social_totals["followers"],
            total_posts=social_totals["number_of_posts"],
            total_website_users=website_totals["users"],
            total_newsletter_recipients=newsletter_totals["recipients"],
            social_snapshot_date=social_date,
            website_snapshot_date=website_date,
            newsletter_snapshot_date=newsletter_date,
        )

    async def recent_metrics(
        self,
        family: MetricFamily,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int | None = None,
    ) -> RecentMetricsResponse:
        """Most recent raw records of a family, newest first.

        Defaults to the configured window ending today and the configured limit.

        Raises:
            InvalidDateRange: If the window, after defaults, is inverted or too long.
            StoreUnavailable: If the store fails.
        """
        start, end = self._recent_window(start_date, end_date)
        size = limit or self.settings.analytics_recent_limit

        records = await self.store.recent(family, start_date=start, end_date=end, limit=size)
        return RecentMetricsResponse(
            family=family,
            start_date=start,
            end_date=end,
            limit=size,
            records=[to_read_schema(family, r) for r in records],
        )

    async def recent_activity(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 5,
    ) -> RecentActivityResponse:
        """Latest follower changes and engagement totals as one feed.

        Reads the `limit` newest social and engagement records in the window,
        then the social snapshots up to a week before them to find each
        record's previous follower count.

        Raises:
            InvalidDateRange: If the window, after defaults, is inverted or too long.
            StoreUnavailable: If the store fails.
        """
        start, end = self._recent_window(start_date, end_date)
        social, engagement = await asyncio.gather(
            self.store.recent(MetricFamily.SOCIAL, start_date=start, end_date=end, limit=limit),
            self.store.recent(
                MetricFamily.ENGAGEMENT, start_date=start, end_date=end, limit=limit
            ),
        )

        prior: list[MetricRecord] = []
        if social:
            days = [record_day(r) for r in social]
            prior = await self.store.fetch(
                MetricFamily.SOCIAL,
                start_date=min(days) - timedelta(days=ACTIVITY_LOOKBACK_DAYS),
                end_date=max(days) - timedelta(days=1),
            )

        items = recent_activity(social, prior, engagement, limit=limit)

        logger.info(
            "analytics.recent_activity_computed",
            social_count=len(social),
            engagement_count=len(engagement),
            item_count=len(items),
        )

        return RecentActivityResponse(
            start_date=start,
            end_date=end,
            limit=limit,
            items=[ActivityItemRead.model_validate(item) for item in items],
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _trend_fields(family: MetricFamily, fields: Sequence[str] | None) -> tuple[str, ...]:
        if not fields:
            return additive_fields(family)
        return require_additive(family, fields)

    def _recent_window(
        self,
        start_date: date | None,
        end_date: date | None,
    ) -> tuple[date, date]:
        """Fill in the default window, then validate it like any other range."""
        end = end_date or date.today()
        start = start_date or end - timedelta(days=self.settings.analytics_recent_window_days)
        return resolve_date_range(
            start, end, max_range_days=self.settings.analytics_max_date_range_days
        )

    async def _latest_records(
        self,
        family: MetricFamily,
        business_unit: BusinessUnit | None,
    ) -> tuple[date | None, list[MetricRecord]]:
        """Records of `family` on its latest date, with that date."""
        latest = await self.store.latest_date(family, business_unit=business_unit)
        if latest is None:
            return None, []
        records = await self.store.fetch(
            family,
            start_date=latest,
            end_date=latest,
            business_unit=business_unit,
        )
        return latest, records

