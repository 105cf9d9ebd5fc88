"""Derived analytics built on the aggregator.

Percentages are whole numbers rounded half-up, each one independently.
They are not renormalized, so a set of shares may sum to 99 or 101.
Growth rates are percentages rounded to two decimals.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Literal, TypeVar

from comms_metrics.features.analytics.aggregation import (
    DateAggregate,
    aggregate_by_country,
    aggregate_by_date,
    measure_value,
    record_day,
    require_additive,
    snapshot_date,
)
from comms_metrics.features.metrics.catalog import (
    BusinessUnit,
    MetricFamily,
    Platform,
    additive_fields,
)


@dataclass(frozen=True)
class CountryShare:
    """One country's slice of a distribution."""

    country: str
    total: int
    percentage: int


def percent_of(part: int, whole: int) -> int:
    """`part / whole * 100` rounded half-up to an integer; 0 when `whole` is 0."""
    if whole == 0:
        return 0
    ratio = Decimal(part) * 100 / Decimal(whole)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def share_of_voice(platform_totals: Mapping[Platform, int]) -> dict[Platform, int]:
    """Percentage of the grand total held by each platform.

    Args:
        platform_totals: Platform -> total, e.g. from `aggregate_by_platform`.

    Returns:
        Platform -> whole-number percentage, in the input order. All zeros
        when the grand total is 0.

    Example:
        >>> share_of_voice({Platform.FACEBOOK: 100, Platform.INSTAGRAM: 300})
        {<Platform.FACEBOOK: 'FACEBOOK'>: 25, <Platform.INSTAGRAM: 'INSTAGRAM'>: 75}
    """
    grand_total = sum(platform_totals.values())
    return {
        platform: percent_of(total, grand_total) for platform, total in platform_totals.items()
    }


def engagement_trend(
    records: Iterable[Any],
    fields: Sequence[str] | None = None,
) -> list[DateAggregate]:
    """Per-day engagement totals across all platforms.

    Args:
        records: Raw engagement records, any platforms.
        fields: Fields to sum. Defaults to every additive engagement field.

    Returns:
        One row per day, ascending.

    Raises:
        InvalidAggregation: If a requested field is not additive.
    """
    chosen = fields if fields else additive_fields(MetricFamily.ENGAGEMENT)
    return aggregate_by_date(records, chosen, family=MetricFamily.ENGAGEMENT)


def country_distribution(
    records: Iterable[Any],
    field: str,
    *,
    family: MetricFamily,
) -> list[CountryShare]:
    """Per-country totals with their share of the per-country sum.

    GLOBAL rows are excluded from both the totals and the denominator.

    Raises:
        InvalidAggregation: If the family has no country dimension or the
            field is not additive.
    """
    totals = aggregate_by_country(records, field, family=family)
    grand_total = sum(totals.values())
    return [
        CountryShare(country=country, total=total, percentage=percent_of(total, grand_total))
        for country, total in totals.items()
    ]


R = TypeVar("R")


def latest_snapshot(records: Iterable[R]) -> list[R]:
    """Records on the most recent day in the set, in input order."""
    rows = list(records)
    latest = snapshot_date(rows)
    if latest is None:
        return []
    return [r for r in rows if record_day(r) == latest]


def snapshot_totals(
    records: Iterable[Any],
    fields: Sequence[str],
    *,
    family: MetricFamily,
) -> dict[str, int]:
    """Headline sums of `fields` over the most recent day in the set.

    Returns zeros for every field when `records` is empty.

    Raises:
        InvalidAggregation: If a field is not additive for `family`.
    """
    names = require_additive(family, fields)
    snapshot = latest_snapshot(records)
    return {name: sum(measure_value(r, name) for r in snapshot) for name in names}


# =============================================================================
# Growth
# =============================================================================


def growth_rate(previous: int, current: int) -> float:
    """Percentage change from `previous` to `current`, to two decimals.

    A zero `previous` has no defined rate and gives 0.0.
    """
    if previous == 0:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def growth_series(aggregates: Sequence[DateAggregate]) -> list[dict[str, float]]:
    """Growth of every total against the previous point in the series.

    Points are compared with the previous row present, not the previous
    calendar day. The first point is 0.0 for every field.

    Example:
        >>> rows = [DateAggregate(date(2024, 1, 1), {"users": 100}, 1),
        ...         DateAggregate(date(2024, 1, 2), {"users": 150}, 1)]
        >>> growth_series(rows)
        [{'users': 0.0}, {'users': 50.0}]
    """
    rates: list[dict[str, float]] = []
    previous: Mapping[str, int] | None = None
    for aggregate in aggregates:
        if previous is None:
            rates.append(dict.fromkeys(aggregate.totals, 0.0))
        else:
            rates.append(
                {
                    name: growth_rate(previous.get(name, 0), total)
                    for name, total in aggregate.totals.items()
                }
            )
        previous = aggregate.totals
    return rates


# =============================================================================
# Recent activity
# =============================================================================

ACTIVITY_LOOKBACK_DAYS = 7


@dataclass(frozen=True)
class ActivityItem:
    """One entry of the recent-activity feed.

    Attributes:
        kind: `followers` for social snapshots, `engagement` for interaction counts.
        value: Follower change against the prior snapshot (absolute), the
            follower count when there is none, or likes + comments + shares.
        change: Direction of the follower change; engagement is always `increase`.
    """

    kind: Literal["followers", "engagement"]
    date: date
    platform: Platform
    business_unit: BusinessUnit
    country: str | None
    value: int
    change: Literal["increase", "decrease"]


def _prior_snapshot(record: Any, candidates: Iterable[Any]) -> Any | None:
    """Latest candidate with the same platform, unit and country in the lookback window."""
    day = record_day(record)
    window_start = day - timedelta(days=ACTIVITY_LOOKBACK_DAYS)
    matches = [
        c
        for c in candidates
        if c.platform == record.platform
        and c.business_unit == record.business_unit
        and c.country == record.country
        and window_start <= record_day(c) < day
    ]
    return max(matches, key=record_day, default=None)


def _follower_activity(record: Any, prior: Any | None) -> ActivityItem:
    current = measure_value(record, "followers")
    change: Literal["increase", "decrease"] = "increase"
    if prior is None:
        value = current
    else:
        previous = measure_value(prior, "followers")
        value = abs(current - previous)
        # A missing follower count never counts as growth
        if getattr(record, "followers", None) is None or current < previous:
            change = "decrease"
    return ActivityItem(
        kind="followers",
        date=record_day(record),
        platform=Platform(record.platform),
        business_unit=BusinessUnit(record.business_unit),
        country=record.country,
        value=value,
        change=change,
    )


def recent_activity(
    social_records: Iterable[Any],
    prior_records: Iterable[Any],
    engagement_records: Iterable[Any],
    *,
    limit: int = 5,
) -> list[ActivityItem]:
    """Merge recent follower changes and engagement into one feed.

    Each social record is compared with the latest `prior_records` entry for
    the same platform, business unit and country dated in the
    `ACTIVITY_LOOKBACK_DAYS` before it. A record with no prior snapshot
    counts as an increase by its full follower count.

    Args:
        social_records: Most recent social snapshots.
        prior_records: Social snapshots to search for the previous value.
        engagement_records: Most recent engagement records.
        limit: Maximum items returned.

    Returns:
        Items newest first; on the same day follower items come before engagement.
    """
    candidates = list(prior_records)
    items = [_follower_activity(r, _prior_snapshot(r, candidates)) for r in social_records]
    items.extend(
        ActivityItem(
            kind="engagement",
            date=record_day(r),
            platform=Platform(r.platform),
            business_unit=BusinessUnit(r.business_unit),
            country=None,
            value=sum(measure_value(r, name) for name in ("likes", "comments", "shares")),
            change="increase",
        )
        for r in engagement_records
    )
    items.sort(key=lambda item: item.date, reverse=True)
    return items[:limit]
