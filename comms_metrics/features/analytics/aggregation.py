"""Grouping and summation over raw metric records.

Pure functions over already-fetched records; safe to call from any thread.

Only additive measures (counts, and gauges within a snapshot) may be summed.
Asking for a ratio, average, or unknown field raises `InvalidAggregation`.
A missing (None) measure counts as 0.

Output order depends only on the grouping key, never on input order:
dates ascending, platforms in `Platform` declaration order, countries by
total descending then code.

Aggregation is not idempotent: feeding output rows back in as records is
undefined. Apply it once, to raw records.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from comms_metrics.core.exceptions import InvalidAggregation
from comms_metrics.features.metrics.catalog import (
    FAMILY_MEASURES,
    GLOBAL_COUNTRY,
    MetricFamily,
    Platform,
    family_has_country,
    field_kind,
    is_additive,
    parse_platform,
)

_PLATFORM_ORDER = {platform: index for index, platform in enumerate(Platform)}


@dataclass(frozen=True)
class DateAggregate:
    """Sums for one calendar day.

    Attributes:
        date: The day.
        totals: Field name -> sum over that day's records.
        record_count: Number of input records on that day.
    """

    date: date
    totals: dict[str, int]
    record_count: int


def record_day(record: Any) -> date:
    """Calendar day of a record, ignoring any time-of-day component."""
    value = record.date
    if isinstance(value, datetime):
        return value.date()
    return value  # type: ignore[no-any-return]


def measure_value(record: Any, field: str) -> int:
    """Read a measure as an int, treating a missing value as 0."""
    value = getattr(record, field, None)
    return 0 if value is None else int(value)


def require_additive(family: MetricFamily, fields: Iterable[str]) -> tuple[str, ...]:
    """Validate that every field is additive for `family`.

    Args:
        family: Metric family the records belong to.
        fields: Requested field names.

    Returns:
        The fields, de-duplicated, in request order.

    Raises:
        InvalidAggregation: On a ratio, average, or unknown field.
    """
    requested = tuple(dict.fromkeys(fields))
    for name in requested:
        if is_additive(family, name):
            continue
        kind = field_kind(family, name)
        reason = (
            f"'{name}' is a {kind.value} and cannot be summed"
            if kind is not None
            else f"'{name}' is not a {family.value} measure "
            f"(known: {', '.join(FAMILY_MEASURES[family])})"
        )
        raise InvalidAggregation(
            f"Cannot aggregate {family.value} field {name!r}",
            details={name: reason},
        )
    return requested


def require_country_family(family: MetricFamily) -> None:
    """Raise `InvalidAggregation` unless `family` has a country dimension."""
    if not family_has_country(family):
        raise InvalidAggregation(
            f"{family.value} metrics have no country dimension",
            details={"family": f"{family.value} cannot be grouped by country"},
        )


def aggregate_by_date(
    records: Iterable[Any],
    additive_fields: Sequence[str],
    *,
    family: MetricFamily,
) -> list[DateAggregate]:
    """Group records by calendar day and sum additive fields.

    Fields not listed are ignored, never copied or averaged.

    Args:
        records: Raw records of `family`.
        additive_fields: Fields to sum.
        family: Family of the records; decides which fields are additive.

    Returns:
        One aggregate per distinct input day, ascending. Empty for empty input.

    Raises:
        InvalidAggregation: If any field is not additive for `family`.
    """
    fields = require_additive(family, additive_fields)

    totals: dict[date, dict[str, int]] = {}
    counts: dict[date, int] = defaultdict(int)
    for record in records:
        day = record_day(record)
        bucket = totals.setdefault(day, dict.fromkeys(fields, 0))
        for name in fields:
            bucket[name] += measure_value(record, name)
        counts[day] += 1

    return [
        DateAggregate(date=day, totals=totals[day], record_count=counts[day])
        for day in sorted(totals)
    ]


def snapshot_date(records: Iterable[Any]) -> date | None:
    """Most recent day present in `records`, or None when empty."""
    return max((record_day(r) for r in records), default=None)


def aggregate_by_platform(
    records: Iterable[Any],
    field: str,
    *,
    at_date: date | None = None,
) -> dict[Platform, int]:
    """Sum a social measure per platform on the snapshot date.

    The snapshot date is `at_date`, or the most recent date in the input
    across all platforms. Platforms with no record on that date are omitted,
    not zero-filled.

    Args:
        records: Raw social records.
        field: Additive social measure (e.g. `followers`).
        at_date: Explicit snapshot date.

    Returns:
        Platform -> total, in `Platform` declaration order.

    Raises:
        InvalidAggregation: If `field` is not additive for social metrics.
    """
    require_additive(MetricFamily.SOCIAL, [field])

    rows = list(records)
    snapshot = at_date if at_date is not None else snapshot_date(rows)
    if snapshot is None:
        return {}

    totals: dict[Platform, int] = {}
    for record in rows:
        if record_day(record) != snapshot:
            continue
        platform = parse_platform(record.platform)
        totals[platform] = totals.get(platform, 0) + measure_value(record, field)

    ordered = sorted(totals, key=lambda p: (_PLATFORM_ORDER[p], p.value))
    return {platform: totals[platform] for platform in ordered}


def aggregate_by_country(
    records: Iterable[Any],
    field: str,
    *,
    family: MetricFamily,
) -> dict[str, int]:
    """Sum a measure per country, excluding GLOBAL rows.

    GLOBAL rows are aggregate entries, not a country, so they are left out
    of the breakdown entirely. Records without a country count as GLOBAL.

    Args:
        records: Raw records of `family`.
        field: Additive measure.
        family: Family of the records; must have a country dimension.

    Returns:
        Country code -> total, ordered by total descending then code.

    Raises:
        InvalidAggregation: If the family has no country dimension or the
            field is not additive.
    """
    require_country_family(family)
    require_additive(family, [field])

    totals: dict[str, int] = {}
    for record in records:
        country = (getattr(record, "country", None) or GLOBAL_COUNTRY).upper()
        if country == GLOBAL_COUNTRY:
            continue
        totals[country] = totals.get(country, 0) + measure_value(record, field)

    ordered = sorted(totals, key=lambda c: (-totals[c], c))
    return {country: totals[country] for country in ordered}
