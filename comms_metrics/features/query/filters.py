"""Filter resolution: raw request dimensions -> fully-resolved, immutable filter.

Rules:
- metric_family, business_unit, start_date and end_date are required.
- platform is required for social/engagement and contradictory otherwise.
- country absent or GLOBAL means no country constraint (`country=None`).
- Dates are ISO calendar dates; an inverted range is rejected.
"""

from dataclasses import dataclass
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from comms_metrics.core.exceptions import InvalidDateRange, InvalidFilter
from comms_metrics.features.metrics.catalog import (
    BusinessUnit,
    MetricFamily,
    Platform,
    family_has_country,
    family_has_platform,
    normalize_country,
    parse_business_unit,
    parse_family,
    parse_platform,
)


class FilterRequest(BaseModel):
    """Unvalidated filter dimensions as received from a caller.

    Every field is optional here; `resolve_filter` decides what is required.
    """

    model_config = ConfigDict(frozen=True)

    metric_family: str | MetricFamily | None = Field(
        None, description="social, engagement, website or newsletter."
    )
    platform: str | Platform | None = Field(
        None, description="Required for social and engagement."
    )
    business_unit: str | BusinessUnit | None = Field(None, description="Business unit key.")
    country: str | None = Field(
        None, description="Country code; absent or GLOBAL = all countries."
    )
    start_date: str | date | None = Field(None, description="Inclusive start, YYYY-MM-DD.")
    end_date: str | date | None = Field(None, description="Inclusive end, YYYY-MM-DD.")


@dataclass(frozen=True)
class ResolvedFilter:
    """A validated filter with no ambiguous optional fields.

    Attributes:
        family: Metric family to query.
        business_unit: Business unit constraint (always applied).
        platform: Platform constraint; set exactly when the family has platforms.
        country: Exact country constraint, or None for no constraint.
        start_date: Inclusive range start.
        end_date: Inclusive range end.
    """

    family: MetricFamily
    business_unit: BusinessUnit
    platform: Platform | None
    country: str | None
    start_date: date
    end_date: date

    @property
    def days(self) -> int:
        """Number of calendar days covered, inclusive."""
        return (self.end_date - self.start_date).days + 1


def parse_date_bound(value: str | date, name: str) -> date:
    """Parse one date bound.

    Accepts `date` objects, ISO dates, and ISO datetimes (truncated to the day).

    Raises:
        InvalidDateRange: If the value is not a recognizable date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError as e:
        raise InvalidDateRange(
            f"Could not parse {name} '{value}'",
            details={name: "expected an ISO date (YYYY-MM-DD)"},
        ) from e


def resolve_date_range(
    start: str | date,
    end: str | date,
    max_range_days: int | None = None,
) -> tuple[date, date]:
    """Parse and validate an inclusive date range.

    Raises:
        InvalidDateRange: On unparseable bounds, `start > end`, or a range
            longer than `max_range_days`.
    """
    start_date = parse_date_bound(start, "start_date")
    end_date = parse_date_bound(end, "end_date")

    if start_date > end_date:
        raise InvalidDateRange(
            f"start_date {start_date} is after end_date {end_date}",
            details={"end_date": "must be on or after start_date"},
        )

    if max_range_days is not None and (end_date - start_date).days + 1 > max_range_days:
        raise InvalidDateRange(
            f"Date range exceeds the maximum of {max_range_days} days",
            details={"end_date": f"range must cover at most {max_range_days} days"},
        )

    return start_date, end_date


def resolve_filter(
    request: FilterRequest,
    max_range_days: int | None = None,
) -> ResolvedFilter:
    """Validate and normalize raw filter dimensions.

    Args:
        request: Raw dimensions.
        max_range_days: Optional cap on the inclusive range length.

    Returns:
        Immutable resolved filter.

    Raises:
        InvalidFilter: Missing, unknown, or contradictory dimension.
        InvalidDateRange: Unparseable, inverted, or oversized date range.
    """
    missing = [
        name
        for name in ("metric_family", "business_unit", "start_date", "end_date")
        if _is_blank(getattr(request, name))
    ]
    raw_family, raw_unit = request.metric_family, request.business_unit
    raw_start, raw_end = request.start_date, request.end_date
    if missing or raw_family is None or raw_unit is None or raw_start is None or raw_end is None:
        raise InvalidFilter(
            f"Missing required parameter(s): {', '.join(missing)}",
            details={name: "required" for name in missing},
        )

    family = parse_family(raw_family)
    business_unit = parse_business_unit(raw_unit)

    platform: Platform | None = None
    if family_has_platform(family):
        raw_platform = request.platform
        if raw_platform is None or _is_blank(raw_platform):
            raise InvalidFilter(
                f"platform is required for {family.value} metrics",
                details={"platform": "required"},
            )
        platform = parse_platform(raw_platform)
    elif not _is_blank(request.platform):
        raise InvalidFilter(
            f"{family.value} metrics have no platform dimension",
            details={"platform": f"not applicable to {family.value} metrics"},
        )

    country = normalize_country(request.country)
    if country is not None and not family_has_country(family):
        raise InvalidFilter(
            f"{family.value} metrics have no country dimension",
            details={"country": f"not applicable to {family.value} metrics"},
        )

    start_date, end_date = resolve_date_range(raw_start, raw_end, max_range_days=max_range_days)

    return ResolvedFilter(
        family=family,
        business_unit=business_unit,
        platform=platform,
        country=country,
        start_date=start_date,
        end_date=end_date,
    )


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
