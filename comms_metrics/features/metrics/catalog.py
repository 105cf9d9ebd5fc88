"""Metric families, dimension values, and the measure catalog.

The catalog decides what may be summed. Counts add up across any records;
gauges (follower totals) add up across platforms or countries within one
snapshot day; ratios and averages never add up.

Adding a platform or business unit is a change to the enums below; every
consumer iterates the enums rather than keeping its own list.
"""

from enum import Enum
from typing import assert_never

from comms_metrics.core.exceptions import InvalidFilter

GLOBAL_COUNTRY = "GLOBAL"


# =============================================================================
# Dimensions
# =============================================================================


class MetricFamily(str, Enum):
    """Distinct record shapes, each with its own measures."""

    SOCIAL = "social"
    ENGAGEMENT = "engagement"
    WEBSITE = "website"
    NEWSLETTER = "newsletter"


class Platform(str, Enum):
    """Social platforms. Declaration order is the published platform order."""

    FACEBOOK = "FACEBOOK"
    INSTAGRAM = "INSTAGRAM"
    LINKEDIN = "LINKEDIN"
    TIKTOK = "TIKTOK"


class BusinessUnit(str, Enum):
    """Reporting business units."""

    ASM = "ASM"
    IACL = "IACL"
    EM = "EM"
    KCL = "KCL"


class FieldKind(str, Enum):
    """How a measure behaves under summation."""

    COUNT = "count"
    GAUGE = "gauge"
    RATIO = "ratio"
    AVERAGE = "average"


# =============================================================================
# Measure catalog
# =============================================================================

FAMILY_MEASURES: dict[MetricFamily, dict[str, FieldKind]] = {
    MetricFamily.SOCIAL: {
        "followers": FieldKind.GAUGE,
        "number_of_posts": FieldKind.COUNT,
        "impressions": FieldKind.COUNT,
    },
    MetricFamily.ENGAGEMENT: {
        "likes": FieldKind.COUNT,
        "comments": FieldKind.COUNT,
        "shares": FieldKind.COUNT,
        "saves": FieldKind.COUNT,
        "clicks": FieldKind.COUNT,
        "engagement_rate": FieldKind.RATIO,
    },
    MetricFamily.WEBSITE: {
        "users": FieldKind.COUNT,
        "page_views": FieldKind.COUNT,
        "sessions": FieldKind.COUNT,
        "bounce_rate": FieldKind.RATIO,
        "avg_session_duration": FieldKind.AVERAGE,
    },
    MetricFamily.NEWSLETTER: {
        "recipients": FieldKind.COUNT,
        "opens": FieldKind.COUNT,
        "clicks": FieldKind.COUNT,
        "unsubscribes": FieldKind.COUNT,
        "number_of_emails": FieldKind.COUNT,
        "open_rate": FieldKind.RATIO,
    },
}

_ADDITIVE_KINDS = frozenset({FieldKind.COUNT, FieldKind.GAUGE})


def field_kind(family: MetricFamily, field: str) -> FieldKind | None:
    """Return the kind of a measure, or None if the family has no such field."""
    return FAMILY_MEASURES[family].get(field)


def is_additive(family: MetricFamily, field: str) -> bool:
    """Check whether `field` may be summed across records of `family`.

    Unknown fields are not additive.
    """
    return field_kind(family, field) in _ADDITIVE_KINDS


def is_gauge(family: MetricFamily, field: str) -> bool:
    """Check whether `field` is a point-in-time gauge for `family`."""
    return field_kind(family, field) is FieldKind.GAUGE


def additive_fields(family: MetricFamily) -> tuple[str, ...]:
    """Additive measures of `family`, in catalog order."""
    return tuple(name for name, kind in FAMILY_MEASURES[family].items() if kind in _ADDITIVE_KINDS)


def family_has_platform(family: MetricFamily) -> bool:
    """Whether records of `family` carry a platform dimension."""
    match family:
        case MetricFamily.SOCIAL | MetricFamily.ENGAGEMENT:
            return True
        case MetricFamily.WEBSITE | MetricFamily.NEWSLETTER:
            return False
        case _:
            assert_never(family)


def family_has_country(family: MetricFamily) -> bool:
    """Whether records of `family` carry a country dimension."""
    match family:
        case MetricFamily.SOCIAL | MetricFamily.WEBSITE | MetricFamily.NEWSLETTER:
            return True
        case MetricFamily.ENGAGEMENT:
            return False
        case _:
            assert_never(family)


# =============================================================================
# Parsing
# =============================================================================


def parse_family(value: str | MetricFamily) -> MetricFamily:
    """Parse a metric family name (case-insensitive).

    Raises:
        InvalidFilter: If the value names no family.
    """
    if isinstance(value, MetricFamily):
        return value
    try:
        return MetricFamily(value.strip().lower())
    except ValueError as e:
        raise InvalidFilter(
            f"Unknown metric family '{value}'",
            details={"metric_family": f"must be one of {[f.value for f in MetricFamily]}"},
        ) from e


def parse_platform(value: str | Platform) -> Platform:
    """Parse a platform identifier (case-insensitive).

    Raises:
        InvalidFilter: If the value names no platform.
    """
    if isinstance(value, Platform):
        return value
    try:
        return Platform(value.strip().upper())
    except ValueError as e:
        raise InvalidFilter(
            f"Unknown platform '{value}'",
            details={"platform": f"must be one of {[p.value for p in Platform]}"},
        ) from e


def parse_business_unit(value: str | BusinessUnit) -> BusinessUnit:
    """Parse a business unit key (case-insensitive).

    Raises:
        InvalidFilter: If the value names no business unit.
    """
    if isinstance(value, BusinessUnit):
        return value
    try:
        return BusinessUnit(value.strip().upper())
    except ValueError as e:
        raise InvalidFilter(
            f"Unknown business unit '{value}'",
            details={"business_unit": f"must be one of {[b.value for b in BusinessUnit]}"},
        ) from e


def normalize_country(value: str | None) -> str | None:
    """Turn a country filter value into an optional constraint.

    Absent, blank, or `GLOBAL` (any case) means "no country constraint" and
    returns None; anything else is returned upper-cased.
    """
    if value is None:
        return None
    code = value.strip().upper()
    if not code or code == GLOBAL_COUNTRY:
        return None
    return code
