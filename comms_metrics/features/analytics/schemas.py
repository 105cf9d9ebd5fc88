"""Pydantic schemas for analytics endpoints.

Every response is chart/table-ready: rows are plain dates, codes and
integers, already ordered the way they should be displayed.
"""

from datetime import date
from datetime import date as date_type
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from comms_metrics.features.metrics.catalog import BusinessUnit, MetricFamily, Platform
from comms_metrics.features.metrics.schemas import MetricRecordRead

# =============================================================================
# Trend Schemas
# =============================================================================


class TrendPoint(BaseModel):
    """Sums for one calendar day."""

    model_config = ConfigDict(from_attributes=True)

    date: date_type = Field(..., description="Calendar day.")
    totals: dict[str, int] = Field(
        ...,
        description="Field name -> sum over the records of that day. "
        "Only additive fields appear here.",
    )
    record_count: int = Field(
        ...,
        ge=0,
        description="Number of raw records that contributed to the day.",
    )
    growth: dict[str, float] = Field(
        default_factory=dict,
        description="Field name -> percentage change against the previous row, to two "
        "decimals. 0 on the first row and where the previous total is 0.",
    )


class TrendResponse(BaseModel):
    """Daily totals for one filter."""

    family: MetricFamily = Field(..., description="Metric family aggregated.")
    business_unit: BusinessUnit = Field(..., description="Business unit filter applied.")
    platform: Platform | None = Field(
        None,
        description="Platform filter applied. Null for families without platforms.",
    )
    country: str | None = Field(
        None,
        description="Country filter applied. Null means all countries (GLOBAL).",
    )
    start_date: date = Field(..., description="Start of the period (inclusive).")
    end_date: date = Field(..., description="End of the period (inclusive).")
    fields: list[str] = Field(..., description="Fields summed per day.")
    points: list[TrendPoint] = Field(
        default_factory=list,
        description="One row per day with data, date ascending. Days without data are absent.",
    )


class ComparisonSeries(BaseModel):
    """Daily totals for one business unit."""

    business_unit: BusinessUnit
    points: list[TrendPoint] = Field(default_factory=list)


class ComparisonResponse(BaseModel):
    """Daily totals for several business units over the same filter."""

    family: MetricFamily
    platform: Platform | None = None
    country: str | None = None
    start_date: date
    end_date: date
    fields: list[str]
    series: list[ComparisonSeries] = Field(
        default_factory=list,
        description="One series per requested business unit, in request order.",
    )


class EngagementTrendResponse(BaseModel):
    """Daily engagement totals across all platforms."""

    business_unit: BusinessUnit | None = Field(
        None,
        description="Business unit filter applied. Null means all business units.",
    )
    start_date: date
    end_date: date
    fields: list[str]
    points: list[TrendPoint] = Field(default_factory=list)


# =============================================================================
# Breakdown Schemas
# =============================================================================


class PlatformShare(BaseModel):
    """One platform's followers and share of voice."""

    platform: Platform
    followers: int = Field(..., ge=0)
    percentage: int = Field(
        ...,
        ge=0,
        le=100,
        description="Whole-number share of total followers, rounded half-up. "
        "Shares are rounded independently and may not sum to exactly 100.",
    )


class PlatformBreakdownResponse(BaseModel):
    """Followers per platform at the latest social snapshot."""

    business_unit: BusinessUnit | None = None
    snapshot_date: date | None = Field(
        None,
        description="Snapshot date used. Null when there is no social data.",
    )
    total_followers: int = Field(0, ge=0)
    platforms: list[PlatformShare] = Field(
        default_factory=list,
        description="Platforms with data on the snapshot date, in platform order.",
    )


class CountryShareItem(BaseModel):
    """One country's total and share."""

    model_config = ConfigDict(from_attributes=True)

    country: str
    total: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)


class FamilyCountryDistributionResponse(BaseModel):
    """Per-country breakdown of one measure."""

    family: MetricFamily
    field: str
    business_unit: BusinessUnit | None = None
    start_date: date
    end_date: date
    snapshot_date: date | None = Field(
        None,
        description="For gauges, the snapshot date inside the range that was used. "
        "Null for counts, which are summed over the whole range.",
    )
    countries: list[CountryShareItem] = Field(
        default_factory=list,
        description="Countries ordered by total descending, then code. GLOBAL rows excluded.",
    )


class CountryMetrics(BaseModel):
    """Headline values for one country across families."""

    country: str
    followers: int = 0
    website_users: int = 0
    newsletter_recipients: int = 0


class CountryDistributionResponse(BaseModel):
    """Per-country headline values at each family's latest snapshot."""

    business_unit: BusinessUnit | None = None
    social_snapshot_date: date | None = None
    website_snapshot_date: date | None = None
    newsletter_snapshot_date: date | None = None
    totals: CountryMetrics = Field(
        ...,
        description="Sums over every row at each snapshot, GLOBAL rows included.",
    )
    countries: list[CountryMetrics] = Field(
        default_factory=list,
        description="Countries ordered by followers descending, then code.",
    )


# =============================================================================
# Headline Schemas
# =============================================================================


class TotalMetricsResponse(BaseModel):
    """Headline totals at the latest snapshot of each family."""

    business_unit: BusinessUnit | None = None
    total_followers: int = Field(0, ge=0, description="Followers over all social rows.")
    total_posts: int = Field(0, ge=0, description="Posts over all social rows.")
    total_website_users: int = Field(0, ge=0)
    total_newsletter_recipients: int = Field(0, ge=0)
    social_snapshot_date: date | None = None
    website_snapshot_date: date | None = None
    newsletter_snapshot_date: date | None = None


class RecentMetricsResponse(BaseModel):
    """Most recent raw records of one family."""

    family: MetricFamily
    start_date: date
    end_date: date
    limit: int
    records: list[MetricRecordRead] = Field(
        default_factory=list,
        description="Records newest first.",
    )


class ActivityItemRead(BaseModel):
    """One entry of the recent-activity feed."""

    model_config = ConfigDict(from_attributes=True)

    kind: Literal["followers", "engagement"]
    date: date_type
    platform: Platform
    business_unit: BusinessUnit
    country: str | None = Field(None, description="Null for engagement, which has no country.")
    value: int = Field(
        ...,
        ge=0,
        description="Followers: absolute change against the snapshot up to 7 days earlier, "
        "or the follower count when there is none. Engagement: likes + comments + shares.",
    )
    change: Literal["increase", "decrease"]


class RecentActivityResponse(BaseModel):
    """Latest follower changes and engagement, merged newest first."""

    start_date: date
    end_date: date
    limit: int
    items: list[ActivityItemRead] = Field(default_factory=list)
