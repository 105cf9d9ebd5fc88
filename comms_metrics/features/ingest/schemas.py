"""Pydantic schemas for ingest API.

Submissions use natural keys (date, business unit, platform, country).
Counts are non-negative integers and ratios are fractions in [0, 1].
"""

from datetime import date as date_type
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from comms_metrics.core.config import get_settings
from comms_metrics.features.metrics.catalog import (
    GLOBAL_COUNTRY,
    BusinessUnit,
    MetricFamily,
    Platform,
)
from comms_metrics.features.metrics.models import KEY_COLUMNS

# =============================================================================
# Single-metric submissions
# =============================================================================


class MetricSubmission(BaseModel):
    """Fields shared by every submission."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    family: ClassVar[MetricFamily]

    date: date_type = Field(..., description="Reporting day.")
    business_unit: BusinessUnit = Field(..., description="Reporting business unit.")

    def key(self) -> tuple[Any, ...]:
        """Natural key tuple identifying the stored record."""
        return tuple(getattr(self, name) for name in KEY_COLUMNS[self.family])

    def to_row(self) -> dict[str, Any]:
        """Column values for an upsert."""
        return self.model_dump()


class CountrySubmission(MetricSubmission):
    """Submission carrying a country dimension."""

    country: str = Field(
        GLOBAL_COUNTRY,
        min_length=2,
        max_length=10,
        description="Country code, or GLOBAL for a record not broken down by country.",
    )

    @field_validator("country")
    @classmethod
    def normalize_country(cls, value: str) -> str:
        """Store country codes upper-cased."""
        return value.strip().upper()


class SocialMetricSubmission(CountrySubmission):
    """Social follower/post/impression snapshot."""

    family: ClassVar[MetricFamily] = MetricFamily.SOCIAL

    platform: Platform
    followers: int | None = Field(None, ge=0, description="Follower total on the day.")
    number_of_posts: int | None = Field(None, ge=0)
    impressions: int | None = Field(None, ge=0)


class SocialEngagementMetricSubmission(MetricSubmission):
    """Social engagement counts."""

    family: ClassVar[MetricFamily] = MetricFamily.ENGAGEMENT

    platform: Platform
    likes: int = Field(0, ge=0)
    comments: int = Field(0, ge=0)
    shares: int = Field(0, ge=0)
    saves: int = Field(0, ge=0)
    clicks: int = Field(0, ge=0)
    engagement_rate: float | None = Field(None, ge=0, le=1, description="Fraction in [0, 1].")


class WebsiteMetricSubmission(CountrySubmission):
    """Website traffic snapshot."""

    family: ClassVar[MetricFamily] = MetricFamily.WEBSITE

    users: int | None = Field(None, ge=0)
    page_views: int | None = Field(None, ge=0)
    sessions: int | None = Field(None, ge=0)
    bounce_rate: float | None = Field(None, ge=0, le=1, description="Fraction in [0, 1].")
    avg_session_duration: float | None = Field(None, ge=0, description="Seconds.")


class NewsletterMetricSubmission(CountrySubmission):
    """Newsletter send snapshot."""

    family: ClassVar[MetricFamily] = MetricFamily.NEWSLETTER

    recipients: int | None = Field(None, ge=0)
    opens: int | None = Field(None, ge=0)
    clicks: int | None = Field(None, ge=0)
    unsubscribes: int | None = Field(None, ge=0)
    number_of_emails: int | None = Field(None, ge=0)
    open_rate: float | None = Field(None, ge=0, le=1, description="Fraction in [0, 1].")


# =============================================================================
# Batch ingest
# =============================================================================


class BatchIngestRequest(BaseModel):
    """Request body for POST /ingest/batch."""

    model_config = ConfigDict(extra="forbid")

    social: list[SocialMetricSubmission] = Field(default_factory=list)
    engagement: list[SocialEngagementMetricSubmission] = Field(default_factory=list)
    website: list[WebsiteMetricSubmission] = Field(default_factory=list)
    newsletter: list[NewsletterMetricSubmission] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_size(self) -> "BatchIngestRequest":
        """Require at least one record and at most the configured batch size."""
        total = self.total_records
        if total == 0:
            raise ValueError("batch must contain at least one record")
        max_size = get_settings().ingest_max_batch_size
        if total > max_size:
            raise ValueError(f"batch contains {total} records; the maximum is {max_size}")
        return self

    @property
    def total_records(self) -> int:
        """Number of submissions across all families."""
        return len(self.social) + len(self.engagement) + len(self.website) + len(self.newsletter)

    def by_family(self) -> dict[MetricFamily, list[MetricSubmission]]:
        """Submissions grouped by family, in family declaration order."""
        return {
            MetricFamily.SOCIAL: list(self.social),
            MetricFamily.ENGAGEMENT: list(self.engagement),
            MetricFamily.WEBSITE: list(self.website),
            MetricFamily.NEWSLETTER: list(self.newsletter),
        }


class FamilyIngestResult(BaseModel):
    """Outcome for one family within a batch."""

    submitted_count: int = Field(0, ge=0, description="Rows received for this family")
    inserted_count: int = Field(0, ge=0, description="Number of new rows inserted")
    updated_count: int = Field(0, ge=0, description="Number of existing rows updated")
    duplicate_count: int = Field(
        0,
        ge=0,
        description="Rows dropped because a later row in the batch had the same key",
    )


class BatchIngestResponse(BaseModel):
    """Response body for POST /ingest/batch."""

    social: FamilyIngestResult = Field(default_factory=FamilyIngestResult)
    engagement: FamilyIngestResult = Field(default_factory=FamilyIngestResult)
    website: FamilyIngestResult = Field(default_factory=FamilyIngestResult)
    newsletter: FamilyIngestResult = Field(default_factory=FamilyIngestResult)
    total_processed: int = Field(..., ge=0, description="Total rows received")
    duration_ms: float = Field(..., ge=0, description="Processing duration in milliseconds")
