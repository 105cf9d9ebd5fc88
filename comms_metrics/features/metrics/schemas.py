"""Pydantic schemas for raw metric records.

Read schemas are discriminated by `family`, so a list of raw records from
any table serializes with a self-describing shape for table views.
"""

from datetime import date as date_type
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from comms_metrics.features.metrics.catalog import BusinessUnit, MetricFamily, Platform
from comms_metrics.features.metrics.models import MetricRecord


class MetricRecordBase(BaseModel):
    """Fields common to every stored record."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = Field(None, description="Surrogate key. Null for unsaved records.")
    date: date_type = Field(..., description="Reporting day.")
    business_unit: BusinessUnit = Field(..., description="Reporting business unit.")
    created_at: datetime | None = Field(None, description="Row creation time (metadata).")
    updated_at: datetime | None = Field(None, description="Last modification time (metadata).")


class SocialMetricRead(MetricRecordBase):
    """Social follower/post/impression snapshot."""

    family: Literal[MetricFamily.SOCIAL] = MetricFamily.SOCIAL
    platform: Platform
    country: str = Field(..., description="Country code, or GLOBAL.")
    followers: int | None = None
    number_of_posts: int | None = None
    impressions: int | None = None


class SocialEngagementMetricRead(MetricRecordBase):
    """Social engagement counts."""

    family: Literal[MetricFamily.ENGAGEMENT] = MetricFamily.ENGAGEMENT
    platform: Platform
    likes: int = 0
    comments: int = 0
    shares: int = 0
    saves: int = 0
    clicks: int = 0
    engagement_rate: float | None = Field(None, ge=0, le=1)


class WebsiteMetricRead(MetricRecordBase):
    """Website traffic snapshot."""

    family: Literal[MetricFamily.WEBSITE] = MetricFamily.WEBSITE
    country: str
    users: int | None = None
    page_views: int | None = None
    sessions: int | None = None
    bounce_rate: float | None = Field(None, ge=0, le=1)
    avg_session_duration: float | None = Field(None, ge=0, description="Seconds.")


class NewsletterMetricRead(MetricRecordBase):
    """Newsletter send snapshot."""

    family: Literal[MetricFamily.NEWSLETTER] = MetricFamily.NEWSLETTER
    country: str
    recipients: int | None = None
    opens: int | None = None
    clicks: int | None = None
    unsubscribes: int | None = None
    number_of_emails: int | None = None
    open_rate: float | None = Field(None, ge=0, le=1)


MetricRecordRead = Annotated[
    SocialMetricRead | SocialEngagementMetricRead | WebsiteMetricRead | NewsletterMetricRead,
    Field(discriminator="family"),
]

_READ_SCHEMAS: dict[
    MetricFamily,
    type[SocialMetricRead]
    | type[SocialEngagementMetricRead]
    | type[WebsiteMetricRead]
    | type[NewsletterMetricRead],
] = {
    MetricFamily.SOCIAL: SocialMetricRead,
    MetricFamily.ENGAGEMENT: SocialEngagementMetricRead,
    MetricFamily.WEBSITE: WebsiteMetricRead,
    MetricFamily.NEWSLETTER: NewsletterMetricRead,
}


def to_read_schema(
    family: MetricFamily, record: MetricRecord
) -> SocialMetricRead | SocialEngagementMetricRead | WebsiteMetricRead | NewsletterMetricRead:
    """Convert an ORM record of `family` into its read schema."""
    return _READ_SCHEMAS[family].model_validate(record)
