"""ORM models for the four metric families.

Each table is keyed by its natural key tuple, enforced by a unique
constraint so ingestion can upsert instead of duplicating rows:

- social_metric: (date, platform, business_unit, country)
- social_engagement_metric: (date, platform, business_unit)
- website_metric: (date, business_unit, country)
- newsletter_metric: (date, business_unit, country)

Ratios are stored as fractions in [0, 1].
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Float, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from comms_metrics.core.database import Base
from comms_metrics.features.metrics.catalog import GLOBAL_COUNTRY, MetricFamily
from comms_metrics.shared.models import ReportingKeyMixin, TimestampMixin


class SocialMetric(ReportingKeyMixin, TimestampMixin, Base):
    """Follower, post and impression snapshot per platform.

    Attributes:
        platform: `Platform` value.
        country: Country code, or GLOBAL for records not broken down by country.
        followers: Follower count at the snapshot date (gauge).
        number_of_posts: Posts published (count).
        impressions: Impressions served (count).
    """

    __tablename__ = "social_metric"
    family = MetricFamily.SOCIAL

    platform: Mapped[str] = mapped_column(String(20), index=True)
    country: Mapped[str] = mapped_column(String(10), default=GLOBAL_COUNTRY, index=True)
    followers: Mapped[int | None] = mapped_column(Integer, nullable=True)
    number_of_posts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    impressions: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "date", "platform", "business_unit", "country", name="uq_social_metric_key"
        ),
        Index("ix_social_metric_unit_date", "business_unit", "date"),
        CheckConstraint("followers >= 0", name="ck_social_metric_followers_positive"),
        CheckConstraint("number_of_posts >= 0", name="ck_social_metric_posts_positive"),
        CheckConstraint("impressions >= 0", name="ck_social_metric_impressions_positive"),
    )


class SocialEngagementMetric(ReportingKeyMixin, TimestampMixin, Base):
    """Engagement counts per platform. No country dimension.

    Attributes:
        platform: `Platform` value.
        likes, comments, shares, saves, clicks: Interaction counts.
        engagement_rate: Fraction in [0, 1]; never summed.
    """

    __tablename__ = "social_engagement_metric"
    family = MetricFamily.ENGAGEMENT

    platform: Mapped[str] = mapped_column(String(20), index=True)
    likes: Mapped[int] = mapped_column(Integer, default=0)
    comments: Mapped[int] = mapped_column(Integer, default=0)
    shares: Mapped[int] = mapped_column(Integer, default=0)
    saves: Mapped[int] = mapped_column(Integer, default=0)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    engagement_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "date", "platform", "business_unit", name="uq_social_engagement_metric_key"
        ),
        Index("ix_social_engagement_metric_unit_date", "business_unit", "date"),
        CheckConstraint(
            "likes >= 0 AND comments >= 0 AND shares >= 0 AND saves >= 0 AND clicks >= 0",
            name="ck_social_engagement_metric_counts_positive",
        ),
        CheckConstraint(
            "engagement_rate IS NULL OR (engagement_rate >= 0 AND engagement_rate <= 1)",
            name="ck_social_engagement_metric_rate_range",
        ),
    )


class WebsiteMetric(ReportingKeyMixin, TimestampMixin, Base):
    """Website traffic per country.

    Attributes:
        country: Country code, or GLOBAL.
        users, page_views, sessions: Traffic counts.
        bounce_rate: Fraction in [0, 1]; never summed.
        avg_session_duration: Mean session length in seconds; never summed.
    """

    __tablename__ = "website_metric"
    family = MetricFamily.WEBSITE

    country: Mapped[str] = mapped_column(String(10), default=GLOBAL_COUNTRY, index=True)
    users: Mapped[int | None] = mapped_column(Integer, nullable=True)
    page_views: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sessions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bounce_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)
    avg_session_duration: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("date", "business_unit", "country", name="uq_website_metric_key"),
        Index("ix_website_metric_unit_date", "business_unit", "date"),
        CheckConstraint(
            "users >= 0 AND page_views >= 0 AND sessions >= 0",
            name="ck_website_metric_counts_positive",
        ),
        CheckConstraint(
            "bounce_rate IS NULL OR (bounce_rate >= 0 AND bounce_rate <= 1)",
            name="ck_website_metric_bounce_rate_range",
        ),
        CheckConstraint(
            "avg_session_duration IS NULL OR avg_session_duration >= 0",
            name="ck_website_metric_duration_positive",
        ),
    )


class NewsletterMetric(ReportingKeyMixin, TimestampMixin, Base):
    """Newsletter sends per country.

    Attributes:
        country: Country code, or GLOBAL.
        recipients, opens, clicks, unsubscribes, number_of_emails: Counts.
        open_rate: Fraction in [0, 1]; never summed.
    """

    __tablename__ = "newsletter_metric"
    family = MetricFamily.NEWSLETTER

    country: Mapped[str] = mapped_column(String(10), default=GLOBAL_COUNTRY, index=True)
    recipients: Mapped[int | None] = mapped_column(Integer, nullable=True)
    opens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    clicks: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unsubscribes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    number_of_emails: Mapped[int | None] = mapped_column(Integer, nullable=True)
    open_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)

    __table_args__ = (
        UniqueConstraint("date", "business_unit", "country", name="uq_newsletter_metric_key"),
        Index("ix_newsletter_metric_unit_date", "business_unit", "date"),
        CheckConstraint(
            "recipients >= 0 AND opens >= 0 AND clicks >= 0 "
            "AND unsubscribes >= 0 AND number_of_emails >= 0",
            name="ck_newsletter_metric_counts_positive",
        ),
        CheckConstraint(
            "open_rate IS NULL OR (open_rate >= 0 AND open_rate <= 1)",
            name="ck_newsletter_metric_open_rate_range",
        ),
    )


MetricRecord = SocialMetric | SocialEngagementMetric | WebsiteMetric | NewsletterMetric

KEY_COLUMNS: dict[MetricFamily, tuple[str, ...]] = {
    MetricFamily.SOCIAL: ("date", "platform", "business_unit", "country"),
    MetricFamily.ENGAGEMENT: ("date", "platform", "business_unit"),
    MetricFamily.WEBSITE: ("date", "business_unit", "country"),
    MetricFamily.NEWSLETTER: ("date", "business_unit", "country"),
}
