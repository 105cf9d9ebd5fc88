"""create_metric_tables

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2e7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _key_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("business_unit", sa.String(length=10), nullable=False),
    ]


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _create_common_indexes(table: str) -> None:
    op.create_index(op.f(f"ix_{table}_date"), table, ["date"], unique=False)
    op.create_index(op.f(f"ix_{table}_business_unit"), table, ["business_unit"], unique=False)
    op.create_index(f"ix_{table}_unit_date", table, ["business_unit", "date"], unique=False)


def upgrade() -> None:
    """Apply migration - create the four metric family tables."""
    # social_metric
    op.create_table(
        "social_metric",
        *_key_columns(),
        sa.Column("platform", sa.String(length=20), nullable=False),
        sa.Column("country", sa.String(length=10), server_default="GLOBAL", nullable=False),
        sa.Column("followers", sa.Integer(), nullable=True),
        sa.Column("number_of_posts", sa.Integer(), nullable=True),
        sa.Column("impressions", sa.Integer(), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "date", "platform", "business_unit", "country", name="uq_social_metric_key"
        ),
        sa.CheckConstraint("followers >= 0", name="ck_social_metric_followers_positive"),
        sa.CheckConstraint("number_of_posts >= 0", name="ck_social_metric_posts_positive"),
        sa.CheckConstraint("impressions >= 0", name="ck_social_metric_impressions_positive"),
    )
    _create_common_indexes("social_metric")
    op.create_index(op.f("ix_social_metric_platform"), "social_metric", ["platform"])
    op.create_index(op.f("ix_social_metric_country"), "social_metric", ["country"])

    # social_engagement_metric
    op.create_table(
        "social_engagement_metric",
        *_key_columns(),
        sa.Column("platform", sa.String(length=20), nullable=False),
        sa.Column("likes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("comments", sa.Integer(), server_default="0", nullable=False),
        sa.Column("shares", sa.Integer(), server_default="0", nullable=False),
        sa.Column("saves", sa.Integer(), server_default="0", nullable=False),
        sa.Column("clicks", sa.Integer(), server_default="0", nullable=False),
        sa.Column("engagement_rate", sa.Numeric(precision=5, scale=4), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "date", "platform", "business_unit", name="uq_social_engagement_metric_key"
        ),
        sa.CheckConstraint(
            "likes >= 0 AND comments >= 0 AND shares >= 0 AND saves >= 0 AND clicks >= 0",
            name="ck_social_engagement_metric_counts_positive",
        ),
        sa.CheckConstraint(
            "engagement_rate IS NULL OR (engagement_rate >= 0 AND engagement_rate <= 1)",
            name="ck_social_engagement_metric_rate_range",
        ),
    )
    _create_common_indexes("social_engagement_metric")
    op.create_index(
        op.f("ix_social_engagement_metric_platform"), "social_engagement_metric", ["platform"]
    )

    # website_metric
    op.create_table(
        "website_metric",
        *_key_columns(),
        sa.Column("country", sa.String(length=10), server_default="GLOBAL", nullable=False),
        sa.Column("users", sa.Integer(), nullable=True),
        sa.Column("page_views", sa.Integer(), nullable=True),
        sa.Column("sessions", sa.Integer(), nullable=True),
        sa.Column("bounce_rate", sa.Numeric(precision=5, scale=4), nullable=True),
        sa.Column("avg_session_duration", sa.Float(), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("date", "business_unit", "country", name="uq_website_metric_key"),
        sa.CheckConstraint(
            "users >= 0 AND page_views >= 0 AND sessions >= 0",
            name="ck_website_metric_counts_positive",
        ),
        sa.CheckConstraint(
            "bounce_rate IS NULL OR (bounce_rate >= 0 AND bounce_rate <= 1)",
            name="ck_website_metric_bounce_rate_range",
        ),
        sa.CheckConstraint(
            "avg_session_duration IS NULL OR avg_session_duration >= 0",
            name="ck_website_metric_duration_positive",
        ),
    )
    _create_common_indexes("website_metric")
    op.create_index(op.f("ix_website_metric_country"), "website_metric", ["country"])

    # newsletter_metric
    op.create_table(
        "newsletter_metric",
        *_key_columns(),
        sa.Column("country", sa.String(length=10), server_default="GLOBAL", nullable=False),
        sa.Column("recipients", sa.Integer(), nullable=True),
        sa.Column("opens", sa.Integer(), nullable=True),
        sa.Column("clicks", sa.Integer(), nullable=True),
        sa.Column("unsubscribes", sa.Integer(), nullable=True),
        sa.Column("number_of_emails", sa.Integer(), nullable=True),
        sa.Column("open_rate", sa.Numeric(precision=5, scale=4), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("date", "business_unit", "country", name="uq_newsletter_metric_key"),
        sa.CheckConstraint(
            "recipients >= 0 AND opens >= 0 AND clicks >= 0 "
            "AND unsubscribes >= 0 AND number_of_emails >= 0",
            name="ck_newsletter_metric_counts_positive",
        ),
        sa.CheckConstraint(
            "open_rate IS NULL OR (open_rate >= 0 AND open_rate <= 1)",
            name="ck_newsletter_metric_open_rate_range",
        ),
    )
    _create_common_indexes("newsletter_metric")
    op.create_index(op.f("ix_newsletter_metric_country"), "newsletter_metric", ["country"])


def downgrade() -> None:
    """Revert migration - drop the metric family tables."""
    for table in (
        "newsletter_metric",
        "website_metric",
        "social_engagement_metric",
        "social_metric",
    ):
        op.drop_table(table)
