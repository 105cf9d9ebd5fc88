"""Shared SQLAlchemy model mixins."""

import datetime

from sqlalchemy import Date, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamps.

    Metadata only: these columns never take part in filtering or aggregation.
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ReportingKeyMixin:
    """Columns shared by every metric family's natural key.

    Attributes:
        id: Surrogate primary key.
        date: Reporting day (day granularity).
        business_unit: Reporting business unit (`BusinessUnit` value).
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[datetime.date] = mapped_column(Date, index=True)
    business_unit: Mapped[str] = mapped_column(String(10), index=True)
