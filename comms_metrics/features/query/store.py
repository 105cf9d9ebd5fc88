"""Persistence collaborator for metric records.

`MetricStore` is the narrow interface the query, analytics and ingest
features depend on: range/equality reads and key-tuple upserts.
`SqlMetricStore` implements it with SQLAlchemy 2.0 async sessions; every
call opens its own session so independent fetches can be awaited together.

Any driver or connection failure surfaces as `StoreUnavailable`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol, assert_never, runtime_checkable

from sqlalchemy import Select, func, select
from sqlalchemy.dialects.postgresql import Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from comms_metrics.core.exceptions import StoreUnavailable
from comms_metrics.core.logging import get_logger
from comms_metrics.features.metrics.catalog import (
    FAMILY_MEASURES,
    BusinessUnit,
    MetricFamily,
    Platform,
)
from comms_metrics.features.metrics.models import (
    KEY_COLUMNS,
    MetricRecord,
    NewsletterMetric,
    SocialEngagementMetric,
    SocialMetric,
    WebsiteMetric,
)

logger = get_logger(__name__)

MetricModel = (
    type[SocialMetric] | type[SocialEngagementMetric] | type[WebsiteMetric] | type[NewsletterMetric]
)


def model_for(family: MetricFamily) -> MetricModel:
    """Return the ORM model storing `family`."""
    match family:
        case MetricFamily.SOCIAL:
            return SocialMetric
        case MetricFamily.ENGAGEMENT:
            return SocialEngagementMetric
        case MetricFamily.WEBSITE:
            return WebsiteMetric
        case MetricFamily.NEWSLETTER:
            return NewsletterMetric
        case _:
            assert_never(family)


@dataclass
class UpsertOutcome:
    """Result of an upsert batch.

    Attributes:
        inserted_count: Rows that did not exist before.
        updated_count: Rows whose key tuple already existed.
        records: Stored records as returned by the database (no defined order).
    """

    inserted_count: int = 0
    updated_count: int = 0
    records: list[MetricRecord] = field(default_factory=lambda: [])


@runtime_checkable
class MetricStore(Protocol):
    """Range/equality reads and key-tuple upserts over the metric tables."""

    async def fetch(
        self,
        family: MetricFamily,
        *,
        start_date: date,
        end_date: date,
        business_unit: BusinessUnit | None = None,
        platform: Platform | None = None,
        country: str | None = None,
    ) -> list[MetricRecord]:
        """Records in the inclusive range matching every given constraint, date ascending."""
        ...

    async def latest_date(
        self,
        family: MetricFamily,
        *,
        business_unit: BusinessUnit | None = None,
    ) -> date | None:
        """Most recent date with data for `family`, or None when empty."""
        ...

    async def recent(
        self,
        family: MetricFamily,
        *,
        start_date: date,
        end_date: date,
        limit: int,
    ) -> list[MetricRecord]:
        """Up to `limit` records in the range, newest first."""
        ...

    async def upsert(
        self,
        family: MetricFamily,
        rows: Sequence[dict[str, Any]],
    ) -> UpsertOutcome:
        """Insert rows, updating measures where the key tuple already exists."""
        ...


# =============================================================================
# Statement builders
# =============================================================================


def build_fetch_statement(
    family: MetricFamily,
    *,
    start_date: date,
    end_date: date,
    business_unit: BusinessUnit | None = None,
    platform: Platform | None = None,
    country: str | None = None,
) -> Select[Any]:
    """Build the range/equality SELECT for `family`.

    Only constraints that are given are applied; `country=None` means all
    countries, including GLOBAL rows.
    """
    model = model_for(family)
    stmt = select(model).where((model.date >= start_date) & (model.date <= end_date))

    if business_unit is not None:
        stmt = stmt.where(model.business_unit == business_unit.value)
    if platform is not None:
        if not hasattr(model, "platform"):
            raise ValueError(f"{family.value} metrics have no platform column")
        stmt = stmt.where(model.platform == platform.value)  # type: ignore[union-attr]
    if country is not None:
        if not hasattr(model, "country"):
            raise ValueError(f"{family.value} metrics have no country column")
        stmt = stmt.where(model.country == country)  # type: ignore[union-attr]

    return stmt.order_by(model.date)


def build_latest_date_statement(
    family: MetricFamily,
    business_unit: BusinessUnit | None = None,
) -> Select[Any]:
    """Build `SELECT max(date)` for `family`, optionally per business unit."""
    model = model_for(family)
    stmt = select(func.max(model.date))
    if business_unit is not None:
        stmt = stmt.where(model.business_unit == business_unit.value)
    return stmt


def build_upsert_statement(family: MetricFamily, rows: Sequence[dict[str, Any]]) -> Insert:
    """Build an INSERT ... ON CONFLICT (key tuple) DO UPDATE for `family`.

    Measures are overwritten with the incoming values; `updated_at` is bumped.
    """
    model = model_for(family)
    insert_stmt = pg_insert(model).values(list(rows))
    return insert_stmt.on_conflict_do_update(
        index_elements=list(KEY_COLUMNS[family]),
        set_={
            **{name: insert_stmt.excluded[name] for name in FAMILY_MEASURES[family]},
            "updated_at": func.now(),
        },
    ).returning(model)


# =============================================================================
# SQLAlchemy implementation
# =============================================================================


class SqlMetricStore:
    """MetricStore backed by PostgreSQL through SQLAlchemy async sessions."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_maker: Factory for per-call sessions.
        """
        self._session_maker = session_maker

    async def fetch(
        self,
        family: MetricFamily,
        *,
        start_date: date,
        end_date: date,
        business_unit: BusinessUnit | None = None,
        platform: Platform | None = None,
        country: str | None = None,
    ) -> list[MetricRecord]:
        """Fetch records matching the constraints, ordered by date ascending.

        Raises:
            StoreUnavailable: If the database call fails.
        """
        stmt = build_fetch_statement(
            family,
            start_date=start_date,
            end_date=end_date,
            business_unit=business_unit,
            platform=platform,
            country=country,
        )
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("fetch", family, e) from e

    async def latest_date(
        self,
        family: MetricFamily,
        *,
        business_unit: BusinessUnit | None = None,
    ) -> date | None:
        """Return the most recent date with data, or None.

        Raises:
            StoreUnavailable: If the database call fails.
        """
        stmt = build_latest_date_statement(family, business_unit)
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                latest: date | None = result.scalar_one_or_none()
                return latest
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("latest_date", family, e) from e

    async def recent(
        self,
        family: MetricFamily,
        *,
        start_date: date,
        end_date: date,
        limit: int,
    ) -> list[MetricRecord]:
        """Return up to `limit` records in the range, newest first.

        Raises:
            StoreUnavailable: If the database call fails.
        """
        model = model_for(family)
        stmt = (
            select(model)
            .where((model.date >= start_date) & (model.date <= end_date))
            .order_by(model.date.desc(), model.id.desc())
            .limit(limit)
        )
        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("recent", family, e) from e

    async def upsert(
        self,
        family: MetricFamily,
        rows: Sequence[dict[str, Any]],
    ) -> UpsertOutcome:
        """Upsert rows by natural key in a single transaction.

        Rows must have distinct key tuples; PostgreSQL rejects a statement
        that touches the same row twice.

        Raises:
            StoreUnavailable: If the database call fails.
        """
        if not rows:
            return UpsertOutcome()

        stmt = build_upsert_statement(family, rows)
        try:
            async with self._session_maker() as session, session.begin():
                result = await session.execute(
                    stmt, execution_options={"populate_existing": True}
                )
                records: list[MetricRecord] = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            raise self._unavailable("upsert", family, e) from e

        # Within one statement both timestamps come from now(); an update
        # leaves created_at at its original value.
        inserted = sum(1 for r in records if r.created_at == r.updated_at)
        return UpsertOutcome(
            inserted_count=inserted,
            updated_count=len(records) - inserted,
            records=records,
        )

    @staticmethod
    def _unavailable(operation: str, family: MetricFamily, exc: Exception) -> StoreUnavailable:
        logger.error(
            "store.operation_failed",
            operation=operation,
            family=family.value,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=True,
        )
        return StoreUnavailable(
            f"Metric store {operation} failed for {family.value} metrics",
            details={"error_type": type(exc).__name__},
        )
