"""Query engine: resolved filter -> raw metric records.

The engine fetches and never aggregates, so raw records stay available for
table views and aggregation is a separate, composable step.
"""

import asyncio
from collections.abc import Sequence

from comms_metrics.core.logging import get_logger, log_duration
from comms_metrics.features.metrics.models import MetricRecord
from comms_metrics.features.query.filters import ResolvedFilter
from comms_metrics.features.query.store import MetricStore

logger = get_logger(__name__)


class QueryEngine:
    """Translate resolved filters into store fetches.

    Each fetch is one round trip to the store. Results are ordered by date
    ascending; records sharing a date have no defined order.
    """

    def __init__(self, store: MetricStore) -> None:
        """Initialize query engine.

        Args:
            store: Persistence collaborator.
        """
        self.store = store

    async def fetch(self, resolved: ResolvedFilter) -> list[MetricRecord]:
        """Fetch raw records matching a resolved filter.

        Args:
            resolved: Validated filter.

        Returns:
            Matching records, date ascending. Empty when nothing matches.

        Raises:
            StoreUnavailable: If the store fails.
        """
        with log_duration(
            logger,
            "query.fetch_completed",
            family=resolved.family.value,
            business_unit=resolved.business_unit.value,
            platform=resolved.platform.value if resolved.platform else None,
            country=resolved.country,
            start_date=str(resolved.start_date),
            end_date=str(resolved.end_date),
        ) as extra:
            records = await self.store.fetch(
                resolved.family,
                start_date=resolved.start_date,
                end_date=resolved.end_date,
                business_unit=resolved.business_unit,
                platform=resolved.platform,
                country=resolved.country,
            )
            extra["record_count"] = len(records)

        # Date ascending for any store implementation
        return sorted(records, key=lambda r: r.date)

    async def fetch_many(self, filters: Sequence[ResolvedFilter]) -> list[list[MetricRecord]]:
        """Fetch several filters concurrently.

        Fetches are read-only and independent, so they are awaited together.
        If any fetch fails the first error propagates and no partial result
        is returned.

        Args:
            filters: Resolved filters.

        Returns:
            One record list per filter, in the order given.
        """
        results = await asyncio.gather(*(self.fetch(f) for f in filters))
        return list(results)
