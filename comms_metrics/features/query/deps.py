"""FastAPI dependencies and caller-side policies for metric queries."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from comms_metrics.core.config import get_settings
from comms_metrics.core.database import get_session_maker
from comms_metrics.core.exceptions import StoreUnavailable
from comms_metrics.core.logging import get_logger
from comms_metrics.features.query.store import MetricStore, SqlMetricStore

logger = get_logger(__name__)

T = TypeVar("T")


def get_metric_store() -> MetricStore:
    """Dependency returning the SQL-backed metric store.

    Overridden in tests with an in-memory store.
    """
    return SqlMetricStore(get_session_maker())


async def with_query_timeout(awaitable: Awaitable[T], operation: str) -> T:
    """Await a store-bound operation under the configured query timeout.

    Args:
        awaitable: Operation to await.
        operation: Name used in logs and the error message.

    Returns:
        The operation's result.

    Raises:
        StoreUnavailable: If the timeout expires. The abandoned fetch
            produces no partial output.
    """
    timeout = get_settings().query_timeout_seconds
    try:
        async with asyncio.timeout(timeout):
            return await awaitable
    except TimeoutError as e:
        logger.error("query.timeout", operation=operation, timeout_seconds=timeout)
        raise StoreUnavailable(
            f"{operation} timed out after {timeout}s",
            details={"timeout_seconds": timeout},
        ) from e
