"""Shared pytest fixtures for CommsMetrics tests."""

from collections.abc import AsyncGenerator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient

from comms_metrics.features.query.deps import get_metric_store
from comms_metrics.features.query.tests.fakes import InMemoryMetricStore
from comms_metrics.main import app


@pytest.fixture
def memory_store() -> Iterator[InMemoryMetricStore]:
    """In-memory store wired into the app in place of the SQL store."""
    store = InMemoryMetricStore()
    app.dependency_overrides[get_metric_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_metric_store, None)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
