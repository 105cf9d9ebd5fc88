"""Fixtures for database-backed integration tests.

These require a running PostgreSQL database (DATABASE_URL). Run them with
`pytest -m integration`.
"""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from comms_metrics.core.config import get_settings
from comms_metrics.core.database import Base

# Register the metric tables on Base.metadata
import comms_metrics.features.metrics.models  # noqa: F401


@pytest.fixture
async def session_maker() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create all tables, provide a session factory, and drop them after."""
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
