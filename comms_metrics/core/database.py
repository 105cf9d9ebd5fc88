"""Async SQLAlchemy 2.0 database setup."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from comms_metrics.core.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


@lru_cache
def get_engine() -> AsyncEngine:
    """Create the process-wide async engine from settings."""
    settings = get_settings()
    engine: AsyncEngine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )
    return engine


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Create async session maker bound to the shared engine.

    Each concurrent fetch opens its own session from this factory; an
    AsyncSession must not be shared between concurrently awaited queries.
    """
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    Yields:
        AsyncSession: Database session that auto-commits on success.
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Dispose the shared engine's connection pool on shutdown."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
