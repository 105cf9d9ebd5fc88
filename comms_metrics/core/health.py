"""Liveness and readiness endpoints.

Readiness checks that the database answers and that every metric table
registered on `Base.metadata` exists, so a deployment that has not run
`alembic upgrade head` reports `degraded` instead of failing on first query.
"""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from comms_metrics.core.database import Base, get_db
from comms_metrics.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

_TABLES_QUERY = text(
    "SELECT tablename FROM pg_catalog.pg_tables WHERE schemaname = current_schema()"
)


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "degraded", "unhealthy"]
    database: Literal["connected", "disconnected"] | None = None
    missing_tables: list[str] = Field(
        default_factory=list,
        description="Metric tables not found in the database (migrations not applied).",
    )


@router.get("/health", response_model=HealthResponse, response_model_exclude_defaults=True)
async def health_check() -> HealthResponse:
    """Liveness check; does not touch the metric store."""
    logger.debug("health.check_started")
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    """Readiness check: database connectivity and metric tables.

    Args:
        db: Database session dependency.

    Returns:
        `ok` when connected with every table present, `degraded` when tables
        are missing, `unhealthy` when the database cannot be reached.
    """
    try:
        result = await db.execute(_TABLES_QUERY)
        present = set(result.scalars().all())
    except (SQLAlchemyError, OSError) as e:
        logger.error(
            "health.database_disconnected",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return HealthResponse(status="unhealthy", database="disconnected")

    missing = sorted(set(Base.metadata.tables) - present)
    if missing:
        logger.warning("health.tables_missing", missing_tables=missing)
        return HealthResponse(status="degraded", database="connected", missing_tables=missing)
    return HealthResponse(status="ok", database="connected")
