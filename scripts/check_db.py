#!/usr/bin/env python
"""Check database connectivity and the metric tables.

Usage:
    uv run python scripts/check_db.py
"""

import asyncio
import sys

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from comms_metrics.core.config import get_settings
from comms_metrics.features.metrics.catalog import MetricFamily
from comms_metrics.features.query.store import model_for


async def check_database() -> int:
    """Verify the connection and that every metric table exists."""
    settings = get_settings()

    print("CommsMetrics - Database Connectivity Check")
    print("=" * 45)
    print(f"Database URL: {settings.database_url.split('@')[-1]}")  # Hide credentials
    print()

    engine = create_async_engine(settings.database_url)
    expected = {model_for(family).__tablename__ for family in MetricFamily}

    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            if result.scalar() != 1:
                print("[FAIL] Unexpected response to SELECT 1")
                return 1
            print("[OK] Basic connectivity")

            result = await conn.execute(text("SELECT version()"))
            version = result.scalar() or ""
            print(f"[OK] PostgreSQL version: {version[:50]}...")

            tables = set(await conn.run_sync(lambda sync: inspect(sync).get_table_names()))
            missing = sorted(expected - tables)
            if missing:
                print(f"[WARN] Missing tables: {', '.join(missing)}")
                print("       Run: uv run alembic upgrade head")
            else:
                print("[OK] All metric tables present")

        print()
        print("Database check completed successfully!")
        return 0

    except (SQLAlchemyError, OSError) as e:
        print(f"[FAIL] Connection failed: {e}")
        print()
        print("Troubleshooting:")
        print("  1. Ensure PostgreSQL is running")
        print("  2. Check DATABASE_URL in .env file")
        return 1

    finally:
        await engine.dispose()


def main() -> None:
    sys.exit(asyncio.run(check_database()))


if __name__ == "__main__":
    main()
