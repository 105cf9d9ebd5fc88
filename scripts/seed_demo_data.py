#!/usr/bin/env python
"""Demo data seeder CLI.

Generate deterministic demo metrics for every family and upsert them through
the ingest service. Re-running with the same arguments updates the same rows.

Usage:
    # Seed the last 90 days
    uv run python scripts/seed_demo_data.py --days 90 --confirm

    # Explicit range and seed
    uv run python scripts/seed_demo_data.py --start-date 2024-01-01 --end-date 2024-03-31 --seed 7 --confirm

    # Preview row counts without writing
    uv run python scripts/seed_demo_data.py --days 30 --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date, timedelta

from comms_metrics.core.config import get_settings
from comms_metrics.core.database import dispose_engine, get_session_maker
from comms_metrics.core.exceptions import StoreUnavailable
from comms_metrics.core.logging import configure_logging
from comms_metrics.features.ingest.demo_data import (
    DEFAULT_COUNTRIES,
    DemoDataConfig,
    chunk_batches,
    generate_demo_submissions,
)
from comms_metrics.features.ingest.service import IngestService
from comms_metrics.features.query.store import SqlMetricStore


def parse_date(date_str: str) -> date:
    """Parse date string in YYYY-MM-DD format.

    Raises:
        argparse.ArgumentTypeError: If date format is invalid.
    """
    try:
        return date.fromisoformat(date_str)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date format: {date_str}. Use YYYY-MM-DD") from e


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="CommsMetrics demo data seeder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Days ending today to generate when no explicit range is given (default: 30)",
    )
    parser.add_argument("--start-date", type=parse_date, help="Start of date range")
    parser.add_argument("--end-date", type=parse_date, help="End of date range (default: today)")
    parser.add_argument(
        "--countries",
        nargs="+",
        default=list(DEFAULT_COUNTRIES),
        help="Country codes to generate (default: %(default)s)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=1000,
        help="Rows per upsert batch (default: 1000)",
    )
    parser.add_argument("--confirm", action="store_true", help="Confirm writing to the database")
    parser.add_argument("--dry-run", action="store_true", help="Preview without writing")
    return parser


def print_counts(counts: dict[str, int], title: str) -> None:
    """Print per-family counts in a formatted way."""
    print(f"\n{title}:")
    print("-" * 40)
    for name, count in counts.items():
        print(f"  {name:<30} {count:>8,}")
    print("-" * 40)
    print(f"  {'Total':<30} {sum(counts.values()):>8,}")
    print()


async def run(args: argparse.Namespace) -> int:
    """Generate and upsert demo data."""
    settings = get_settings()
    if settings.is_production:
        print("ERROR: Refusing to seed demo data in production.")
        return 1

    end_date = args.end_date or date.today()
    start_date = args.start_date or end_date - timedelta(days=args.days - 1)
    config = DemoDataConfig(
        start_date=start_date,
        end_date=end_date,
        countries=args.countries,
        seed=args.seed,
    )
    submissions = generate_demo_submissions(config)
    print_counts(
        {family.value: len(rows) for family, rows in submissions.items()},
        f"Generated {start_date} to {end_date}",
    )

    if args.dry_run:
        print("Dry run: nothing written.")
        return 0
    if not args.confirm:
        print("ERROR: --confirm flag required to write data.")
        return 1

    service = IngestService(SqlMetricStore(get_session_maker()))
    inserted: dict[str, int] = {}
    updated: dict[str, int] = {}
    batch_size = min(args.batch_size, settings.ingest_max_batch_size)
    try:
        for batch in chunk_batches(submissions, batch_size):
            response = await service.ingest_batch(batch)
            for name in ("social", "engagement", "website", "newsletter"):
                result = getattr(response, name)
                inserted[name] = inserted.get(name, 0) + result.inserted_count
                updated[name] = updated.get(name, 0) + result.updated_count
    except StoreUnavailable as e:
        print(f"[FAIL] {e.message}")
        return 1
    finally:
        await dispose_engine()

    print_counts(inserted, "Inserted")
    print_counts(updated, "Updated")
    return 0


def main() -> None:
    configure_logging()
    args = create_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
