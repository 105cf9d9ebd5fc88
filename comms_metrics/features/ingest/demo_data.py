"""Deterministic demo data for local dashboards.

Generates one record per key tuple per day for every family, with follower
totals that grow over time and counts drawn from a seeded RNG. The same
config always yields the same submissions.
"""

import random
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from comms_metrics.features.ingest.schemas import (
    BatchIngestRequest,
    MetricSubmission,
    NewsletterMetricSubmission,
    SocialEngagementMetricSubmission,
    SocialMetricSubmission,
    WebsiteMetricSubmission,
)
from comms_metrics.features.metrics.catalog import (
    GLOBAL_COUNTRY,
    BusinessUnit,
    MetricFamily,
    Platform,
)

DEFAULT_COUNTRIES = ("US", "UK", "CA", "AU", "DE", "FR", "JP", "BR", "IN")


@dataclass
class DemoDataConfig:
    """What to generate.

    Attributes:
        start_date: First day (inclusive).
        end_date: Last day (inclusive).
        countries: Country codes broken out besides GLOBAL.
        business_units: Units to generate for.
        platforms: Platforms to generate for.
        seed: RNG seed.
    """

    start_date: date
    end_date: date
    countries: Sequence[str] = DEFAULT_COUNTRIES
    business_units: Sequence[BusinessUnit] = field(default_factory=lambda: list(BusinessUnit))
    platforms: Sequence[Platform] = field(default_factory=lambda: list(Platform))
    seed: int = 42

    def days(self) -> Iterator[date]:
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)


def generate_demo_submissions(
    config: DemoDataConfig,
) -> dict[MetricFamily, list[MetricSubmission]]:
    """Generate submissions for every family over the configured range.

    Country-broken-out families get per-country rows only; GLOBAL is not
    generated alongside them, so snapshot totals are not double counted.

    Raises:
        ValueError: If the range is inverted or a country is GLOBAL.
    """
    if config.start_date > config.end_date:
        raise ValueError("start_date must be on or before end_date")
    countries = [c.upper() for c in config.countries] or [GLOBAL_COUNTRY]
    if GLOBAL_COUNTRY in countries and len(countries) > 1:
        raise ValueError("GLOBAL cannot be combined with country codes")

    rng = random.Random(config.seed)
    result: dict[MetricFamily, list[MetricSubmission]] = {family: [] for family in MetricFamily}

    followers = {
        (platform, unit, country): rng.randint(10_000, 100_000)
        for platform in config.platforms
        for unit in config.business_units
        for country in countries
    }

    for day in config.days():
        for unit in config.business_units:
            for platform in config.platforms:
                for country in countries:
                    key = (platform, unit, country)
                    followers[key] += rng.randint(-20, 150)
                    followers[key] = max(followers[key], 0)
                    result[MetricFamily.SOCIAL].append(
                        SocialMetricSubmission(
                            date=day,
                            business_unit=unit,
                            platform=platform,
                            country=country,
                            followers=followers[key],
                            number_of_posts=rng.randint(0, 5),
                            impressions=rng.randint(1_000, 50_000),
                        )
                    )
                result[MetricFamily.ENGAGEMENT].append(
                    SocialEngagementMetricSubmission(
                        date=day,
                        business_unit=unit,
                        platform=platform,
                        likes=rng.randint(50, 5_000),
                        comments=rng.randint(0, 500),
                        shares=rng.randint(0, 300),
                        saves=rng.randint(0, 200),
                        clicks=rng.randint(0, 1_000),
                        engagement_rate=round(rng.uniform(0.005, 0.12), 4),
                    )
                )

            for country in countries:
                users = rng.randint(500, 5_000)
                result[MetricFamily.WEBSITE].append(
                    WebsiteMetricSubmission(
                        date=day,
                        business_unit=unit,
                        country=country,
                        users=users,
                        sessions=users + rng.randint(0, users),
                        page_views=users * rng.randint(2, 6),
                        bounce_rate=round(rng.uniform(0.2, 0.7), 4),
                        avg_session_duration=round(rng.uniform(60, 360), 2),
                    )
                )
                recipients = rng.randint(2_000, 20_000)
                opens = rng.randint(0, recipients)
                result[MetricFamily.NEWSLETTER].append(
                    NewsletterMetricSubmission(
                        date=day,
                        business_unit=unit,
                        country=country,
                        recipients=recipients,
                        opens=opens,
                        clicks=rng.randint(0, opens),
                        unsubscribes=rng.randint(0, 100),
                        number_of_emails=rng.randint(0, 2),
                        open_rate=round(opens / recipients, 4),
                    )
                )

    return result


def chunk_batches(
    submissions: dict[MetricFamily, list[MetricSubmission]],
    batch_size: int,
) -> Iterator[BatchIngestRequest]:
    """Split generated submissions into batch requests of at most `batch_size` rows."""
    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    for family, rows in submissions.items():
        for offset in range(0, len(rows), batch_size):
            yield BatchIngestRequest(**{family.value: rows[offset : offset + batch_size]})
