"""Tests for record grouping and summation."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from comms_metrics.core.exceptions import InvalidAggregation
from comms_metrics.features.analytics.aggregation import (
    DateAggregate,
    aggregate_by_country,
    aggregate_by_date,
    aggregate_by_platform,
    require_additive,
    snapshot_date,
)
from comms_metrics.features.metrics.catalog import BusinessUnit, MetricFamily, Platform
from comms_metrics.features.query.tests.fakes import engagement, newsletter, social, website


class TestRequireAdditive:
    """Field validation before summing."""

    def test_counts_and_gauges_pass(self):
        assert require_additive(MetricFamily.SOCIAL, ["followers", "impressions"]) == (
            "followers",
            "impressions",
        )

    def test_duplicates_are_dropped_in_order(self):
        assert require_additive(MetricFamily.ENGAGEMENT, ["likes", "clicks", "likes"]) == (
            "likes",
            "clicks",
        )

    @pytest.mark.parametrize(
        ("family", "field"),
        [
            (MetricFamily.NEWSLETTER, "open_rate"),
            (MetricFamily.WEBSITE, "bounce_rate"),
            (MetricFamily.WEBSITE, "avg_session_duration"),
            (MetricFamily.ENGAGEMENT, "engagement_rate"),
        ],
    )
    def test_ratios_and_averages_are_rejected(self, family, field):
        with pytest.raises(InvalidAggregation) as exc_info:
            require_additive(family, [field])

        assert "cannot be summed" in exc_info.value.details[field]

    def test_unknown_field_is_rejected(self):
        with pytest.raises(InvalidAggregation) as exc_info:
            require_additive(MetricFamily.WEBSITE, ["followers"])

        assert "not a website measure" in exc_info.value.details["followers"]


class TestAggregateByDate:
    """Per-day sums."""

    def test_empty_input_gives_empty_output(self):
        assert aggregate_by_date([], ["likes"], family=MetricFamily.ENGAGEMENT) == []

    def test_sums_across_platforms_per_day(self):
        records = [
            engagement(date(2024, 1, 2), Platform.FACEBOOK, likes=5, comments=1),
            engagement(date(2024, 1, 1), Platform.FACEBOOK, likes=10, comments=2),
            engagement(date(2024, 1, 1), Platform.INSTAGRAM, likes=20, comments=3),
        ]

        rows = aggregate_by_date(records, ["likes", "comments"], family=MetricFamily.ENGAGEMENT)

        assert rows == [
            DateAggregate(date(2024, 1, 1), {"likes": 30, "comments": 5}, 2),
            DateAggregate(date(2024, 1, 2), {"likes": 5, "comments": 1}, 1),
        ]

    def test_output_does_not_depend_on_input_order(self):
        records = [
            website(date(2024, 1, d), country=c, users=d * 10)
            for d in (3, 1, 2)
            for c in ("US", "DE")
        ]

        forward = aggregate_by_date(records, ["users"], family=MetricFamily.WEBSITE)
        backward = aggregate_by_date(
            list(reversed(records)), ["users"], family=MetricFamily.WEBSITE
        )

        assert forward == backward
        assert [r.date.day for r in forward] == [1, 2, 3]

    def test_missing_values_count_as_zero(self):
        records = [
            website(date(2024, 1, 1), country="US", users=None),
            website(date(2024, 1, 1), country="DE", users=7),
        ]

        rows = aggregate_by_date(records, ["users"], family=MetricFamily.WEBSITE)

        assert rows[0].totals == {"users": 7}

    def test_datetimes_are_truncated_to_day(self):
        records = [
            SimpleNamespace(date=datetime(2024, 1, 1, 8, 30), users=1),
            SimpleNamespace(date=datetime(2024, 1, 1, 23, 59), users=2),
        ]

        rows = aggregate_by_date(records, ["users"], family=MetricFamily.WEBSITE)

        assert rows == [DateAggregate(date(2024, 1, 1), {"users": 3}, 2)]

    def test_non_additive_field_is_rejected_before_reading_records(self):
        records = [newsletter(date(2024, 1, 1), open_rate=0.4)]

        with pytest.raises(InvalidAggregation):
            aggregate_by_date(records, ["recipients", "open_rate"], family=MetricFamily.NEWSLETTER)


class TestSnapshotDate:
    def test_latest_day(self):
        records = [social(date(2024, 1, 1)), social(date(2024, 3, 1)), social(date(2024, 2, 1))]

        assert snapshot_date(records) == date(2024, 3, 1)

    def test_empty(self):
        assert snapshot_date([]) is None


class TestAggregateByPlatform:
    """Per-platform sums on a snapshot date."""

    def test_uses_latest_date_across_platforms(self):
        records = [
            social(date(2024, 1, 1), Platform.FACEBOOK, followers=50),
            social(date(2024, 1, 2), Platform.FACEBOOK, followers=100),
            social(date(2024, 1, 2), Platform.INSTAGRAM, followers=300),
            social(date(2024, 1, 1), Platform.TIKTOK, followers=900),
        ]

        totals = aggregate_by_platform(records, "followers")

        # TikTok has nothing on the snapshot date, so it is omitted
        assert totals == {Platform.FACEBOOK: 100, Platform.INSTAGRAM: 300}

    def test_sums_business_units_and_countries(self):
        records = [
            social(date(2024, 1, 2), Platform.LINKEDIN, BusinessUnit.ASM, "US", followers=10),
            social(date(2024, 1, 2), Platform.LINKEDIN, BusinessUnit.KCL, "DE", followers=15),
        ]

        assert aggregate_by_platform(records, "followers") == {Platform.LINKEDIN: 25}

    def test_declaration_order(self):
        records = [
            social(date(2024, 1, 2), platform, followers=1)
            for platform in (Platform.TIKTOK, Platform.FACEBOOK, Platform.LINKEDIN)
        ]

        assert list(aggregate_by_platform(records, "followers")) == [
            Platform.FACEBOOK,
            Platform.LINKEDIN,
            Platform.TIKTOK,
        ]

    def test_explicit_snapshot_date(self):
        records = [
            social(date(2024, 1, 1), followers=50),
            social(date(2024, 1, 2), followers=100),
        ]

        assert aggregate_by_platform(records, "followers", at_date=date(2024, 1, 1)) == {
            Platform.FACEBOOK: 50
        }

    def test_empty(self):
        assert aggregate_by_platform([], "followers") == {}

    def test_rejects_non_social_field(self):
        with pytest.raises(InvalidAggregation):
            aggregate_by_platform([], "likes")


class TestAggregateByCountry:
    """Per-country sums."""

    def test_excludes_global_and_orders_by_total(self):
        records = [
            website(date(2024, 1, 1), country="GLOBAL", users=1_000),
            website(date(2024, 1, 1), country="US", users=20),
            website(date(2024, 1, 1), country="DE", users=30),
            website(date(2024, 1, 2), country="US", users=20),
            website(date(2024, 1, 1), country="AU", users=40),
        ]

        totals = aggregate_by_country(records, "users", family=MetricFamily.WEBSITE)

        assert list(totals.items()) == [("AU", 40), ("US", 40), ("DE", 30)]

    def test_rejects_family_without_country(self):
        with pytest.raises(InvalidAggregation) as exc_info:
            aggregate_by_country([], "likes", family=MetricFamily.ENGAGEMENT)

        assert "family" in exc_info.value.details

    def test_rejects_ratio(self):
        with pytest.raises(InvalidAggregation):
            aggregate_by_country([], "open_rate", family=MetricFamily.NEWSLETTER)
