"""Tests for derived analytics."""

from datetime import date, timedelta

import pytest

from comms_metrics.core.exceptions import InvalidAggregation
from comms_metrics.features.analytics.aggregation import DateAggregate
from comms_metrics.features.analytics.computations import (
    ActivityItem,
    CountryShare,
    country_distribution,
    engagement_trend,
    growth_rate,
    growth_series,
    latest_snapshot,
    percent_of,
    recent_activity,
    share_of_voice,
    snapshot_totals,
)
from comms_metrics.features.metrics.catalog import BusinessUnit, MetricFamily, Platform
from comms_metrics.features.query.tests.fakes import engagement, newsletter, social


@pytest.mark.parametrize(
    ("part", "whole", "expected"),
    [
        (1, 4, 25),
        (1, 8, 13),
        (1, 3, 33),
        (2, 3, 67),
        (5, 1000, 1),
        (4, 1000, 0),
        (7, 7, 100),
        (0, 0, 0),
        (5, 0, 0),
    ],
)
def test_percent_of_rounds_half_up(part, whole, expected):
    assert percent_of(part, whole) == expected


class TestShareOfVoice:
    """Platform percentages."""

    def test_two_platforms(self):
        shares = share_of_voice({Platform.FACEBOOK: 100, Platform.INSTAGRAM: 300})

        assert shares == {Platform.FACEBOOK: 25, Platform.INSTAGRAM: 75}

    def test_zero_total_gives_zero_shares(self):
        shares = share_of_voice({Platform.FACEBOOK: 0, Platform.LINKEDIN: 0})

        assert shares == {Platform.FACEBOOK: 0, Platform.LINKEDIN: 0}

    def test_shares_are_not_renormalized(self):
        shares = share_of_voice(
            {Platform.FACEBOOK: 1, Platform.INSTAGRAM: 1, Platform.LINKEDIN: 1}
        )

        assert list(shares.values()) == [33, 33, 33]

    def test_empty(self):
        assert share_of_voice({}) == {}


class TestEngagementTrend:
    def test_defaults_to_every_count(self):
        records = [
            engagement(date(2024, 1, 1), Platform.FACEBOOK, likes=1, clicks=2, engagement_rate=0.5),
            engagement(date(2024, 1, 1), Platform.TIKTOK, likes=3, shares=4),
        ]

        rows = engagement_trend(records)

        assert rows[0].totals == {"likes": 4, "comments": 0, "shares": 4, "saves": 0, "clicks": 2}
        assert "engagement_rate" not in rows[0].totals

    def test_selected_fields(self):
        rows = engagement_trend([engagement(date(2024, 1, 1), likes=9)], ["likes"])

        assert rows[0].totals == {"likes": 9}

    def test_rate_is_rejected(self):
        with pytest.raises(InvalidAggregation):
            engagement_trend([], ["engagement_rate"])


class TestCountryDistribution:
    def test_percentages_of_country_sum(self):
        records = [
            newsletter(date(2024, 1, 1), country="GLOBAL", recipients=10_000),
            newsletter(date(2024, 1, 1), country="US", recipients=300),
            newsletter(date(2024, 1, 1), country="UK", recipients=100),
        ]

        result = country_distribution(records, "recipients", family=MetricFamily.NEWSLETTER)

        assert result == [
            CountryShare(country="US", total=300, percentage=75),
            CountryShare(country="UK", total=100, percentage=25),
        ]

    def test_only_global_rows_gives_empty(self):
        records = [newsletter(date(2024, 1, 1), recipients=500)]

        assert country_distribution(records, "recipients", family=MetricFamily.NEWSLETTER) == []


class TestSnapshots:
    def test_latest_snapshot_keeps_input_order(self):
        first = social(date(2024, 1, 2), Platform.INSTAGRAM)
        older = social(date(2024, 1, 1))
        second = social(date(2024, 1, 2), Platform.FACEBOOK)

        assert latest_snapshot([first, older, second]) == [first, second]

    def test_latest_snapshot_empty(self):
        assert latest_snapshot([]) == []

    def test_snapshot_totals(self):
        records = [
            social(date(2024, 1, 1), followers=1_000, number_of_posts=9),
            social(date(2024, 1, 2), Platform.FACEBOOK, followers=100, number_of_posts=1),
            social(date(2024, 1, 2), Platform.INSTAGRAM, followers=200, number_of_posts=None),
        ]

        totals = snapshot_totals(
            records, ["followers", "number_of_posts"], family=MetricFamily.SOCIAL
        )

        assert totals == {"followers": 300, "number_of_posts": 1}

    def test_snapshot_totals_empty_is_zero(self):
        assert snapshot_totals([], ["users"], family=MetricFamily.WEBSITE) == {"users": 0}


class TestGrowth:
    @pytest.mark.parametrize(
        ("previous", "current", "expected"),
        [
            (100, 150, 50.0),
            (200, 150, -25.0),
            (3, 4, 33.33),
            (10, 10, 0.0),
            (0, 25, 0.0),
        ],
    )
    def test_growth_rate(self, previous, current, expected):
        assert growth_rate(previous, current) == expected

    def test_first_point_is_zero(self):
        rows = [
            DateAggregate(date(2024, 1, 1), {"users": 100, "sessions": 0}, 1),
            DateAggregate(date(2024, 1, 5), {"users": 150, "sessions": 8}, 1),
            DateAggregate(date(2024, 1, 6), {"users": 120, "sessions": 4}, 2),
        ]

        assert growth_series(rows) == [
            {"users": 0.0, "sessions": 0.0},
            {"users": 50.0, "sessions": 0.0},
            {"users": -20.0, "sessions": -50.0},
        ]

    def test_empty_series(self):
        assert growth_series([]) == []


DAY = date(2024, 3, 10)


class TestRecentActivity:
    def test_no_prior_snapshot_counts_full_followers(self):
        current = social(DAY, Platform.INSTAGRAM, followers=250)

        items = recent_activity([current], [], [])

        assert items == [
            ActivityItem(
                kind="followers",
                date=DAY,
                platform=Platform.INSTAGRAM,
                business_unit=BusinessUnit.ASM,
                country="GLOBAL",
                value=250,
                change="increase",
            )
        ]

    def test_increase_against_prior_snapshot(self):
        prior = social(DAY - timedelta(days=3), followers=100)
        current = social(DAY, followers=150)

        (item,) = recent_activity([current], [prior], [])

        assert (item.value, item.change) == (50, "increase")

    def test_decrease_against_prior_snapshot(self):
        prior = social(DAY - timedelta(days=1), followers=200)
        current = social(DAY, followers=150)

        (item,) = recent_activity([current], [prior], [])

        assert (item.value, item.change) == (50, "decrease")

    def test_latest_prior_in_window_is_used(self):
        priors = [
            social(DAY - timedelta(days=8), followers=10),
            social(DAY - timedelta(days=5), followers=100),
            social(DAY - timedelta(days=2), followers=140),
            social(DAY, followers=1),
        ]
        current = social(DAY, followers=150)

        (item,) = recent_activity([current], priors, [])

        assert item.value == 10

    def test_snapshot_older_than_a_week_is_ignored(self):
        prior = social(DAY - timedelta(days=8), followers=500)
        current = social(DAY, followers=150)

        (item,) = recent_activity([current], [prior], [])

        assert (item.value, item.change) == (150, "increase")

    def test_prior_must_match_platform_unit_and_country(self):
        current = social(DAY, Platform.FACEBOOK, BusinessUnit.ASM, "US", followers=150)
        others = [
            social(DAY - timedelta(days=1), Platform.TIKTOK, BusinessUnit.ASM, "US", followers=1),
            social(DAY - timedelta(days=1), Platform.FACEBOOK, BusinessUnit.KCL, "US", followers=1),
            social(DAY - timedelta(days=1), Platform.FACEBOOK, BusinessUnit.ASM, "DE", followers=1),
        ]

        (item,) = recent_activity([current], others, [])

        assert (item.value, item.change) == (150, "increase")

    def test_missing_followers_is_a_decrease(self):
        prior = social(DAY - timedelta(days=1), followers=40)
        current = social(DAY, followers=None)

        (item,) = recent_activity([current], [prior], [])

        assert (item.value, item.change) == (40, "decrease")

    def test_engagement_sums_likes_comments_and_shares(self):
        record = engagement(DAY, Platform.TIKTOK, likes=3, comments=4, shares=5, saves=100)

        (item,) = recent_activity([], [], [record])

        assert item.kind == "engagement"
        assert item.value == 12
        assert item.change == "increase"
        assert item.country is None

    def test_newest_first_and_limited(self):
        older = social(DAY - timedelta(days=2), followers=1)
        newer = social(DAY, Platform.LINKEDIN, followers=2)
        same_day = engagement(DAY, likes=1)

        items = recent_activity([older, newer], [], [same_day], limit=2)

        assert [(i.kind, i.date) for i in items] == [
            ("followers", DAY),
            ("engagement", DAY),
        ]
