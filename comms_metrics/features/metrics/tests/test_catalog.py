"""Tests for the metric catalog and dimension parsing."""

import pytest

from comms_metrics.core.exceptions import InvalidFilter
from comms_metrics.features.metrics.catalog import (
    FAMILY_MEASURES,
    BusinessUnit,
    FieldKind,
    MetricFamily,
    Platform,
    additive_fields,
    family_has_country,
    family_has_platform,
    is_additive,
    is_gauge,
    normalize_country,
    parse_business_unit,
    parse_family,
    parse_platform,
)


class TestIsAdditive:
    """Which measures may be summed."""

    @pytest.mark.parametrize(
        ("family", "field"),
        [
            (MetricFamily.SOCIAL, "followers"),
            (MetricFamily.SOCIAL, "impressions"),
            (MetricFamily.ENGAGEMENT, "likes"),
            (MetricFamily.WEBSITE, "page_views"),
            (MetricFamily.NEWSLETTER, "recipients"),
        ],
    )
    def test_counts_and_gauges_are_additive(self, family, field):
        assert is_additive(family, field) is True

    @pytest.mark.parametrize(
        ("family", "field"),
        [
            (MetricFamily.ENGAGEMENT, "engagement_rate"),
            (MetricFamily.WEBSITE, "bounce_rate"),
            (MetricFamily.WEBSITE, "avg_session_duration"),
            (MetricFamily.NEWSLETTER, "open_rate"),
        ],
    )
    def test_ratios_and_averages_are_not_additive(self, family, field):
        assert is_additive(family, field) is False

    def test_unknown_field_is_not_additive(self):
        assert is_additive(MetricFamily.SOCIAL, "likes") is False
        assert is_additive(MetricFamily.WEBSITE, "nonsense") is False

    def test_only_followers_is_a_gauge(self):
        gauges = [
            (family, name)
            for family, measures in FAMILY_MEASURES.items()
            for name, kind in measures.items()
            if kind is FieldKind.GAUGE
        ]
        assert gauges == [(MetricFamily.SOCIAL, "followers")]
        assert is_gauge(MetricFamily.SOCIAL, "followers") is True
        assert is_gauge(MetricFamily.SOCIAL, "impressions") is False

    def test_additive_fields_in_catalog_order(self):
        assert additive_fields(MetricFamily.ENGAGEMENT) == (
            "likes",
            "comments",
            "shares",
            "saves",
            "clicks",
        )
        assert additive_fields(MetricFamily.WEBSITE) == ("users", "page_views", "sessions")


class TestDimensions:
    """Platform and country dimensions per family."""

    def test_platform_dimension(self):
        assert family_has_platform(MetricFamily.SOCIAL) is True
        assert family_has_platform(MetricFamily.ENGAGEMENT) is True
        assert family_has_platform(MetricFamily.WEBSITE) is False
        assert family_has_platform(MetricFamily.NEWSLETTER) is False

    def test_country_dimension(self):
        assert family_has_country(MetricFamily.ENGAGEMENT) is False
        assert all(
            family_has_country(f)
            for f in (MetricFamily.SOCIAL, MetricFamily.WEBSITE, MetricFamily.NEWSLETTER)
        )

    def test_platform_declaration_order(self):
        assert [p.value for p in Platform] == ["FACEBOOK", "INSTAGRAM", "LINKEDIN", "TIKTOK"]


class TestParsing:
    """Parsing raw dimension values."""

    def test_parse_family_is_case_insensitive(self):
        assert parse_family(" Social ") is MetricFamily.SOCIAL
        assert parse_family(MetricFamily.WEBSITE) is MetricFamily.WEBSITE

    def test_parse_platform_and_business_unit(self):
        assert parse_platform("instagram") is Platform.INSTAGRAM
        assert parse_business_unit("kcl") is BusinessUnit.KCL

    @pytest.mark.parametrize(
        ("parser", "value", "field"),
        [
            (parse_family, "podcast", "metric_family"),
            (parse_platform, "MYSPACE", "platform"),
            (parse_business_unit, "XYZ", "business_unit"),
        ],
    )
    def test_unknown_values_raise_invalid_filter(self, parser, value, field):
        with pytest.raises(InvalidFilter) as exc_info:
            parser(value)
        assert field in exc_info.value.details

    @pytest.mark.parametrize("value", [None, "", "  ", "GLOBAL", "global"])
    def test_normalize_country_wildcards(self, value):
        assert normalize_country(value) is None

    def test_normalize_country_upper_cases_codes(self):
        assert normalize_country(" us ") == "US"
