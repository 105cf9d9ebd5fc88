"""Tests for deterministic demo data generation."""

from datetime import date

import pytest

from comms_metrics.features.ingest.demo_data import (
    DemoDataConfig,
    chunk_batches,
    generate_demo_submissions,
)
from comms_metrics.features.metrics.catalog import BusinessUnit, MetricFamily, Platform


@pytest.fixture
def config() -> DemoDataConfig:
    return DemoDataConfig(
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 3),
        countries=["US", "de"],
        business_units=[BusinessUnit.ASM, BusinessUnit.KCL],
        platforms=[Platform.FACEBOOK, Platform.TIKTOK],
        seed=7,
    )


def test_row_counts_per_family(config):
    data = generate_demo_submissions(config)

    # 3 days x 2 units x 2 platforms x 2 countries
    assert len(data[MetricFamily.SOCIAL]) == 24
    assert len(data[MetricFamily.ENGAGEMENT]) == 12
    assert len(data[MetricFamily.WEBSITE]) == 12
    assert len(data[MetricFamily.NEWSLETTER]) == 12


def test_same_seed_same_data(config):
    first = generate_demo_submissions(config)
    second = generate_demo_submissions(config)

    assert first == second


def test_different_seed_different_data(config):
    other = DemoDataConfig(**{**config.__dict__, "seed": 8})

    assert generate_demo_submissions(config) != generate_demo_submissions(other)


def test_keys_are_unique(config):
    for family, submissions in generate_demo_submissions(config).items():
        keys = [s.key() for s in submissions]
        assert len(keys) == len(set(keys)), family


def test_country_codes_are_upper_cased_and_not_global(config):
    data = generate_demo_submissions(config)

    assert {s.country for s in data[MetricFamily.WEBSITE]} == {"US", "DE"}


def test_ratios_stay_in_unit_interval(config):
    data = generate_demo_submissions(config)

    assert all(0 <= s.open_rate <= 1 for s in data[MetricFamily.NEWSLETTER])
    assert all(0 <= s.bounce_rate <= 1 for s in data[MetricFamily.WEBSITE])


def test_inverted_range_is_rejected():
    with pytest.raises(ValueError, match="on or before"):
        generate_demo_submissions(
            DemoDataConfig(start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))
        )


def test_global_with_countries_is_rejected():
    with pytest.raises(ValueError, match="GLOBAL"):
        generate_demo_submissions(
            DemoDataConfig(
                start_date=date(2024, 1, 1),
                end_date=date(2024, 1, 1),
                countries=["GLOBAL", "US"],
            )
        )


def test_empty_country_list_generates_global_rows():
    data = generate_demo_submissions(
        DemoDataConfig(
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 1),
            countries=[],
            business_units=[BusinessUnit.EM],
            platforms=[Platform.LINKEDIN],
        )
    )

    assert [s.country for s in data[MetricFamily.SOCIAL]] == ["GLOBAL"]


def test_chunk_batches_respects_size(config):
    data = generate_demo_submissions(config)

    batches = list(chunk_batches(data, 10))

    assert all(b.total_records <= 10 for b in batches)
    assert sum(b.total_records for b in batches) == 60
    # Each batch holds a single family
    assert all(sum(1 for rows in b.by_family().values() if rows) == 1 for b in batches)


def test_chunk_batches_rejects_non_positive_size(config):
    with pytest.raises(ValueError):
        list(chunk_batches(generate_demo_submissions(config), 0))
