"""Tests for metric read schemas."""

from datetime import date
from decimal import Decimal

from pydantic import TypeAdapter

from comms_metrics.features.metrics.catalog import BusinessUnit, MetricFamily, Platform
from comms_metrics.features.metrics.schemas import (
    MetricRecordRead,
    SocialEngagementMetricRead,
    SocialMetricRead,
    WebsiteMetricRead,
    to_read_schema,
)
from comms_metrics.features.query.tests.fakes import engagement, social, website


def test_to_read_schema_uses_family_schema():
    record = social(date(2024, 1, 1), Platform.TIKTOK, BusinessUnit.EM, "US", followers=10)

    read = to_read_schema(MetricFamily.SOCIAL, record)

    assert isinstance(read, SocialMetricRead)
    assert read.family is MetricFamily.SOCIAL
    assert read.platform is Platform.TIKTOK
    assert read.business_unit is BusinessUnit.EM
    assert read.country == "US"
    assert read.followers == 10
    assert read.impressions is None


def test_numeric_ratios_are_serialized_as_floats():
    record = engagement(date(2024, 1, 1), likes=5, engagement_rate=Decimal("0.0425"))

    read = to_read_schema(MetricFamily.ENGAGEMENT, record)

    assert isinstance(read, SocialEngagementMetricRead)
    assert read.model_dump(mode="json")["engagement_rate"] == 0.0425


def test_discriminated_union_parses_by_family():
    adapter = TypeAdapter(list[MetricRecordRead])
    payload = [
        to_read_schema(MetricFamily.WEBSITE, website(date(2024, 2, 1), users=3)).model_dump(),
        to_read_schema(MetricFamily.SOCIAL, social(date(2024, 2, 1))).model_dump(),
    ]

    parsed = adapter.validate_python(payload)

    assert isinstance(parsed[0], WebsiteMetricRead)
    assert isinstance(parsed[1], SocialMetricRead)
