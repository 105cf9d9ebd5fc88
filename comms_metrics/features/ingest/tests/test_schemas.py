"""Tests for ingest submission schemas."""

from datetime import date

import pytest
from pydantic import ValidationError

from comms_metrics.core.config import get_settings
from comms_metrics.features.ingest.schemas import (
    BatchIngestRequest,
    NewsletterMetricSubmission,
    SocialEngagementMetricSubmission,
    SocialMetricSubmission,
    WebsiteMetricSubmission,
)
from comms_metrics.features.metrics.catalog import MetricFamily


def _social(**overrides) -> dict:
    values = {
        "date": "2024-01-01",
        "business_unit": "ASM",
        "platform": "FACEBOOK",
        "followers": 100,
    }
    values.update(overrides)
    return values


class TestSubmissions:
    """Single-record validation."""

    def test_social_defaults_to_global(self):
        submission = SocialMetricSubmission(**_social())

        assert submission.country == "GLOBAL"
        assert submission.family is MetricFamily.SOCIAL

    def test_country_is_upper_cased(self):
        submission = WebsiteMetricSubmission(date="2024-01-01", business_unit="ASM", country="de")

        assert submission.country == "DE"

    def test_enums_are_stored_as_values(self):
        row = SocialMetricSubmission(**_social()).to_row()

        assert row == {
            "date": date(2024, 1, 1),
            "business_unit": "ASM",
            "country": "GLOBAL",
            "platform": "FACEBOOK",
            "followers": 100,
            "number_of_posts": None,
            "impressions": None,
        }

    def test_key_follows_family_key_columns(self):
        submission = SocialEngagementMetricSubmission(
            date="2024-01-01", business_unit="KCL", platform="TIKTOK", likes=5
        )

        assert submission.key() == (date(2024, 1, 1), "TIKTOK", "KCL")

    @pytest.mark.parametrize("rate", [-0.1, 1.01, 45])
    def test_ratio_outside_unit_interval_is_rejected(self, rate):
        with pytest.raises(ValidationError):
            NewsletterMetricSubmission(
                date="2024-01-01", business_unit="EM", recipients=10, open_rate=rate
            )

    def test_negative_count_is_rejected(self):
        with pytest.raises(ValidationError):
            SocialMetricSubmission(**_social(followers=-1))

    def test_unknown_platform_is_rejected(self):
        with pytest.raises(ValidationError):
            SocialMetricSubmission(**_social(platform="MYSPACE"))

    def test_unknown_business_unit_is_rejected(self):
        with pytest.raises(ValidationError):
            SocialMetricSubmission(**_social(business_unit="NOPE"))

    def test_extra_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            WebsiteMetricSubmission(
                date="2024-01-01", business_unit="ASM", platform="FACEBOOK", users=1
            )

    def test_engagement_has_no_country(self):
        with pytest.raises(ValidationError):
            SocialEngagementMetricSubmission(
                date="2024-01-01", business_unit="ASM", platform="FACEBOOK", country="US"
            )


class TestBatchIngestRequest:
    """Batch envelope validation."""

    def test_empty_batch_is_rejected(self):
        with pytest.raises(ValidationError, match="at least one record"):
            BatchIngestRequest()

    def test_counts_records_across_families(self):
        request = BatchIngestRequest(
            social=[_social(), _social(date="2024-01-02")],
            website=[{"date": "2024-01-01", "business_unit": "ASM", "users": 3}],
        )

        assert request.total_records == 3
        groups = request.by_family()
        assert list(groups) == list(MetricFamily)
        assert len(groups[MetricFamily.SOCIAL]) == 2
        assert groups[MetricFamily.NEWSLETTER] == []

    def test_oversized_batch_is_rejected(self, monkeypatch):
        monkeypatch.setenv("INGEST_MAX_BATCH_SIZE", "2")
        get_settings.cache_clear()
        try:
            with pytest.raises(ValidationError, match="maximum is 2"):
                BatchIngestRequest(social=[_social(date=f"2024-01-0{d}") for d in (1, 2, 3)])
        finally:
            monkeypatch.delenv("INGEST_MAX_BATCH_SIZE")
            get_settings.cache_clear()
