"""Tests for ingest endpoints."""

from comms_metrics.core.exceptions import StoreUnavailable
from comms_metrics.features.metrics.catalog import MetricFamily

SOCIAL = {
    "date": "2024-01-01",
    "business_unit": "ASM",
    "platform": "INSTAGRAM",
    "country": "us",
    "followers": 1200,
    "number_of_posts": 2,
}


async def test_submit_social(client, memory_store):
    response = await client.post("/ingest/social", json=SOCIAL)

    assert response.status_code == 201
    body = response.json()
    assert body["family"] == "social"
    assert body["country"] == "US"
    assert body["followers"] == 1200
    assert body["id"] == 1
    assert len(memory_store.records[MetricFamily.SOCIAL]) == 1


async def test_resubmitting_same_key_updates(client, memory_store):
    await client.post("/ingest/social", json=SOCIAL)

    response = await client.post("/ingest/social", json={**SOCIAL, "followers": 1300})

    assert response.status_code == 201
    assert response.json()["followers"] == 1300
    assert len(memory_store.records[MetricFamily.SOCIAL]) == 1


async def test_submit_engagement(client, memory_store):
    response = await client.post(
        "/ingest/engagement",
        json={
            "date": "2024-01-01",
            "business_unit": "KCL",
            "platform": "LINKEDIN",
            "likes": 10,
            "engagement_rate": 0.031,
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["family"] == "engagement"
    assert body["comments"] == 0
    assert body["engagement_rate"] == 0.031


async def test_submit_website_and_newsletter(client, memory_store):
    website = await client.post(
        "/ingest/website",
        json={"date": "2024-01-01", "business_unit": "EM", "users": 40, "bounce_rate": 0.4},
    )
    newsletter = await client.post(
        "/ingest/newsletter",
        json={"date": "2024-01-01", "business_unit": "EM", "recipients": 90, "open_rate": 0.5},
    )

    assert website.status_code == 201
    assert website.json()["country"] == "GLOBAL"
    assert newsletter.status_code == 201
    assert newsletter.json()["open_rate"] == 0.5


async def test_ratio_out_of_range_is_validation_error(client, memory_store):
    response = await client.post(
        "/ingest/website",
        json={"date": "2024-01-01", "business_unit": "EM", "bounce_rate": 42},
    )

    assert response.status_code == 422
    assert response.headers["content-type"] == "application/problem+json"
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert [e["field"] for e in body["errors"]] == ["bounce_rate"]
    assert memory_store.upsert_calls == []


async def test_missing_platform_is_validation_error(client, memory_store):
    payload = {k: v for k, v in SOCIAL.items() if k != "platform"}

    response = await client.post("/ingest/social", json=payload)

    assert response.status_code == 422
    assert [e["field"] for e in response.json()["errors"]] == ["platform"]


async def test_store_failure_is_server_error(client, memory_store):
    memory_store.fail_with = StoreUnavailable("down")

    response = await client.post("/ingest/social", json=SOCIAL)

    assert response.status_code == 500
    assert response.json()["code"] == "STORE_UNAVAILABLE"


async def test_batch(client, memory_store):
    payload = {
        "social": [SOCIAL, {**SOCIAL, "followers": 1250}],
        "newsletter": [{"date": "2024-01-01", "business_unit": "ASM", "recipients": 5}],
    }

    response = await client.post("/ingest/batch", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["total_processed"] == 3
    assert body["social"] == {
        "submitted_count": 2,
        "inserted_count": 1,
        "updated_count": 0,
        "duplicate_count": 1,
    }
    assert body["newsletter"]["inserted_count"] == 1
    assert body["website"]["submitted_count"] == 0
    assert memory_store.records[MetricFamily.SOCIAL][0].followers == 1250


async def test_batch_resend_updates(client, memory_store):
    payload = {"website": [{"date": "2024-01-01", "business_unit": "ASM", "users": 5}]}

    await client.post("/ingest/batch", json=payload)
    response = await client.post("/ingest/batch", json=payload)

    assert response.json()["website"]["updated_count"] == 1
    assert response.json()["website"]["inserted_count"] == 0


async def test_empty_batch_is_validation_error(client, memory_store):
    response = await client.post("/ingest/batch", json={})

    assert response.status_code == 422
