"""Tests for request middleware."""

import structlog
from structlog.testing import capture_logs

from comms_metrics.core import middleware
from comms_metrics.core.middleware import REQUEST_ID_HEADER


async def test_request_id_middleware_generates_id(client):
    """Middleware should generate request ID if not provided."""
    response = await client.get("/health")

    request_id = response.headers.get(REQUEST_ID_HEADER)
    assert request_id is not None
    assert len(request_id) == 36  # UUID format


async def test_request_id_middleware_different_ids_per_request(client):
    """Each request should get a unique ID if not provided."""
    response1 = await client.get("/health")
    response2 = await client.get("/health")

    assert response1.headers[REQUEST_ID_HEADER] != response2.headers[REQUEST_ID_HEADER]


async def test_error_responses_carry_request_id(client, memory_store):
    """Problem responses should include the request id in body and header."""
    response = await client.get(
        "/metrics/social",
        params={"business_unit": "ASM", "start_date": "2024-01-01", "end_date": "2024-01-31"},
        headers={REQUEST_ID_HEADER: "req-42"},
    )

    assert response.status_code == 400
    assert response.headers[REQUEST_ID_HEADER] == "req-42"
    assert response.json()["request_id"] == "req-42"


async def test_metric_requests_are_logged_at_info(client, memory_store, monkeypatch):
    """Requests outside the health paths should produce info access logs."""
    monkeypatch.setattr(middleware, "logger", structlog.get_logger())

    with capture_logs() as logs:
        await client.get("/analytics/total-metrics")

    access = [e for e in logs if e["event"].startswith("http.request_")]
    assert [e["event"] for e in access] == ["http.request_started", "http.request_completed"]
    assert {e["log_level"] for e in access} == {"info"}
    assert access[1]["status_code"] == 200
    assert access[1]["path"] == "/analytics/total-metrics"


async def test_health_requests_are_not_logged_at_info(client, monkeypatch):
    """Health checks should only ever be logged at debug level."""
    monkeypatch.setattr(middleware, "logger", structlog.get_logger())

    with capture_logs() as logs:
        response = await client.get("/health")

    assert response.status_code == 200
    access = [e for e in logs if e["event"].startswith("http.request_")]
    assert all(e["log_level"] == "debug" for e in access)
