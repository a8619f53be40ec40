"""
Integration tests for the relay HTTP API.

Tests cover:
- GET/POST /api/services relay and credential precedence
- POST /api/order validation, acknowledgement and failure envelopes
- Timeout handling on every relay route
- Health, root banner and metrics endpoints

Upstreams are mocked with aioresponses; the app runs with its real lifespan,
middleware and exception handlers through FastAPI TestClient.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from smm_relay.main import create_app
from tests.conftest import (
    API_ID,
    API_KEY,
    CATALOG_URL,
    CHAT_ID,
    SEND_MESSAGE_URL,
    make_settings,
    sent_calls,
)


# ============================================================================
# /api/services
# ============================================================================


class TestServicesEndpoint:
    """Tests for GET and POST /api/services."""

    def test_get_returns_upstream_catalog(self, client, upstream):
        catalog = {"status": True, "data": [{"id": 1, "name": "Followers IG"}]}
        upstream.post(CATALOG_URL, status=200, payload=catalog)

        response = client.get("/api/services")

        assert response.status_code == 200
        assert response.json() == catalog
        calls = sent_calls(upstream, CATALOG_URL)
        assert len(calls) == 1
        assert calls[0].kwargs["json"] == {"api_id": API_ID, "api_key": API_KEY}

    def test_post_forwards_body_with_credentials(self, client, upstream):
        upstream.post(CATALOG_URL, status=200, payload={"status": True, "order": 7})

        response = client.post(
            "/api/services",
            json={"action": "order", "service": 12, "target": "@user", "quantity": 100},
        )

        assert response.status_code == 200
        assert response.json() == {"status": True, "order": 7}
        sent = sent_calls(upstream, CATALOG_URL)[0].kwargs["json"]
        assert sent == {
            "action": "order",
            "service": 12,
            "target": "@user",
            "quantity": 100,
            "api_id": API_ID,
            "api_key": API_KEY,
        }

    def test_client_credentials_never_reach_upstream(self, client, upstream):
        upstream.post(CATALOG_URL, payload={"status": True})

        client.post(
            "/api/services",
            json={"api_id": "client-id", "api_key": "client-key", "action": "balance"},
        )

        sent = sent_calls(upstream, CATALOG_URL)[0].kwargs["json"]
        assert sent["api_id"] == API_ID
        assert sent["api_key"] == API_KEY

    def test_upstream_success_status_is_passed_through(self, client, upstream):
        upstream.post(CATALOG_URL, status=202, payload={"queued": True})

        response = client.post("/api/services", json={"action": "refill"})

        assert response.status_code == 202
        assert response.json() == {"queued": True}

    @pytest.mark.parametrize("status_code", [300, 304, 307, 400, 401, 404, 500, 503])
    def test_non_2xx_status_becomes_502(self, client, upstream, status_code):
        upstream.post(CATALOG_URL, status=status_code, payload={"status": False})

        response = client.get("/api/services")

        assert response.status_code == 502
        body = response.json()
        assert body["error"] == "Failed to call Medanpedia API"
        assert body["detail"] == f"Request failed with status code {status_code}"

    @pytest.mark.parametrize("method", ["GET", "POST"])
    def test_timeout_becomes_502_with_detail(self, client, upstream, method):
        upstream.post(CATALOG_URL, exception=asyncio.TimeoutError())

        if method == "GET":
            response = client.get("/api/services")
        else:
            response = client.post("/api/services", json={"action": "services"})

        assert response.status_code == 502
        assert "timeout" in response.json()["detail"]
        assert response.json()["detail"] == "timeout of 10000ms exceeded"

    def test_non_object_body_is_rejected(self, client, upstream):
        response = client.post("/api/services", json=[1, 2, 3])

        assert response.status_code == 400
        assert response.json() == {"error": "Request body must be a JSON object"}
        assert sent_calls(upstream, CATALOG_URL) == []

    def test_malformed_json_is_rejected(self, client, upstream):
        response = client.post(
            "/api/services",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert sent_calls(upstream, CATALOG_URL) == []

    def test_missing_credentials_fail_at_call_time(self, upstream):
        settings = make_settings(medanpedia_api_id=None, medanpedia_api_key=None)

        with TestClient(create_app(settings)) as client:
            response = client.get("/api/services")

        assert response.status_code == 502
        assert response.json()["error"] == "Failed to call Medanpedia API"
        assert "not configured" in response.json()["detail"]
        assert sent_calls(upstream, CATALOG_URL) == []


# ============================================================================
# /api/order
# ============================================================================


class TestOrderEndpoint:
    """Tests for POST /api/order."""

    def test_acknowledged_order(self, client, upstream, valid_order):
        upstream.post(SEND_MESSAGE_URL, payload={"ok": True, "result": {"message_id": 1}})

        response = client.post("/api/order", json=valid_order)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "result": {"message_id": 1}}

        sent = sent_calls(upstream, SEND_MESSAGE_URL)[0].kwargs["json"]
        assert sent["chat_id"] == CHAT_ID
        assert sent["parse_mode"] == "Markdown"
        assert "Followers IG" in sent["text"]
        assert "Rp 15.000" in sent["text"]

    def test_zero_total_is_accepted(self, client, upstream, valid_order):
        upstream.post(SEND_MESSAGE_URL, payload={"ok": True, "result": {"message_id": 2}})
        valid_order["total"] = 0

        response = client.post("/api/order", json=valid_order)

        assert response.status_code == 200
        assert "Rp 0" in sent_calls(upstream, SEND_MESSAGE_URL)[0].kwargs["json"]["text"]

    @pytest.mark.parametrize("field", ["serviceName", "quantity", "target", "whatsapp"])
    def test_missing_field_returns_400_without_upstream_call(
        self, client, upstream, valid_order, field
    ):
        del valid_order[field]

        response = client.post("/api/order", json=valid_order)

        assert response.status_code == 400
        error = response.json()["error"]
        for name in ("serviceName", "quantity", "target", "whatsapp", "total"):
            assert name in error
        assert len(sent_calls(upstream, SEND_MESSAGE_URL)) == 0

    @pytest.mark.parametrize("field", ["serviceName", "quantity", "target", "whatsapp"])
    def test_falsy_field_returns_400(self, client, upstream, valid_order, field):
        valid_order[field] = 0 if field == "quantity" else ""

        response = client.post("/api/order", json=valid_order)

        assert response.status_code == 400
        assert len(sent_calls(upstream, SEND_MESSAGE_URL)) == 0

    def test_null_total_returns_400(self, client, upstream, valid_order):
        valid_order["total"] = None

        response = client.post("/api/order", json=valid_order)

        assert response.status_code == 400
        assert len(sent_calls(upstream, SEND_MESSAGE_URL)) == 0

    def test_missing_ok_flag_returns_502(self, client, upstream, valid_order):
        upstream_body = {"result": {"message_id": 3}}
        upstream.post(SEND_MESSAGE_URL, status=200, payload=upstream_body)

        response = client.post("/api/order", json=valid_order)

        assert response.status_code == 502
        body = response.json()
        assert body["ok"] is False
        assert body["error"] == "Telegram API did not return ok:true"
        assert body["data"] == upstream_body

    def test_timeout_returns_502_with_detail(self, client, upstream, valid_order):
        upstream.post(SEND_MESSAGE_URL, exception=asyncio.TimeoutError())

        response = client.post("/api/order", json=valid_order)

        assert response.status_code == 502
        assert response.json() == {
            "error": "Failed to send message to Telegram",
            "detail": "timeout of 10000ms exceeded",
        }

    def test_telegram_error_status_does_not_leak_token(self, client, upstream, valid_order):
        upstream.post(
            SEND_MESSAGE_URL,
            status=400,
            payload={"ok": False, "description": "Bad Request: can't parse entities"},
        )

        response = client.post("/api/order", json=valid_order)

        assert response.status_code == 502
        assert response.json()["detail"] == "Request failed with status code 400"
        assert "test-bot-token" not in response.text

    @pytest.mark.parametrize("status_code", [300, 304])
    def test_telegram_3xx_status_returns_502(self, client, upstream, valid_order, status_code):
        upstream.post(SEND_MESSAGE_URL, status=status_code, payload={"ok": True, "result": {}})

        response = client.post("/api/order", json=valid_order)

        assert response.status_code == 502
        assert response.json() == {
            "error": "Failed to send message to Telegram",
            "detail": f"Request failed with status code {status_code}",
        }

    def test_unconfigured_bot_returns_502(self, upstream, valid_order):
        settings = make_settings(bot_token=None)

        with TestClient(create_app(settings)) as client:
            response = client.post("/api/order", json=valid_order)

        assert response.status_code == 502
        assert response.json()["error"] == "Failed to send message to Telegram"
        assert not upstream.requests


# ============================================================================
# Health, banner and metrics
# ============================================================================


class TestOperationalEndpoints:
    """Tests for /api/health, / and /metrics."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert isinstance(body["timestamp"], int)

    def test_health_timestamps_do_not_decrease(self, client):
        timestamps = [client.get("/api/health").json()["timestamp"] for _ in range(5)]

        assert timestamps == sorted(timestamps)

    def test_root_banner(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Medanpedia Proxy Server is running."

    def test_metrics_count_upstream_calls(self, client, upstream):
        upstream.post(CATALOG_URL, payload={"status": True})
        client.get("/api/services")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'upstream_requests_total{upstream="medanpedia",outcome="success"} 1.0' in response.text
        assert "http_requests_total" in response.text
