"""
Shared fixtures for relay tests.

Upstream APIs are never contacted: aioresponses intercepts every aiohttp
request, and unmatched requests fail with a connection error.
"""

import pytest
from aioresponses import aioresponses
from fastapi.testclient import TestClient

from smm_relay.config import Settings
from smm_relay.main import create_app


# ============================================================================
# TEST CONFIGURATION
# ============================================================================

CATALOG_URL = "https://panel.test/services"
TELEGRAM_BASE = "https://telegram.test"
BOT_TOKEN = "123456:test-bot-token"
CHAT_ID = "-1001234"
SEND_MESSAGE_URL = f"{TELEGRAM_BASE}/bot{BOT_TOKEN}/sendMessage"
API_ID = "server-api-id"
API_KEY = "server-api-key"


def make_settings(**overrides) -> Settings:
    """Build settings that ignore the process environment's .env file."""
    values = {
        "medanpedia_api_id": API_ID,
        "medanpedia_api_key": API_KEY,
        "medanpedia_endpoint": CATALOG_URL,
        "bot_token": BOT_TOKEN,
        "chat_id": CHAT_ID,
        "telegram_api_base": TELEGRAM_BASE,
        "log_format": "text",
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sent_calls(mock: aioresponses, url: str) -> list:
    """Requests captured by aioresponses for a POST to url."""
    for (method, request_url), calls in mock.requests.items():
        if method == "POST" and str(request_url) == url:
            return calls
    return []


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def upstream():
    """Intercept outbound aiohttp requests."""
    with aioresponses() as mock:
        yield mock


@pytest.fixture
def client(settings, upstream):
    """Test client with the lifespan (shared session, relay, notifier) running."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def valid_order() -> dict:
    return {
        "serviceName": "Followers IG",
        "quantity": 1000,
        "target": "@user",
        "whatsapp": "0812xxxx",
        "total": 15000,
    }
