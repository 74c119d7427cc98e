"""Shared fixtures for Keycloak User Sync tests.

HTTP traffic never leaves the process: every client is built on an
httpx.MockTransport backed by FakeKeycloak, which plays both the identity
server's token endpoint and the webhook consumer.
"""

from __future__ import annotations

import json
import threading
from typing import Any

import httpx
import pytest

from keycloak_user_sync.core.config import UserSyncConfig
from keycloak_user_sync.core.credentials import TokenClient
from keycloak_user_sync.webhooks.client import WebhookClient

TOKEN_PATH = "/realms/test-realm/protocol/openid-connect/token"
WEBHOOK_URL = "http://consumer.test/api/v1/auth/sync/user-event"
CLIENT_SECRET = "s3cret-value"


class FakeKeycloak:
    """Canned token endpoint and webhook consumer that records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_status = 200
        self.token_body: Any = {
            "access_token": "test-access-token",
            "token_type": "Bearer",
            "expires_in": 300,
        }
        self.webhook_status = 200
        self.webhook_body = '{"received": true}'
        self.error: Exception | None = None
        self.gate: threading.Event | None = None
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        if request.url.path == TOKEN_PATH:
            if isinstance(self.token_body, dict):
                return httpx.Response(self.token_status, json=self.token_body)
            return httpx.Response(self.token_status, text=self.token_body)
        return httpx.Response(self.webhook_status, text=self.webhook_body)

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == TOKEN_PATH]

    @property
    def webhook_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path != TOKEN_PATH]

    def webhook_payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.webhook_requests]


@pytest.fixture
def config() -> UserSyncConfig:
    """Configuration pointing at the fake servers."""
    return UserSyncConfig(
        server_url="http://keycloak.test",
        realm="test-realm",
        client_id="sync-client",
        client_secret=CLIENT_SECRET,
        webhook_url=WEBHOOK_URL,
    )


@pytest.fixture
def fake_keycloak() -> FakeKeycloak:
    return FakeKeycloak()


@pytest.fixture
def http_client(fake_keycloak):
    """httpx client wired to FakeKeycloak."""
    client = httpx.Client(transport=httpx.MockTransport(fake_keycloak.handler))
    yield client
    client.close()


@pytest.fixture
def token_client(config, http_client) -> TokenClient:
    return TokenClient(config, http_client)


@pytest.fixture
def webhook_client(config, http_client) -> WebhookClient:
    return WebhookClient(config, http_client)
