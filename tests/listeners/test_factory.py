"""Tests for the listener factory lifecycle."""

import logging
import threading
import time

import httpx
import pytest

from keycloak_user_sync.core.config import SETTING_SOURCES
from keycloak_user_sync.listeners.factory import (
    PROVIDER_ID,
    ListenerNotInitializedError,
    UserSyncEventListenerFactory,
)
from keycloak_user_sync.listeners.models import UserEvent
from keycloak_user_sync.listeners.router import UserSyncEventListener


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host settings from leaking into the factory under test."""
    for _, env_name in SETTING_SOURCES.values():
        monkeypatch.delenv(env_name, raising=False)


@pytest.fixture
def factory():
    factory = UserSyncEventListenerFactory()
    yield factory
    factory.close()


class TestFactory:
    """Tests for UserSyncEventListenerFactory."""

    def test_provider_id(self, factory):
        assert factory.get_id() == "user-sync-event-listener"
        assert PROVIDER_ID == "user-sync-event-listener"

    def test_create_before_init(self, factory):
        with pytest.raises(ListenerNotInitializedError):
            factory.create()

    def test_init_reads_config_scope(self, factory, monkeypatch):
        monkeypatch.setenv("KEYCLOAK_REALM", "env-realm")
        monkeypatch.setenv("USER_SYNC_WEBHOOK_URL", "http://env.test/hook")

        factory.init({"keycloak.realm": "scope-realm"})

        assert factory.config.realm == "scope-realm"
        assert factory.config.webhook_url == "http://env.test/hook"

    def test_init_overrides(self, factory):
        factory.init(max_workers=2, request_timeout=5.0)
        assert factory.config.max_workers == 2
        assert factory.config.request_timeout == 5.0

    def test_listeners_share_resources(self, factory):
        factory.init()

        first = factory.create(session=object())
        second = factory.create()

        assert isinstance(first, UserSyncEventListener)
        assert first is not second
        assert first._executor is second._executor
        assert first.webhook_url == factory.config.webhook_url

    def test_listener_close_keeps_shared_pool(self, factory):
        factory.init()
        listener = factory.create()
        listener.close()

        assert factory.create() is not None
        assert factory._executor is not None

    def test_lifecycle_logging(self, factory, caplog):
        with caplog.at_level(logging.INFO):
            factory.init()
            factory.post_init()
            factory.close()

        assert "UserSyncEventListenerFactory initialized" in caplog.text
        assert "UserSyncEventListenerFactory post-initialized" in caplog.text
        assert "UserSyncEventListenerFactory closed" in caplog.text

    def test_close_is_idempotent(self, factory):
        factory.init()
        factory.close()
        factory.close()

    def test_events_after_close_are_contained(self, factory):
        factory.init()
        listener = factory.create()
        factory.close()

        # The pool is gone; the host call must still return normally.
        listener.on_event(UserEvent(type="REGISTER", user_id="u1"))


class TestCloseWithDeliveriesInFlight:
    """close() must let queued and running deliveries finish."""

    @pytest.fixture
    def mocked_factory(self, factory, config, fake_keycloak, monkeypatch):
        monkeypatch.setattr(
            "keycloak_user_sync.listeners.factory.create_http_client",
            lambda config: httpx.Client(transport=httpx.MockTransport(fake_keycloak.handler)),
        )
        factory.init(
            {
                "keycloak.server-url": "http://keycloak.test",
                "keycloak.realm": "test-realm",
                "user.sync.webhook.url": config.webhook_url,
            }
        )
        return factory

    def test_running_delivery_completes(self, mocked_factory, fake_keycloak, caplog):
        fake_keycloak.gate = threading.Event()
        listener = mocked_factory.create()
        shared_client = mocked_factory._http_client

        with caplog.at_level(logging.INFO):
            listener.on_event(UserEvent(type="REGISTER", user_id="u1"))
            mocked_factory.close()
            fake_keycloak.gate.set()
            mocked_factory._closer.join(timeout=10)

        assert not mocked_factory._closer.is_alive()
        [payload] = fake_keycloak.webhook_payloads()
        assert payload["eventType"] == "USER_REGISTERED"
        assert payload["userId"] == "u1"
        assert "Successfully synced user event: USER_REGISTERED for user: u1" in caplog.text
        assert shared_client.is_closed

    def test_queued_deliveries_complete(self, factory, config, fake_keycloak, monkeypatch):
        monkeypatch.setattr(
            "keycloak_user_sync.listeners.factory.create_http_client",
            lambda config: httpx.Client(transport=httpx.MockTransport(fake_keycloak.handler)),
        )
        factory.init(
            {
                "keycloak.server-url": "http://keycloak.test",
                "keycloak.realm": "test-realm",
                "user.sync.webhook.url": config.webhook_url,
            },
            max_workers=1,
        )
        fake_keycloak.gate = threading.Event()
        listener = factory.create()

        for user_id in ("u1", "u2", "u3"):
            listener.on_event(UserEvent(type="REGISTER", user_id=user_id))
        factory.close()
        fake_keycloak.gate.set()
        factory._closer.join(timeout=10)

        assert [p["userId"] for p in fake_keycloak.webhook_payloads()] == ["u1", "u2", "u3"]

    def test_close_does_not_block(self, mocked_factory, fake_keycloak):
        fake_keycloak.gate = threading.Event()
        listener = mocked_factory.create()
        listener.on_event(UserEvent(type="REGISTER", user_id="u1"))

        start = time.monotonic()
        mocked_factory.close()
        elapsed = time.monotonic() - start

        fake_keycloak.gate.set()
        mocked_factory._closer.join(timeout=10)
        assert elapsed < 1.0
