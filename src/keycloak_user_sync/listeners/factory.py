"""Listener factory - host lifecycle glue for the user sync listener.

The host registers the factory under PROVIDER_ID, calls init() once with its
config scope, then create() for every session. Configuration, HTTP client
and worker pool are created once in init() and shared by all listeners.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import httpx

from keycloak_user_sync.core.config import UserSyncConfig, load_config
from keycloak_user_sync.core.credentials import TokenClient, create_http_client
from keycloak_user_sync.listeners.router import UserSyncEventListener, release_when_drained
from keycloak_user_sync.webhooks.client import WebhookClient

logger = logging.getLogger(__name__)

PROVIDER_ID = "user-sync-event-listener"


class ListenerNotInitializedError(RuntimeError):
    """Raised when create() is called before init()."""

    def __init__(self) -> None:
        super().__init__(f"{PROVIDER_ID} factory used before init()")


class UserSyncEventListenerFactory:
    """Creates UserSyncEventListener instances for the host."""

    def __init__(self) -> None:
        self.config: UserSyncConfig | None = None
        self._http_client: httpx.Client | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._closer: threading.Thread | None = None

    def get_id(self) -> str:
        return PROVIDER_ID

    def init(self, config_scope: Mapping[str, str] | None = None, **overrides: Any) -> None:
        """Load configuration and allocate the shared resources.

        Args:
            config_scope: Host-provided properties, consulted before the
                environment when resolving each setting.
            **overrides: Explicit config field values (timeouts, pool size).
        """
        self.config = load_config(config_scope, **overrides)
        self._http_client = create_http_client(self.config)
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="user-sync"
        )
        logger.info("UserSyncEventListenerFactory initialized")

    def post_init(self) -> None:
        logger.info("UserSyncEventListenerFactory post-initialized")

    def create(self, session: Any = None) -> UserSyncEventListener:
        """Create a listener for a host session. The session is not used."""
        if self.config is None or self._http_client is None or self._executor is None:
            raise ListenerNotInitializedError()
        return UserSyncEventListener(
            self.config,
            token_client=TokenClient(self.config, self._http_client),
            webhook_client=WebhookClient(self.config, self._http_client),
            executor=self._executor,
        )

    def close(self) -> None:
        """Release shared resources without blocking the host.

        The pool stops taking new events at once. Deliveries already queued or
        running finish on the shared HTTP client, which is closed after the
        last one.
        """
        if self._executor is not None:
            self._closer = release_when_drained(self._executor, self._http_client)
        elif self._http_client is not None:
            self._http_client.close()
        self._executor = None
        self._http_client = None
        logger.info("UserSyncEventListenerFactory closed")
