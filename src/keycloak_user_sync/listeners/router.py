"""Event Router - maps host events to webhook events and dispatches them.

Mapping rules:

| Host event                       | Forwarded as         |
|----------------------------------|----------------------|
| REGISTER                         | USER_REGISTERED      |
| VERIFY_EMAIL                     | EMAIL_VERIFIED       |
| UPDATE_PASSWORD                  | PASSWORD_UPDATED     |
| LOGIN through an identity broker | SOCIAL_LOGIN         |
| admin USER CREATE                | USER_CREATED_ADMIN   |
| admin USER UPDATE                | USER_UPDATED_ADMIN   |
| admin USER DELETE                | USER_DELETED_ADMIN   |

Anything else is dropped. Forwarding runs on a worker pool so the host's
event thread never waits on the network, and failures never reach the host.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from concurrent.futures import Executor, ThreadPoolExecutor

import httpx

from keycloak_user_sync.core.config import UserSyncConfig
from keycloak_user_sync.core.credentials import TokenClient, create_http_client
from keycloak_user_sync.listeners.models import (
    AdminEvent,
    HostEvent,
    OperationType,
    ResourceType,
    UserEvent,
    UserEventType,
)
from keycloak_user_sync.webhooks.client import WebhookClient
from keycloak_user_sync.webhooks.events import EventType, OutboundEvent, create_event

logger = logging.getLogger(__name__)

USER_EVENT_MAPPING: dict[str, EventType] = {
    UserEventType.REGISTER.value: EventType.USER_REGISTERED,
    UserEventType.VERIFY_EMAIL.value: EventType.EMAIL_VERIFIED,
    UserEventType.UPDATE_PASSWORD.value: EventType.PASSWORD_UPDATED,
}

ADMIN_USER_OPERATION_MAPPING: dict[str, EventType] = {
    OperationType.CREATE.value: EventType.USER_CREATED_ADMIN,
    OperationType.UPDATE.value: EventType.USER_UPDATED_ADMIN,
    OperationType.DELETE.value: EventType.USER_DELETED_ADMIN,
}

SOCIAL_LOGIN_DETAIL_KEYS = ("identity_provider", "identity_provider_identity")

USERS_PATH_MARKER = "users/"


# =============================================================================
# Mapping Rules
# =============================================================================


def is_social_login(details: Mapping[str, str] | None) -> bool:
    """A login is social when the host recorded an identity provider for it."""
    if not details:
        return False
    return any(key in details for key in SOCIAL_LOGIN_DETAIL_KEYS)


def extract_user_id_from_resource_path(resource_path: str | None) -> str | None:
    """Extract the user id from an admin resource path.

    The id is the text after the first "users/" up to the next "/" (or the
    next "users/"). It is None when the marker is absent or nothing follows
    it, and "" when the segment itself is empty.

    Examples:
        "users/abc-123"          -> "abc-123"
        "users/abc-123/sessions" -> "abc-123"
        "users//x"               -> ""
        "users/"                 -> None
        "groups/xyz"             -> None
    """
    if not resource_path:
        return None
    parts = resource_path.split(USERS_PATH_MARKER)
    # trailing empty segments do not count as an id
    while parts and not parts[-1]:
        parts.pop()
    if len(parts) < 2:
        return None
    return parts[1].split("/", 1)[0]


def map_user_event(event: UserEvent) -> OutboundEvent | None:
    """Return the webhook event for a user event, or None if it is not forwarded."""
    if event.type == UserEventType.LOGIN.value:
        if not is_social_login(event.details):
            return None
        event_type = EventType.SOCIAL_LOGIN
    else:
        event_type = USER_EVENT_MAPPING.get(event.type)
        if event_type is None:
            return None
    return create_event(event_type, user_id=event.user_id, details=event.details)


def map_admin_event(event: AdminEvent) -> OutboundEvent | None:
    """Return the webhook event for an admin event, or None if it is not forwarded."""
    if event.resource_type != ResourceType.USER.value:
        return None
    event_type = ADMIN_USER_OPERATION_MAPPING.get(event.operation_type)
    if event_type is None:
        return None
    return create_event(
        event_type,
        user_id=extract_user_id_from_resource_path(event.resource_path),
        details=None,
    )


def map_event(event: HostEvent) -> OutboundEvent | None:
    """Map either kind of host event."""
    if event.kind == "admin":
        return map_admin_event(event)
    return map_user_event(event)


# =============================================================================
# Listener
# =============================================================================


class UserSyncEventListener:
    """Host-facing listener that forwards user lifecycle events to a webhook.

    Every forwarded event is handed to the executor and the call returns
    immediately. No future is kept; outcomes only show up in the logs.
    """

    def __init__(
        self,
        config: UserSyncConfig,
        token_client: TokenClient | None = None,
        webhook_client: WebhookClient | None = None,
        executor: Executor | None = None,
    ):
        """Initialize the listener.

        Args:
            config: Resolved configuration; provides the webhook URL.
            token_client: Client for service tokens. Created from config if None.
            webhook_client: Client for delivery. Created from config if None.
            executor: Worker pool for forwarding. A private pool sized by
                config.max_workers is created if None, and shut down on close().

        Clients and pool created here are released by close(); injected ones
        belong to the caller.
        """
        self.config = config
        self.webhook_url = config.webhook_url
        self._http_client: httpx.Client | None = None
        if token_client is None or webhook_client is None:
            self._http_client = create_http_client(config)
        self.token_client = token_client or TokenClient(config, self._http_client)
        self.webhook_client = webhook_client or WebhookClient(config, self._http_client)
        self._closer: threading.Thread | None = None
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.max_workers, thread_name_prefix="user-sync"
        )

    def on_event(self, event: UserEvent | None) -> None:
        """Handle a user event from the host."""
        if event is None:
            return
        try:
            self._route(event)
        except Exception:
            logger.exception(f"Error processing user event: {event.type}")

    def on_admin_event(
        self, event: AdminEvent | None, include_representation: bool = False
    ) -> None:
        """Handle an admin event from the host.

        include_representation is accepted for parity with the host callback;
        representations are never forwarded.
        """
        if event is None:
            return
        try:
            self._route(event)
        except Exception:
            logger.warning(
                f"Error processing admin event: {event.operation_type}", exc_info=True
            )

    def _route(self, event: HostEvent) -> None:
        outbound = map_event(event)
        if outbound is not None:
            self._executor.submit(self.forward, outbound, event.kind)

    def forward(self, event: OutboundEvent, kind: str = "user") -> bool:
        """Fetch a token and deliver one event. Never raises.

        Runs on a worker thread when dispatched by the listener; the CLI calls
        it directly.

        Args:
            event: The webhook event to deliver.
            kind: "user" or "admin", the kind of host event it came from.
                Only affects the log lines.

        Returns:
            True if the webhook consumer accepted the event.
        """
        try:
            token = self.token_client.fetch_service_token()
            success = self.webhook_client.deliver(self.webhook_url, event, token)
        except Exception:
            logger.exception(f"Failed to send {kind} event: {event.event_type}")
            return False

        if kind == "admin":
            if success:
                logger.info(f"Successfully synced admin event: {event.event_type}")
            else:
                logger.warning(f"Failed to sync admin event: {event.event_type}")
        elif success:
            logger.info(
                f"Successfully synced user event: {event.event_type} for user: {event.user_id}"
            )
        else:
            logger.warning(
                f"Failed to sync user event: {event.event_type} for user: {event.user_id}"
            )
        return success

    def close(self) -> None:
        """Stop accepting events. Queued deliveries still run to completion.

        A private pool and HTTP client are released once the pool drains.
        """
        if self._owns_executor:
            self._closer = release_when_drained(self._executor, self._http_client)
        elif self._http_client is not None:
            self._http_client.close()
        logger.info("UserSyncEventListener closed")


def release_when_drained(
    executor: Executor, http_client: httpx.Client | None
) -> threading.Thread:
    """Shut the pool down and close the HTTP client after its last task.

    New submissions are refused immediately. Waiting happens on a daemon
    thread, which is returned so callers can join it.
    """
    executor.shutdown(wait=False)

    def drain() -> None:
        executor.shutdown(wait=True)
        if http_client is not None:
            http_client.close()
        logger.debug("User sync worker pool drained")

    closer = threading.Thread(target=drain, name="user-sync-close", daemon=True)
    closer.start()
    return closer
