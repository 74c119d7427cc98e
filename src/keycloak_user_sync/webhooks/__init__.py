"""Webhook delivery for Keycloak User Sync.

This module provides:

- WebhookClient: HTTP client that POSTs events with a bearer token
- OutboundEvent / EventType: the event body and the forwarded event types

Usage:
    from keycloak_user_sync.webhooks import WebhookClient, create_event

    client = WebhookClient(config)
    event = create_event("USER_REGISTERED", user_id="u1")
    ok = client.deliver(config.webhook_url, event, token)
"""

from __future__ import annotations

from keycloak_user_sync.webhooks.client import (
    WebhookClient,
    WebhookDeliveryError,
    WebhookDeliveryResult,
)
from keycloak_user_sync.webhooks.events import (
    EventType,
    OutboundEvent,
    create_event,
)

__all__ = [
    # Client
    "WebhookClient",
    "WebhookDeliveryError",
    "WebhookDeliveryResult",
    # Events
    "EventType",
    "OutboundEvent",
    "create_event",
]
