"""Webhook Client - authenticated JSON delivery of user events.

Delivery is at-most-once and best effort: a single POST per event, no retry,
no dead-letter path. Failures are reported as a WebhookDeliveryResult and a
log line; nothing is raised to the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

from keycloak_user_sync.core.config import UserSyncConfig
from keycloak_user_sync.core.credentials import AccessToken, create_http_client
from keycloak_user_sync.webhooks.events import OutboundEvent

logger = logging.getLogger(__name__)


class WebhookDeliveryError(Exception):
    """Raised internally when a webhook POST does not succeed."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"{message} ({url})")


@dataclass
class WebhookDeliveryResult:
    """Outcome of a single webhook delivery attempt."""

    success: bool
    url: str
    status_code: int | None = None
    response_body: str | None = None
    error: str | None = None
    delivery_time_ms: float = 0.0


class WebhookClient:
    """Posts OutboundEvents to the webhook consumer with a bearer token."""

    def __init__(self, config: UserSyncConfig, http_client: httpx.Client | None = None):
        self.config = config
        self._client = http_client or create_http_client(config)

    def send(
        self, url: str, event: OutboundEvent, token: AccessToken | str
    ) -> WebhookDeliveryResult:
        """Deliver an event and describe the outcome.

        Args:
            url: Webhook destination.
            event: Event to serialize as the JSON body.
            token: Bearer token for the Authorization header.

        Returns:
            WebhookDeliveryResult; success is True iff the status is 2xx.
        """
        start = time.monotonic()
        try:
            response = self._post(url, event, str(token))
        except WebhookDeliveryError as e:
            elapsed = (time.monotonic() - start) * 1000
            if e.status_code is None:
                logger.exception(f"Failed to send POST request to {url}")
            else:
                logger.warning(f"Failed to send POST request. {e}")
            return WebhookDeliveryResult(
                success=False,
                url=url,
                status_code=e.status_code,
                error=str(e),
                delivery_time_ms=elapsed,
            )
        except Exception as e:
            logger.exception(f"Unexpected error sending POST request to {url}")
            return WebhookDeliveryResult(
                success=False,
                url=url,
                error=str(e),
                delivery_time_ms=(time.monotonic() - start) * 1000,
            )

        elapsed = (time.monotonic() - start) * 1000
        logger.info(f"Successfully sent POST request. Response: {response.text}")
        return WebhookDeliveryResult(
            success=True,
            url=url,
            status_code=response.status_code,
            response_body=response.text,
            delivery_time_ms=elapsed,
        )

    def deliver(self, url: str, event: OutboundEvent, token: AccessToken | str) -> bool:
        """Deliver an event; True iff the consumer answered with a 2xx status."""
        return self.send(url, event, token).success

    def _post(self, url: str, event: OutboundEvent, bearer_token: str) -> httpx.Response:
        try:
            payload = event.to_json()
        except (TypeError, ValueError) as e:
            raise WebhookDeliveryError(url, f"Failed to serialize event: {e}") from e

        headers = {
            "Authorization": f"Bearer {bearer_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        logger.info(f"Sending HTTP request to: {url}")
        logger.info(f"Request payload: {payload}")

        try:
            response = self._client.post(url, content=payload, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise WebhookDeliveryError(url, f"Transport error: {e}") from e

        if not response.is_success:
            raise WebhookDeliveryError(
                url,
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    def close(self) -> None:
        self._client.close()
