"""Token Client - OAuth2 client-credentials grant against Keycloak.

Every call performs exactly one round trip to the realm's token endpoint.
Tokens are not cached or refreshed; each webhook delivery fetches its own.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError

from .config import UserSyncConfig

logger = logging.getLogger(__name__)

# =============================================================================
# Custom Exception Classes
# =============================================================================


class AuthError(Exception):
    """Base exception for all service-token errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


class TokenNetworkError(AuthError):
    """Raised when the token endpoint cannot be reached."""

    def __init__(self, url: str, original_error: Exception):
        self.url = url
        self.original_error = original_error
        if isinstance(original_error, httpx.TimeoutException):
            message = f"Network timeout while connecting to {url}"
        else:
            message = f"Failed to connect to {url}"
        super().__init__(message, f"Network error: {original_error}")


class TokenHTTPError(AuthError):
    """Raised when the token endpoint returns a non-2xx status."""

    def __init__(self, status_code: int, response_body: str | None = None):
        self.status_code = status_code
        self.response_body = response_body
        error_messages = {
            400: "Bad request - the grant request was rejected",
            401: "Unauthorized - the client id or secret is invalid",
            403: "Forbidden - the client may not use the client-credentials grant",
            404: "Token endpoint not found - check the server URL and realm",
            429: "Rate limited - too many token requests",
            500: "Server error - the identity server is experiencing issues",
            502: "Bad gateway - the identity server may be temporarily unavailable",
            503: "Service unavailable - the identity server is temporarily unavailable",
        }
        message = error_messages.get(status_code, f"HTTP error {status_code}")
        super().__init__(f"Failed to get access token: {message}", response_body or None)


class InvalidTokenResponseError(AuthError):
    """Raised when the token endpoint response is not a token envelope."""

    def __init__(self, message: str, response_text: str | None = None):
        self.response_text = response_text
        details = f"Received response: {response_text}" if response_text else None
        super().__init__(message, details)


# =============================================================================
# Token Model
# =============================================================================


class AccessToken(BaseModel):
    """Token envelope returned by the OpenID Connect token endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None

    def __str__(self) -> str:
        return self.access_token


# =============================================================================
# Token Client
# =============================================================================


class TokenClient:
    """Obtains service-account tokens with the client-credentials grant."""

    def __init__(self, config: UserSyncConfig, http_client: httpx.Client | None = None):
        """Initialize the token client.

        Args:
            config: Resolved listener configuration.
            http_client: Shared HTTP client. A new one using the configured
                timeouts is created when omitted.
        """
        self.config = config
        self._client = http_client or create_http_client(config)

    def fetch_service_token(self) -> AccessToken:
        """Request a fresh access token for the service client.

        Returns:
            AccessToken: The parsed token envelope.

        Raises:
            TokenNetworkError: If the endpoint is unreachable or times out.
            TokenHTTPError: If the endpoint returns a non-2xx status.
            InvalidTokenResponseError: If the body is not a token envelope.
        """
        url = self.config.token_url
        form = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret.get_secret_value(),
            "grant_type": "client_credentials",
        }

        try:
            response = self._client.post(
                url,
                data=form,
                headers={"Accept": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Failed to get access token from {url}: {e}")
            raise TokenNetworkError(url, e) from e

        if not response.is_success:
            logger.warning(
                f"Failed to get access token. HTTP {response.status_code}: {response.text}"
            )
            raise TokenHTTPError(response.status_code, response.text)

        try:
            token = AccessToken.model_validate_json(response.content)
        except ValidationError as e:
            logger.error(f"Token endpoint returned an unexpected body: {e}")
            raise InvalidTokenResponseError(
                "Token endpoint response is missing a valid access_token",
                response.text,
            ) from e

        logger.info(f"Successfully obtained access token for client {self.config.client_id}")
        return token

    def close(self) -> None:
        self._client.close()


def create_http_client(config: UserSyncConfig) -> httpx.Client:
    """Create an HTTP client with the configured connect/request timeouts.

    httpx applies timeouts per phase: connect_timeout bounds establishing the
    connection, and request_timeout bounds each read, write and pool wait on
    its own. It is not a deadline for the whole request, so a server that
    keeps trickling bytes can hold a request open longer.
    """
    timeout = httpx.Timeout(config.request_timeout, connect=config.connect_timeout)
    return httpx.Client(timeout=timeout)
