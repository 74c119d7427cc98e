"""Configuration Model - Pydantic models for the user sync listener.

This module defines the configuration schema for the Keycloak user sync
listener, including:
- Identity server settings (server URL, realm, service client credentials)
- Webhook destination URL
- Network timeouts and worker pool size

Each setting is resolved once, in this order:
1. Host property (the Keycloak SPI config scope / JVM-style system property)
2. Environment variable
3. Built-in default

Blank values are treated as unset at every level.

Setting Mapping:
| Config Key     | Host Property                        | Environment Variable                |
|----------------|--------------------------------------|-------------------------------------|
| server_url     | keycloak.server-url                  | KEYCLOAK_SERVER_URL                 |
| realm          | keycloak.realm                       | KEYCLOAK_REALM                      |
| client_id      | keycloak.auth-service.client-id      | KEYCLOAK_AUTH_SERVICE_CLIENT_ID     |
| client_secret  | keycloak.auth-service.client-secret  | KEYCLOAK_AUTH_SERVICE_CLIENT_SECRET |
| webhook_url    | user.sync.webhook.url                | USER_SYNC_WEBHOOK_URL               |
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

# =============================================================================
# Setting Sources
# =============================================================================

# config key -> (host property, environment variable)
SETTING_SOURCES: dict[str, tuple[str, str]] = {
    "server_url": ("keycloak.server-url", "KEYCLOAK_SERVER_URL"),
    "realm": ("keycloak.realm", "KEYCLOAK_REALM"),
    "client_id": ("keycloak.auth-service.client-id", "KEYCLOAK_AUTH_SERVICE_CLIENT_ID"),
    "client_secret": (
        "keycloak.auth-service.client-secret",
        "KEYCLOAK_AUTH_SERVICE_CLIENT_SECRET",
    ),
    "webhook_url": ("user.sync.webhook.url", "USER_SYNC_WEBHOOK_URL"),
}


# =============================================================================
# Main Configuration Model
# =============================================================================


class UserSyncConfig(BaseModel):
    """Resolved settings for the user sync listener.

    Instances are immutable; they are built once when the listener factory
    initializes and shared by every listener it creates.
    """

    model_config = ConfigDict(frozen=True)

    server_url: str = Field(
        default="http://localhost:8080",
        description="Keycloak base URL. Overridden by KEYCLOAK_SERVER_URL.",
    )
    realm: str = Field(
        default="examinai",
        description="Realm that owns the service client. Overridden by KEYCLOAK_REALM.",
    )
    client_id: str = Field(
        default="keycloak-spi-client",
        description="OAuth client id used for the client-credentials grant. "
        "Overridden by KEYCLOAK_AUTH_SERVICE_CLIENT_ID.",
    )
    client_secret: SecretStr = Field(
        default=SecretStr("change-me"),
        description="OAuth client secret. Overridden by KEYCLOAK_AUTH_SERVICE_CLIENT_SECRET.",
    )
    webhook_url: str = Field(
        default="http://localhost:8070/api/v1/auth/sync/user-event",
        description="Destination for user events. Overridden by USER_SYNC_WEBHOOK_URL.",
    )
    connect_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Connection timeout in seconds for outbound calls.",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Overall request timeout in seconds for outbound calls.",
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        description="Size of the worker pool used for fire-and-forget delivery.",
    )

    @property
    def token_url(self) -> str:
        """OpenID Connect token endpoint for the configured realm."""
        base = self.server_url.rstrip("/")
        return f"{base}/realms/{self.realm}/protocol/openid-connect/token"


# =============================================================================
# Loading
# =============================================================================


def _first_non_blank(*values: str | None) -> str | None:
    for value in values:
        if value is not None and value.strip():
            return value
    return None


def resolve_setting(
    key: str,
    properties: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Resolve a single setting from host properties, then the environment.

    Args:
        key: Config key from SETTING_SOURCES.
        properties: Host-provided properties (system property equivalent).
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        The first non-blank value found, or None to fall back to the default.

    Raises:
        KeyError: If the key has no registered sources.
    """
    prop_name, env_name = SETTING_SOURCES[key]
    properties = properties or {}
    environ = os.environ if environ is None else environ
    return _first_non_blank(properties.get(prop_name), environ.get(env_name))


def load_config(
    properties: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> UserSyncConfig:
    """Build a UserSyncConfig from host properties, environment and defaults.

    Args:
        properties: Host-provided properties, consulted first.
        environ: Environment mapping. Defaults to os.environ.
        **overrides: Explicit field values (e.g. timeouts) applied last.

    Returns:
        The resolved configuration.
    """
    values: dict[str, Any] = {}
    for key in SETTING_SOURCES:
        value = resolve_setting(key, properties, environ)
        if value is not None:
            values[key] = value
    values.update(overrides)
    return UserSyncConfig(**values)


def describe_config(config: UserSyncConfig) -> dict[str, Any]:
    """Return the configuration as a dictionary safe for display.

    The client secret is masked; everything else is shown as resolved.
    """
    data = config.model_dump()
    data["client_secret"] = "********" if config.client_secret.get_secret_value() else ""
    data["token_url"] = config.token_url
    return data
