"""Core module - exports configuration, token client and exceptions."""

from keycloak_user_sync.core.config import (
    UserSyncConfig,
    describe_config,
    load_config,
)
from keycloak_user_sync.core.credentials import (
    AccessToken,
    AuthError,
    InvalidTokenResponseError,
    TokenClient,
    TokenHTTPError,
    TokenNetworkError,
)

__all__ = [
    # Configuration
    "UserSyncConfig",
    "load_config",
    "describe_config",
    # Token exceptions
    "AuthError",
    "TokenNetworkError",
    "TokenHTTPError",
    "InvalidTokenResponseError",
    # Token classes
    "AccessToken",
    "TokenClient",
]
