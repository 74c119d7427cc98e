"""Keycloak event listener provider and its factory."""

from keycloak_user_sync.listeners.factory import (
    PROVIDER_ID,
    ListenerNotInitializedError,
    UserSyncEventListenerFactory,
)
from keycloak_user_sync.listeners.models import (
    AdminEvent,
    HostEvent,
    OperationType,
    ResourceType,
    UserEvent,
    UserEventType,
)
from keycloak_user_sync.listeners.router import (
    UserSyncEventListener,
    extract_user_id_from_resource_path,
    is_social_login,
    map_admin_event,
    map_event,
    map_user_event,
)

__all__ = [
    "PROVIDER_ID",
    "ListenerNotInitializedError",
    "UserSyncEventListenerFactory",
    "UserSyncEventListener",
    "AdminEvent",
    "HostEvent",
    "OperationType",
    "ResourceType",
    "UserEvent",
    "UserEventType",
    "extract_user_id_from_resource_path",
    "is_social_login",
    "map_admin_event",
    "map_event",
    "map_user_event",
]
