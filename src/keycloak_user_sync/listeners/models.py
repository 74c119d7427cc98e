"""Host event records consumed by the listener.

Keycloak hands the listener two unrelated kinds of event: user events (login,
registration, ...) and admin events (REST admin API operations). They are
modelled as a tagged union of two read-only records. Tags are kept as plain
strings so that event kinds this plugin does not know about are still
accepted, and simply not forwarded.

Only the fields and kinds the router reads are mirrored here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal


class UserEventType(str, Enum):
    """User event kinds the router inspects."""

    LOGIN = "LOGIN"
    REGISTER = "REGISTER"
    VERIFY_EMAIL = "VERIFY_EMAIL"
    UPDATE_PASSWORD = "UPDATE_PASSWORD"


class ResourceType(str, Enum):
    """Admin resource types the router inspects."""

    USER = "USER"


class OperationType(str, Enum):
    """Admin operations forwarded for user resources."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class UserEvent:
    """A user event emitted by the host."""

    type: str
    user_id: str | None = None
    details: Mapping[str, str] | None = None
    kind: Literal["user"] = field(default="user", init=False)


@dataclass(frozen=True)
class AdminEvent:
    """An admin API event emitted by the host."""

    resource_type: str
    operation_type: str
    resource_path: str | None = None
    kind: Literal["admin"] = field(default="admin", init=False)


HostEvent = UserEvent | AdminEvent
