"""Outbound webhook event types.

OutboundEvent is the body posted to the webhook consumer:

    {
      "eventType": "USER_REGISTERED",
      "userId": "0b6c...",
      "timestamp": "2025-01-18T12:00:00.123456Z",
      "details": {"username": "jdoe"}
    }

Absent values are serialized as JSON null.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Event types forwarded to the webhook consumer."""

    USER_REGISTERED = "USER_REGISTERED"
    EMAIL_VERIFIED = "EMAIL_VERIFIED"
    PASSWORD_UPDATED = "PASSWORD_UPDATED"
    SOCIAL_LOGIN = "SOCIAL_LOGIN"
    USER_CREATED_ADMIN = "USER_CREATED_ADMIN"
    USER_UPDATED_ADMIN = "USER_UPDATED_ADMIN"
    USER_DELETED_ADMIN = "USER_DELETED_ADMIN"


def utc_timestamp() -> str:
    """Current wall-clock time as an ISO-8601 UTC string with a Z suffix."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class OutboundEvent(BaseModel):
    """A user lifecycle event as delivered to the webhook consumer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    event_type: EventType = Field(alias="eventType")
    user_id: str | None = Field(default=None, alias="userId")
    timestamp: str = Field(default_factory=utc_timestamp)
    details: dict[str, str] | None = None

    def to_json(self) -> str:
        """Serialize to the wire format (camelCase keys, nulls included)."""
        return self.model_dump_json(by_alias=True)


def create_event(
    event_type: EventType | str,
    user_id: str | None = None,
    details: Mapping[str, str] | None = None,
) -> OutboundEvent:
    """Create an OutboundEvent stamped with the current UTC time.

    Args:
        event_type: Forwarded event type (enum member or its string value).
        user_id: Affected user, if known.
        details: Event details; copied so later host mutations are not seen.

    Raises:
        ValueError: If event_type is not a forwarded event type.
    """
    return OutboundEvent(
        event_type=EventType(event_type),
        user_id=user_id,
        details=dict(details) if details is not None else None,
    )
