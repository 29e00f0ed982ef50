"""
Payload models for each relation kind.

The store itself is schema-less; these models are validated at the
repository boundary so that a payload written to "members" always looks
like a membership. Field names are snake_case in Python and camelCase in
the stored JSON, matching the documents other tooling already reads.

Unknown fields are preserved (extra="allow") so older or newer writers
can share the same rows.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, TypeAdapter
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "extra": "allow",
}


class StoredModel(BaseModel):
    """Base for payloads stored as documents or link data."""

    model_config = _WIRE_CONFIG

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def wire_update(cls, changes: dict[str, Any]) -> dict[str, Any]:
        """Validate a partial update and translate its keys to wire names.

        Raises:
            ValueError: If a field is unknown or a value fails validation
        """
        wire: dict[str, Any] = {}
        for name, value in changes.items():
            field_info = cls.model_fields.get(name)
            if field_info is None:
                raise ValueError(f"Unknown {cls.__name__} field: {name}")
            validated = TypeAdapter(field_info.annotation).validate_python(value)
            wire[field_info.alias or name] = TypeAdapter(field_info.annotation).dump_python(
                validated, mode="json"
            )
        return wire


class Profile(StoredModel):
    """A user's public profile, keyed by username in "profiles"."""

    username: str = Field(..., description="Unique username")
    full_name: str = Field(..., description="Display name")
    bio: str = Field(default="")
    photo_url: str | None = None
    email: str | None = None
    expected_send_month: str | None = Field(None, description='e.g. "December"')
    last_sent_date: str | None = Field(None, description="ISO date of the last letter sent")
    last_reminder_sent_date: str | None = None
    last_follow_up_sent_date: str | None = None
    plan_to_send: bool | None = None


class Group(StoredModel):
    """A group, keyed by group name in "groups"."""

    group_name: str = Field(..., description="Unique group name")
    display_name: str = Field(...)
    description: str = Field(default="")
    admin_username: str = Field(...)
    is_public: bool = Field(default=True)


class Member(StoredModel):
    """A membership edge in "members" (parent = group, child = username)."""

    group_name: str
    username: str
    group_bio: str = ""
    status: Literal["pending", "approved"] = "pending"
    is_admin: bool = False


class Subscription(StoredModel):
    """A subscription edge in "subscriptions" (parent = subscribed-to, child = subscriber)."""

    subscriber_username: str
    subscribed_to_username: str
    is_close: bool = False
    added_by: str | None = Field(None, description="Username that initiated the subscription")
    confirmed: bool | None = None


class Update(StoredModel):
    """An activity feed entry in "updates" (parent = feed owner, child = update id)."""

    id: str
    type: str = Field(..., description='e.g. "new_subscriber", "group_join"')
    username: str = Field(..., description="Actor the entry is about")
    group_name: str | None = None
    timestamp: str = Field(..., description="ISO timestamp")
