"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain.entities import Notification, NotificationType


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NotificationCreate(_CamelModel):
    """Fields a client may supply when sending a notification.

    ``id``, ``timestamp`` and ``isRead`` are assigned by the server; unknown
    keys are ignored.
    """

    title: str = Field(default="", max_length=200)
    message: str = Field(default="", max_length=4000)
    type: NotificationType = NotificationType.INFO
    user_id: str | None = Field(default=None, description="Recipient; empty for broadcast")

    @field_validator("type", mode="before")
    @classmethod
    def _accept_type_code(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return NotificationType.parse(value)
        return value

    def to_entity(self) -> Notification:
        return Notification(
            title=self.title,
            message=self.message,
            type=self.type,
            user_id=(self.user_id or "").strip() or None,
        )


class NotificationRead(_CamelModel):
    """Representation of a notification delivered to the client."""

    id: UUID
    title: str
    message: str
    type: NotificationType
    timestamp: datetime
    is_read: bool
    user_id: str | None = None

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id,
            title=notification.title,
            message=notification.message,
            type=notification.type,
            timestamp=notification.timestamp,
            is_read=notification.is_read,
            user_id=notification.user_id,
        )


class MessageResponse(BaseModel):
    """Plain acknowledgement returned by state-changing endpoints."""

    message: str


__all__ = ["MessageResponse", "NotificationCreate", "NotificationRead"]
