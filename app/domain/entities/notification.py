"""Domain entity representing a notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class NotificationType(str, Enum):
    """Severity attached to a notification."""

    INFO = "Info"
    SUCCESS = "Success"
    WARNING = "Warning"
    ERROR = "Error"

    @classmethod
    def parse(cls, value: object) -> "NotificationType":
        """Accept a member, its name or its integer code (0 = Info ... 3 = Error)."""

        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
            raise ValueError(f"{value} is not a valid notification type code")
        return cls(value)


@dataclass
class Notification:
    """Information message delivered to every user or to a single one.

    ``user_id`` set to ``None`` means the notification is broadcast.
    """

    id: UUID | None = None
    title: str = ""
    message: str = ""
    type: NotificationType = NotificationType.INFO
    timestamp: datetime | None = None
    is_read: bool = False
    user_id: str | None = None

    @property
    def is_broadcast(self) -> bool:
        return not self.user_id

    def is_visible_to(self, user_id: str) -> bool:
        """Return whether a reader identified by ``user_id`` may see it."""

        return self.is_broadcast or self.user_id == user_id


__all__ = ["Notification", "NotificationType"]
