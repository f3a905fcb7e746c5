"""Frame layout and event names shared by the notification hub and its clients.

Every frame is a JSON object with a ``type`` key:

``event``
    server → client, ``{"type": "event", "target": name, "arguments": [...]}``
``invocation``
    client → server, ``{"type": "invocation", "invocationId": id,
    "target": name, "arguments": [...]}``
``completion``
    server → client answer to an invocation,
    ``{"type": "completion", "invocationId": id, "error": message | None}``
``ping`` / ``pong``
    keep-alive.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Final
from uuid import UUID

from app.domain.entities import Notification, NotificationType

FRAME_EVENT: Final[str] = "event"
FRAME_INVOCATION: Final[str] = "invocation"
FRAME_COMPLETION: Final[str] = "completion"
FRAME_PING: Final[str] = "ping"
FRAME_PONG: Final[str] = "pong"

# server -> client
CONNECTION_ESTABLISHED: Final[str] = "ConnectionEstablished"
RECEIVE_NOTIFICATION: Final[str] = "ReceiveNotification"
NOTIFICATION_UPDATED: Final[str] = "NotificationUpdated"
NOTIFICATIONS_UPDATED: Final[str] = "NotificationsUpdated"
NOTIFICATION_DELETED: Final[str] = "NotificationDeleted"
JOINED_GROUP: Final[str] = "JoinedGroup"
LEFT_GROUP: Final[str] = "LeftGroup"
NOTIFICATION_ACKNOWLEDGED: Final[str] = "NotificationAcknowledged"

# client -> server
JOIN_GROUP: Final[str] = "JoinGroup"
LEAVE_GROUP: Final[str] = "LeaveGroup"
ACKNOWLEDGE_NOTIFICATION: Final[str] = "AcknowledgeNotification"


def event_frame(target: str, *arguments: Any) -> dict[str, Any]:
    return {"type": FRAME_EVENT, "target": target, "arguments": list(arguments)}


def invocation_frame(invocation_id: str, target: str, *arguments: Any) -> dict[str, Any]:
    return {
        "type": FRAME_INVOCATION,
        "invocationId": invocation_id,
        "target": target,
        "arguments": list(arguments),
    }


def completion_frame(invocation_id: str | None, error: str | None = None) -> dict[str, Any]:
    return {"type": FRAME_COMPLETION, "invocationId": invocation_id, "error": error}


def notification_to_wire(notification: Notification) -> dict[str, Any]:
    """Return the JSON-serializable representation of ``notification``."""

    return {
        "id": str(notification.id) if notification.id else None,
        "title": notification.title,
        "message": notification.message,
        "type": NotificationType(notification.type).value,
        "timestamp": notification.timestamp.isoformat() if notification.timestamp else None,
        "isRead": notification.is_read,
        "userId": notification.user_id,
    }


def notification_from_wire(data: dict[str, Any]) -> Notification:
    """Build a :class:`Notification` from its wire representation.

    Raises ``ValueError`` when the identifier, type or timestamp cannot be
    parsed.
    """

    raw_id = data.get("id")
    raw_timestamp = data.get("timestamp")
    timestamp = None
    if isinstance(raw_timestamp, datetime):
        timestamp = raw_timestamp
    elif raw_timestamp:
        timestamp = datetime.fromisoformat(str(raw_timestamp).replace("Z", "+00:00"))
    return Notification(
        id=UUID(str(raw_id)) if raw_id else None,
        title=data.get("title") or "",
        message=data.get("message") or "",
        type=NotificationType.parse(
            NotificationType.INFO if data.get("type") in (None, "") else data["type"]
        ),
        timestamp=timestamp,
        is_read=bool(data.get("isRead", False)),
        user_id=data.get("userId") or None,
    )


__all__ = [
    "FRAME_EVENT",
    "FRAME_INVOCATION",
    "FRAME_COMPLETION",
    "FRAME_PING",
    "FRAME_PONG",
    "CONNECTION_ESTABLISHED",
    "RECEIVE_NOTIFICATION",
    "NOTIFICATION_UPDATED",
    "NOTIFICATIONS_UPDATED",
    "NOTIFICATION_DELETED",
    "JOINED_GROUP",
    "LEFT_GROUP",
    "NOTIFICATION_ACKNOWLEDGED",
    "JOIN_GROUP",
    "LEAVE_GROUP",
    "ACKNOWLEDGE_NOTIFICATION",
    "event_frame",
    "invocation_frame",
    "completion_frame",
    "notification_to_wire",
    "notification_from_wire",
]
