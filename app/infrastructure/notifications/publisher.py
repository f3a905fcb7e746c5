"""Utility helpers to push notification events to websocket subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence
from uuid import UUID

from anyio import from_thread

from app.domain import hub_protocol as protocol
from app.domain.entities import Notification

from .manager import NotificationConnectionManager

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize notifications and schedule their delivery through the hub."""

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager
        self._tasks: set[asyncio.Task[None]] = set()

    def notification_received(self, notification: Notification) -> None:
        """Deliver a new notification to everyone, or to its user when addressed."""

        payload = serialize_notification(notification)
        if notification.is_broadcast:
            self._schedule(self._manager.broadcast, protocol.RECEIVE_NOTIFICATION, payload)
            logger.debug("Broadcast notification to all clients")
        else:
            self._schedule(
                self._manager.send_to_user,
                notification.user_id,
                protocol.RECEIVE_NOTIFICATION,
                payload,
            )
            logger.debug("Sent notification to user: %s", notification.user_id)

    def notification_updated(self, notification: Notification) -> None:
        self._schedule(
            self._manager.broadcast,
            protocol.NOTIFICATION_UPDATED,
            serialize_notification(notification),
        )

    def notifications_updated(self, user_id: str, notifications: Sequence[Notification]) -> None:
        payload = [serialize_notification(notification) for notification in notifications]
        self._schedule(
            self._manager.send_to_user, user_id, protocol.NOTIFICATIONS_UPDATED, payload
        )

    def notification_deleted(self, notification_id: UUID) -> None:
        self._schedule(
            self._manager.broadcast, protocol.NOTIFICATION_DELETED, str(notification_id)
        )

    def _schedule(self, send: Callable[..., Awaitable[None]], *args: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(send, *args)
            except RuntimeError as exc:
                # Outside the server's event loop (scripts, unit tests).
                logger.debug("No event loop available for realtime delivery: %s", exc)
        else:
            task = loop.create_task(send(*args))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return protocol.notification_to_wire(notification)


__all__ = ["NotificationPublisher", "serialize_notification"]
