"""In-memory storage for notification entities."""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime
from uuid import UUID, uuid4

from app.domain.entities import Notification
from app.domain.exceptions import require_text
from app.utils import now_in_app_timezone


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects.

    Entries live in an id-keyed ordered mapping guarded by a lock, so the
    repository can be shared by request handlers running on worker threads.
    Every value handed out is a copy; callers never mutate stored state.
    """

    def __init__(self, clock: Callable[[], datetime] = now_in_app_timezone) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._items: OrderedDict[UUID, Notification] = OrderedDict()
        self._last_timestamp: datetime | None = None

    def list_all(self) -> Sequence[Notification]:
        with self._lock:
            snapshot = [replace(item) for item in self._items.values()]
        return _newest_first(snapshot)

    def list_for_user(self, user_id: str) -> Sequence[Notification]:
        require_text(user_id, "User ID")
        with self._lock:
            snapshot = [
                replace(item) for item in self._items.values() if item.is_visible_to(user_id)
            ]
        return _newest_first(snapshot)

    def get(self, notification_id: UUID) -> Notification | None:
        with self._lock:
            item = self._items.get(notification_id)
            return replace(item) if item is not None else None

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def add(self, notification: Notification) -> Notification:
        """Store ``notification`` assigning its id and creation timestamp."""

        with self._lock:
            notification_id = notification.id or uuid4()
            while notification_id in self._items:
                notification_id = uuid4()
            stored = replace(
                notification,
                id=notification_id,
                timestamp=self._next_timestamp(),
                is_read=bool(notification.is_read),
                user_id=notification.user_id or None,
            )
            self._items[notification_id] = stored
            return replace(stored)

    def mark_as_read(self, notification_id: UUID) -> Notification | None:
        with self._lock:
            item = self._items.get(notification_id)
            if item is None:
                return None
            item.is_read = True
            return replace(item)

    def mark_all_as_read(self, user_id: str) -> Sequence[Notification]:
        """Mark every unread notification visible to ``user_id`` as read.

        Returns the notifications that changed, newest first.
        """

        require_text(user_id, "User ID")
        with self._lock:
            changed: list[Notification] = []
            for item in self._items.values():
                if item.is_read or not item.is_visible_to(user_id):
                    continue
                item.is_read = True
                changed.append(replace(item))
        return _newest_first(changed)

    def delete(self, notification_id: UUID) -> bool:
        with self._lock:
            return self._items.pop(notification_id, None) is not None

    def _next_timestamp(self) -> datetime:
        # Keeps timestamps non-decreasing even if the wall clock steps back.
        timestamp = self._clock()
        if self._last_timestamp is not None and timestamp < self._last_timestamp:
            timestamp = self._last_timestamp
        self._last_timestamp = timestamp
        return timestamp


def _newest_first(items: list[Notification]) -> list[Notification]:
    # Ties keep the most recently inserted entry first.
    return sorted(reversed(items), key=lambda item: item.timestamp, reverse=True)


__all__ = ["NotificationRepository"]
