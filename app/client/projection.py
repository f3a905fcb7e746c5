"""Client-held view of notifications reconciled from pulls and pushes."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable
from uuid import UUID

from app.domain.entities import Notification, NotificationType

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class NotificationProjection:
    """Ordered notifications (newest first) plus the derived unread count.

    Every mutation re-sorts by timestamp and recomputes the unread count from
    the list, so the count can never drift from a direct recount.
    """

    def __init__(self, items: Iterable[Notification] = ()) -> None:
        self._items: list[Notification] = []
        self._unread_count = 0
        self.replace_all(items)

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return self._unread_count

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, notification_id: object) -> bool:
        return self._index_of(notification_id) is not None

    def get(self, notification_id: UUID) -> Notification | None:
        index = self._index_of(notification_id)
        return self._items[index] if index is not None else None

    def replace_all(self, items: Iterable[Notification]) -> None:
        """Replace the whole view with a pulled list, keeping server order."""

        self._items = list(items)
        self._recount()

    def add(self, notification: Notification) -> bool:
        """Insert a pushed notification; ``False`` if its id is already known."""

        if self._index_of(notification.id) is not None:
            return False
        self._items.insert(0, notification)
        self._settle()
        return True

    def update(self, notification: Notification) -> bool:
        index = self._index_of(notification.id)
        if index is None:
            return False
        self._items[index] = notification
        self._settle()
        return True

    def update_many(self, notifications: Iterable[Notification]) -> None:
        """Replace known notifications and append unknown ones."""

        for notification in notifications:
            index = self._index_of(notification.id)
            if index is None:
                self._items.append(notification)
            else:
                self._items[index] = notification
        self._settle()

    def remove(self, notification_id: UUID) -> bool:
        """Drop the notification if present; unknown ids are ignored."""

        index = self._index_of(notification_id)
        if index is None:
            return False
        del self._items[index]
        self._settle()
        return True

    def mark_read_locally(self, notification_id: UUID) -> Notification | None:
        current = self.get(notification_id)
        if current is None:
            return None
        updated = replace(current, is_read=True)
        self.update(updated)
        return updated

    def mark_all_read_locally(self, user_id: str | None = None) -> list[Notification]:
        """Mark unread notifications as read; only those visible to ``user_id`` if given."""

        changed: list[Notification] = []
        for index, item in enumerate(self._items):
            if item.is_read or (user_id is not None and not item.is_visible_to(user_id)):
                continue
            self._items[index] = replace(item, is_read=True)
            changed.append(self._items[index])
        self._settle()
        return changed

    def filter(
        self,
        *,
        type: NotificationType | None = None,
        is_read: bool | None = None,
        user_id: str | None = None,
    ) -> list[Notification]:
        """Return the notifications matching every given criterion.

        ``user_id`` keeps broadcast notifications as well as the ones addressed
        to that user.
        """

        return [
            item
            for item in self._items
            if (type is None or item.type == type)
            and (is_read is None or item.is_read == is_read)
            and (user_id is None or item.is_visible_to(user_id))
        ]

    def _index_of(self, notification_id: object) -> int | None:
        for index, item in enumerate(self._items):
            if item.id == notification_id:
                return index
        return None

    def _settle(self) -> None:
        self._items.sort(key=_sort_key, reverse=True)
        self._recount()

    def _recount(self) -> None:
        self._unread_count = sum(1 for item in self._items if not item.is_read)


def _sort_key(notification: Notification) -> datetime:
    timestamp = notification.timestamp
    if timestamp is None:
        return _OLDEST
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


__all__ = ["NotificationProjection"]
