"""Typed client events and the registry that dispatches them.

Each event kind is its own frozen dataclass; subscribers register for a
class and only receive instances of it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, TypeVar, Union
from uuid import UUID

from app.domain.entities import ConnectionState, Notification

logger = logging.getLogger(__name__)


# Pushed by the hub connection.


@dataclass(frozen=True)
class ConnectionStateChanged:
    state: ConnectionState
    connection_id: str | None = None

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def reconnecting(self) -> bool:
        return self.state is ConnectionState.RECONNECTING


@dataclass(frozen=True)
class NotificationReceived:
    notification: Notification


@dataclass(frozen=True)
class NotificationUpdated:
    notification: Notification


@dataclass(frozen=True)
class NotificationsUpdated:
    notifications: tuple[Notification, ...]


@dataclass(frozen=True)
class NotificationDeleted:
    notification_id: UUID


@dataclass(frozen=True)
class GroupJoined:
    name: str


@dataclass(frozen=True)
class GroupLeft:
    name: str


@dataclass(frozen=True)
class NotificationAcknowledged:
    notification_id: str
    connection_id: str


# Published by the notification client after the projection changed.


@dataclass(frozen=True)
class NotificationAdded:
    notification: Notification


@dataclass(frozen=True)
class NotificationChanged:
    notification: Notification


@dataclass(frozen=True)
class NotificationRemoved:
    notification_id: UUID


@dataclass(frozen=True)
class NotificationsChanged:
    notifications: tuple[Notification, ...]


@dataclass(frozen=True)
class NotificationsLoaded:
    notifications: tuple[Notification, ...]


HubEvent = Union[
    ConnectionStateChanged,
    NotificationReceived,
    NotificationUpdated,
    NotificationsUpdated,
    NotificationDeleted,
    GroupJoined,
    GroupLeft,
    NotificationAcknowledged,
]

ProjectionEvent = Union[
    NotificationAdded,
    NotificationChanged,
    NotificationRemoved,
    NotificationsChanged,
    NotificationsLoaded,
]

ClientEvent = Union[HubEvent, ProjectionEvent]

E = TypeVar("E")


class EventRegistry:
    """Observer registry keyed by event class."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[type, list[Callable[[object], None]]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register ``handler`` for ``event_type``; returns an unsubscribe callable."""

        self._handlers[event_type].append(handler)  # type: ignore[arg-type]

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)  # type: ignore[arg-type]

        return unsubscribe

    def publish(self, event: ClientEvent) -> None:
        """Call every handler registered for the type of ``event``.

        A failing handler is logged and does not prevent the others from
        running.
        """

        for handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %r failed for %s", handler, type(event).__name__)


__all__ = [
    "ClientEvent",
    "ConnectionStateChanged",
    "EventRegistry",
    "GroupJoined",
    "GroupLeft",
    "HubEvent",
    "NotificationAcknowledged",
    "NotificationAdded",
    "NotificationChanged",
    "NotificationDeleted",
    "NotificationReceived",
    "NotificationRemoved",
    "NotificationsChanged",
    "NotificationsLoaded",
    "NotificationsUpdated",
    "NotificationUpdated",
    "ProjectionEvent",
]
