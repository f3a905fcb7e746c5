"""High level notification client combining pulls, pushes and the projection."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode
from uuid import UUID

from app.config import ClientSettings, get_client_settings
from app.domain.entities import ConnectionState, Notification, NotificationType

from .api import NotificationApiClient
from .connection import HubConnection
from .events import (
    EventRegistry,
    NotificationAdded,
    NotificationChanged,
    NotificationDeleted,
    NotificationReceived,
    NotificationRemoved,
    NotificationsChanged,
    NotificationsLoaded,
    NotificationsUpdated,
    NotificationUpdated,
)
from .projection import NotificationProjection

logger = logging.getLogger(__name__)


class NotificationClient:
    """Keep a :class:`NotificationProjection` in sync with the service.

    Pushed hub events are merged into the projection as they arrive and
    re-published as projection events (``NotificationAdded`` …) on the same
    :class:`EventRegistry`.
    """

    def __init__(
        self,
        api: NotificationApiClient,
        connection: HubConnection,
        *,
        projection: NotificationProjection | None = None,
    ) -> None:
        self.api = api
        self.connection = connection
        self.events: EventRegistry = connection.events
        self.projection = projection or NotificationProjection()
        self.user_id: str | None = None
        self._unsubscribers = [
            self.events.subscribe(NotificationReceived, self._on_received),
            self.events.subscribe(NotificationUpdated, self._on_updated),
            self.events.subscribe(NotificationsUpdated, self._on_bulk_updated),
            self.events.subscribe(NotificationDeleted, self._on_deleted),
        ]

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings | None = None,
        *,
        user_id: str | None = None,
        **connection_kwargs: Any,
    ) -> "NotificationClient":
        """Build a client whose hub connection identifies itself as ``user_id``."""

        settings = settings or get_client_settings()
        hub_url = settings.hub_url
        if user_id:
            separator = "&" if "?" in hub_url else "?"
            hub_url = f"{hub_url}{separator}{urlencode({'user_id': user_id})}"
        connection = HubConnection.from_settings(settings, url=hub_url, **connection_kwargs)
        return cls(NotificationApiClient.from_settings(settings), connection)

    @property
    def notifications(self) -> list[Notification]:
        return self.projection.items

    @property
    def unread_count(self) -> int:
        return self.projection.unread_count

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    async def initialize(self, user_id: str | None = None) -> None:
        """Connect to the hub, then load the initial notifications."""

        self.user_id = user_id
        await self.connection.start()
        await self.refresh()

    async def refresh(self) -> list[Notification]:
        """Replace the projection with the server's current list."""

        if self.user_id:
            notifications = await self.api.list_for_user(self.user_id)
        else:
            notifications = await self.api.list_all()
        self.projection.replace_all(notifications)
        self.events.publish(NotificationsLoaded(tuple(self.projection.items)))
        return self.projection.items

    async def send(
        self,
        *,
        title: str = "",
        message: str = "",
        type: NotificationType = NotificationType.INFO,
        user_id: str | None = None,
    ) -> Notification:
        # The stored notification comes back through the hub.
        return await self.api.send(title=title, message=message, type=type, user_id=user_id)

    async def send_test(self) -> Notification:
        return await self.api.send_test()

    async def mark_read(self, notification_id: UUID) -> None:
        await self.api.mark_read(notification_id)
        updated = self.projection.mark_read_locally(notification_id)
        if updated is not None:
            self.events.publish(NotificationChanged(updated))

    async def mark_all_read(self, user_id: str | None = None) -> None:
        user_id = user_id or self.user_id
        if not user_id:
            raise ValueError("A user id is required to mark all notifications as read")
        await self.api.mark_all_read(user_id)
        self.projection.mark_all_read_locally(user_id)
        self.events.publish(NotificationsChanged(tuple(self.projection.items)))

    async def delete(self, notification_id: UUID) -> None:
        await self.api.delete(notification_id)
        if self.projection.remove(notification_id):
            self.events.publish(NotificationRemoved(notification_id))

    async def acknowledge(self, notification_id: UUID) -> None:
        await self.connection.acknowledge(notification_id)

    async def join_group(self, name: str) -> None:
        await self.connection.join_group(name)

    async def leave_group(self, name: str) -> None:
        await self.connection.leave_group(name)

    def filter(
        self,
        *,
        type: NotificationType | None = None,
        is_read: bool | None = None,
        user_id: str | None = None,
    ) -> list[Notification]:
        return self.projection.filter(type=type, is_read=is_read, user_id=user_id)

    async def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        await self.connection.stop()
        await self.api.aclose()

    async def __aenter__(self) -> "NotificationClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _on_received(self, event: NotificationReceived) -> None:
        if self.projection.add(event.notification):
            self.events.publish(NotificationAdded(event.notification))

    def _on_updated(self, event: NotificationUpdated) -> None:
        if self.projection.update(event.notification):
            self.events.publish(NotificationChanged(event.notification))

    def _on_bulk_updated(self, event: NotificationsUpdated) -> None:
        self.projection.update_many(event.notifications)
        self.events.publish(NotificationsChanged(tuple(self.projection.items)))

    def _on_deleted(self, event: NotificationDeleted) -> None:
        if self.projection.remove(event.notification_id):
            self.events.publish(NotificationRemoved(event.notification_id))
        else:
            logger.debug("Deletion of unknown notification %s ignored", event.notification_id)


__all__ = ["NotificationClient"]
