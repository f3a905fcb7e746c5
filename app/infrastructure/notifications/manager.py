"""Connection management helpers for the notification websocket hub."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, DefaultDict, Iterable, Set
from uuid import uuid4

from fastapi import WebSocket

from app.domain import hub_protocol as protocol
from app.domain.exceptions import require_text

logger = logging.getLogger(__name__)


@dataclass
class HubConnection:
    """A websocket registered with the hub."""

    connection_id: str
    websocket: WebSocket
    user_id: str | None = None
    groups: Set[str] = field(default_factory=set)


class NotificationConnectionManager:
    """Manage active websocket connections and their group memberships.

    Deliveries are best effort: a connection whose send fails is dropped and
    the event is not retried.
    """

    def __init__(self) -> None:
        self._connections: dict[str, HubConnection] = {}
        self._groups: DefaultDict[str, Set[str]] = defaultdict(set)

    async def connect(self, websocket: WebSocket, user_id: str | None = None) -> str:
        """Accept ``websocket``, register it and acknowledge it with its id."""

        await websocket.accept()
        connection_id = uuid4().hex
        self._connections[connection_id] = HubConnection(
            connection_id=connection_id,
            websocket=websocket,
            user_id=user_id or None,
        )
        logger.info("Client connected: %s", connection_id)
        await self._send(
            connection_id, protocol.event_frame(protocol.CONNECTION_ESTABLISHED, connection_id)
        )
        return connection_id

    def disconnect(self, connection_id: str, cause: BaseException | None = None) -> None:
        """Remove ``connection_id`` from the hub and from every group."""

        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return
        for group in connection.groups:
            members = self._groups.get(group)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                self._groups.pop(group, None)
        logger.info("Client disconnected: %s", connection_id)
        if cause is not None:
            logger.error(
                "Client disconnected with error: %s", connection_id, exc_info=cause
            )

    async def join_group(self, connection_id: str, group: str) -> None:
        require_text(group, "Group name")
        connection = self._connections.get(connection_id)
        if connection is None:
            return
        connection.groups.add(group)
        self._groups[group].add(connection_id)
        logger.info("Client %s joined group: %s", connection_id, group)
        await self._send(connection_id, protocol.event_frame(protocol.JOINED_GROUP, group))

    async def leave_group(self, connection_id: str, group: str) -> None:
        require_text(group, "Group name")
        connection = self._connections.get(connection_id)
        if connection is None:
            return
        connection.groups.discard(group)
        members = self._groups.get(group)
        if members is not None:
            members.discard(connection_id)
            if not members:
                self._groups.pop(group, None)
        logger.info("Client %s left group: %s", connection_id, group)
        await self._send(connection_id, protocol.event_frame(protocol.LEFT_GROUP, group))

    async def acknowledge(self, notification_id: str, connection_id: str) -> None:
        """Relay an acknowledgement to every connection but the sender."""

        logger.info(
            "Notification acknowledged by client %s: %s", connection_id, notification_id
        )
        await self.send_to_others(
            connection_id,
            protocol.NOTIFICATION_ACKNOWLEDGED,
            notification_id,
            connection_id,
        )

    async def broadcast(self, event: str, *arguments: Any) -> None:
        await self._deliver(list(self._connections), protocol.event_frame(event, *arguments))

    async def send_to_group(self, group: str, event: str, *arguments: Any) -> None:
        members = list(self._groups.get(group, set()))
        await self._deliver(members, protocol.event_frame(event, *arguments))

    async def send_to_user(self, user_id: str, event: str, *arguments: Any) -> None:
        """Deliver to connections opened by ``user_id`` or joined to its group."""

        recipients = {
            connection_id
            for connection_id, connection in self._connections.items()
            if connection.user_id == user_id
        }
        recipients.update(self._groups.get(user_id, set()))
        await self._deliver(sorted(recipients), protocol.event_frame(event, *arguments))

    async def send_to_others(self, connection_id: str, event: str, *arguments: Any) -> None:
        recipients = [other for other in self._connections if other != connection_id]
        await self._deliver(recipients, protocol.event_frame(event, *arguments))

    async def send_frame(self, connection_id: str, frame: dict[str, Any]) -> None:
        await self._send(connection_id, frame)

    def connection_ids(self) -> list[str]:
        return list(self._connections)

    def groups_for(self, connection_id: str) -> set[str]:
        connection = self._connections.get(connection_id)
        return set(connection.groups) if connection else set()

    async def _deliver(self, connection_ids: Iterable[str], frame: dict[str, Any]) -> None:
        for connection_id in connection_ids:
            await self._send(connection_id, frame)

    async def _send(self, connection_id: str, frame: dict[str, Any]) -> None:
        connection = self._connections.get(connection_id)
        if connection is None:
            return
        try:
            await connection.websocket.send_json(frame)
        except Exception as exc:  # unreachable client: drop it, no retry
            logger.warning("Dropping unreachable connection %s: %s", connection_id, exc)
            self.disconnect(connection_id)


__all__ = ["HubConnection", "NotificationConnectionManager"]
