from __future__ import annotations

import asyncio
import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from _fakes import FakeTransport, RecordingSleep, ScriptedOpener, wait_until

from app.client import HubConnection, NotificationClient
from app.client.events import (
    NotificationAdded,
    NotificationChanged,
    NotificationReceived,
    NotificationRemoved,
    NotificationsChanged,
    NotificationsLoaded,
)
from app.config import ClientSettings
from app.domain import hub_protocol as protocol
from app.domain.entities import ConnectionState, Notification

_BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _notification(minutes: int, **kwargs) -> Notification:
    return Notification(id=uuid4(), title=f"n{minutes}", timestamp=_BASE + timedelta(minutes=minutes), **kwargs)


class FakeApi:
    def __init__(self, notifications=()) -> None:
        self.notifications = list(notifications)
        self.calls: list[tuple] = []
        self.closed = False

    async def list_all(self):
        self.calls.append(("list_all",))
        return list(self.notifications)

    async def list_for_user(self, user_id):
        self.calls.append(("list_for_user", user_id))
        return [item for item in self.notifications if item.is_visible_to(user_id)]

    async def send(self, **kwargs):
        self.calls.append(("send", kwargs))
        return Notification(id=uuid4(), **kwargs)

    async def send_test(self):
        self.calls.append(("send_test",))
        return Notification(id=uuid4(), title="Test Notification")

    async def mark_read(self, notification_id):
        self.calls.append(("mark_read", notification_id))

    async def mark_all_read(self, user_id):
        self.calls.append(("mark_all_read", user_id))

    async def delete(self, notification_id):
        self.calls.append(("delete", notification_id))

    async def aclose(self):
        self.closed = True


def _client(api: FakeApi, transport: FakeTransport) -> NotificationClient:
    connection = HubConnection(
        "ws://hub.test/hubs/notifications",
        opener=ScriptedOpener(transport),
        sleep=RecordingSleep(block=True),
        jitter=lambda: 0.0,
    )
    return NotificationClient(api, connection)


def _collect(client: NotificationClient, *event_types):
    seen: list[object] = []
    for event_type in event_types:
        client.events.subscribe(event_type, seen.append)
    return seen


def test_initialize_connects_then_loads_user_notifications() -> None:
    broadcast = _notification(1)
    mine = _notification(2, user_id="alice")
    theirs = _notification(3, user_id="bob")
    api = FakeApi([theirs, mine, broadcast])

    async def scenario():
        client = _client(api, FakeTransport())
        loaded = _collect(client, NotificationsLoaded)
        async with client:
            await client.initialize("alice")
            return client.state, client.notifications, client.unread_count, loaded

    state, notifications, unread_count, loaded = asyncio.run(scenario())

    assert state is ConnectionState.CONNECTED
    assert api.calls == [("list_for_user", "alice")]
    assert notifications == [mine, broadcast]
    assert unread_count == 2
    assert loaded == [NotificationsLoaded((mine, broadcast))]
    assert api.closed is True


def test_initialize_without_user_loads_everything() -> None:
    api = FakeApi([_notification(2, user_id="bob"), _notification(1)])

    async def scenario():
        async with _client(api, FakeTransport()) as client:
            await client.initialize()
            return len(client.notifications)

    assert asyncio.run(scenario()) == 2
    assert api.calls == [("list_all",)]


def test_pushed_events_update_the_projection() -> None:
    existing = _notification(1)
    other = _notification(2)
    api = FakeApi([other, existing])
    pushed = _notification(5)

    async def scenario():
        transport = FakeTransport()
        client = _client(api, transport)
        seen = _collect(client, NotificationAdded, NotificationChanged, NotificationRemoved, NotificationsChanged)
        async with client:
            await client.initialize()
            transport.push_event(protocol.RECEIVE_NOTIFICATION, protocol.notification_to_wire(pushed))
            transport.push_event(protocol.RECEIVE_NOTIFICATION, protocol.notification_to_wire(pushed))
            transport.push_event(
                protocol.NOTIFICATION_UPDATED,
                protocol.notification_to_wire(replace(existing, is_read=True)),
            )
            transport.push_event(
                protocol.NOTIFICATIONS_UPDATED,
                [protocol.notification_to_wire(replace(other, is_read=True))],
            )
            transport.push_event(protocol.NOTIFICATION_DELETED, str(pushed.id))
            transport.push_event(protocol.NOTIFICATION_DELETED, str(uuid4()))
            await wait_until(lambda: len(seen) == 4)
            await asyncio.sleep(0)
            return seen, client.notifications, client.unread_count

    seen, notifications, unread_count = asyncio.run(scenario())

    assert [type(event) for event in seen] == [
        NotificationAdded,
        NotificationChanged,
        NotificationsChanged,
        NotificationRemoved,
    ]
    assert seen[0].notification.id == pushed.id
    assert seen[3].notification_id == pushed.id
    assert [item.id for item in notifications] == [other.id, existing.id]
    assert unread_count == 0


def test_mark_read_updates_locally_after_the_call() -> None:
    item = _notification(1)
    api = FakeApi([item])

    async def scenario():
        client = _client(api, FakeTransport())
        changed = _collect(client, NotificationChanged)
        async with client:
            await client.initialize()
            await client.mark_read(item.id)
            return client.unread_count, changed

    unread_count, changed = asyncio.run(scenario())

    assert ("mark_read", item.id) in api.calls
    assert unread_count == 0
    assert changed[0].notification.is_read is True


def test_mark_all_read_uses_initialized_user() -> None:
    api = FakeApi([_notification(1), _notification(2, user_id="alice"), _notification(3, user_id="bob")])

    async def scenario():
        client = _client(api, FakeTransport())
        async with client:
            await client.initialize("alice")
            await client.mark_all_read()
            return client.unread_count

    assert asyncio.run(scenario()) == 0
    assert ("mark_all_read", "alice") in api.calls


def test_mark_all_read_requires_a_user() -> None:
    async def scenario():
        async with _client(FakeApi(), FakeTransport()) as client:
            await client.initialize()
            await client.mark_all_read()

    with pytest.raises(ValueError):
        asyncio.run(scenario())


def test_delete_removes_locally() -> None:
    item = _notification(1)
    api = FakeApi([item])

    async def scenario():
        client = _client(api, FakeTransport())
        removed = _collect(client, NotificationRemoved)
        async with client:
            await client.initialize()
            await client.delete(item.id)
            return client.notifications, removed

    notifications, removed = asyncio.run(scenario())

    assert notifications == []
    assert removed == [NotificationRemoved(item.id)]
    assert ("delete", item.id) in api.calls


def test_group_and_acknowledge_calls_go_through_the_hub() -> None:
    notification_id = uuid4()

    async def scenario():
        transport = FakeTransport(on_invocation=lambda frame: None)
        async with _client(FakeApi(), transport) as client:
            await client.initialize()
            await client.join_group("ops")
            await client.acknowledge(notification_id)
            await client.leave_group("ops")
        return transport.sent

    sent = asyncio.run(scenario())

    assert [(frame["target"], frame["arguments"]) for frame in sent] == [
        (protocol.JOIN_GROUP, ["ops"]),
        (protocol.ACKNOWLEDGE_NOTIFICATION, [str(notification_id)]),
        (protocol.LEAVE_GROUP, ["ops"]),
    ]


def test_close_stops_connection_and_unsubscribes() -> None:
    async def scenario():
        transport = FakeTransport()
        client = _client(FakeApi(), transport)
        await client.initialize()
        await client.close()
        return client, transport

    client, transport = asyncio.run(scenario())
    client.events.publish(NotificationReceived(_notification(1)))

    assert transport.closed is True
    assert client.state is ConnectionState.DISCONNECTED
    assert client.api.closed is True
    assert client.notifications == []


def test_from_settings_identifies_the_user_on_the_hub_url() -> None:
    settings = ClientSettings(
        api_base_url="http://service.test/api",
        hub_url="ws://service.test/hubs/notifications",
        reconnect_max_attempts=3,
    )

    client = NotificationClient.from_settings(settings, user_id="alice")

    assert client.connection.url == "ws://service.test/hubs/notifications?user_id=alice"
    assert client.connection.max_attempts == 3
    asyncio.run(client.api.aclose())
