"""Tests for the notification hub websocket endpoint."""

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[4]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from app.domain import hub_protocol as protocol

HUB = "/hubs/notifications"
BASE = "/api/notifications"


@pytest.fixture()
def client():
    from main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


def _event(frame):
    assert frame["type"] == "event"
    return frame["target"], frame["arguments"]


def test_connection_is_acknowledged_with_its_id(client: TestClient) -> None:
    with client.websocket_connect(HUB) as websocket:
        target, arguments = _event(websocket.receive_json())

    assert target == protocol.CONNECTION_ESTABLISHED
    assert isinstance(arguments[0], str) and arguments[0]


def test_broadcast_reaches_every_connection(client: TestClient) -> None:
    with client.websocket_connect(HUB) as first, client.websocket_connect(HUB) as second:
        first.receive_json()
        second.receive_json()

        created = client.post(BASE, json={"title": "Hello"}).json()

        for websocket in (first, second):
            target, arguments = _event(websocket.receive_json())
            assert target == protocol.RECEIVE_NOTIFICATION
            assert arguments[0]["id"] == created["id"]
            assert arguments[0]["isRead"] is False


def test_addressed_notification_only_reaches_its_user(client: TestClient) -> None:
    with client.websocket_connect(f"{HUB}?user_id=u1") as alice, client.websocket_connect(
        f"{HUB}?user_id=u2"
    ) as bob:
        alice.receive_json()
        bob.receive_json()

        client.post(BASE, json={"title": "for u1", "userId": "u1"})
        client.post(BASE, json={"title": "for all"})

        assert _event(alice.receive_json())[1][0]["title"] == "for u1"
        assert _event(alice.receive_json())[1][0]["title"] == "for all"
        assert _event(bob.receive_json())[1][0]["title"] == "for all"


def test_group_membership_routes_user_events(client: TestClient) -> None:
    with client.websocket_connect(HUB) as websocket:
        websocket.receive_json()
        websocket.send_json(protocol.invocation_frame("1", protocol.JOIN_GROUP, "u7"))
        assert _event(websocket.receive_json()) == (protocol.JOINED_GROUP, ["u7"])
        assert websocket.receive_json() == protocol.completion_frame("1")

        client.post(BASE, json={"title": "for u7", "userId": "u7"})
        target, arguments = _event(websocket.receive_json())
        assert target == protocol.RECEIVE_NOTIFICATION
        assert arguments[0]["title"] == "for u7"

        websocket.send_json(protocol.invocation_frame("2", protocol.LEAVE_GROUP, "u7"))
        assert _event(websocket.receive_json()) == (protocol.LEFT_GROUP, ["u7"])
        assert websocket.receive_json() == protocol.completion_frame("2")


def _join(websocket, invocation_id: str, group: str) -> None:
    websocket.send_json(protocol.invocation_frame(invocation_id, protocol.JOIN_GROUP, group))
    assert _event(websocket.receive_json()) == (protocol.JOINED_GROUP, [group])
    assert websocket.receive_json() == protocol.completion_frame(invocation_id)


def _assert_nothing_pending(websocket) -> None:
    websocket.send_json({"type": "ping"})
    assert websocket.receive_json() == {"type": "pong"}


def test_group_send_reaches_only_group_members(client: TestClient) -> None:
    manager = client.app.state.connection_manager
    payload = {"title": "ops only"}

    with client.websocket_connect(HUB) as ops, client.websocket_connect(HUB) as dev:
        ops.receive_json()
        dev.receive_json()
        _join(ops, "1", "ops")
        _join(dev, "1", "dev")

        client.portal.call(manager.send_to_group, "ops", protocol.RECEIVE_NOTIFICATION, payload)

        assert _event(ops.receive_json()) == (protocol.RECEIVE_NOTIFICATION, [payload])
        _assert_nothing_pending(dev)

        ops.send_json(protocol.invocation_frame("2", protocol.LEAVE_GROUP, "ops"))
        assert _event(ops.receive_json()) == (protocol.LEFT_GROUP, ["ops"])
        assert ops.receive_json() == protocol.completion_frame("2")

        client.portal.call(manager.send_to_group, "ops", protocol.RECEIVE_NOTIFICATION, payload)

        _assert_nothing_pending(ops)
        _assert_nothing_pending(dev)


def test_blank_group_name_is_rejected(client: TestClient) -> None:
    with client.websocket_connect(HUB) as websocket:
        websocket.receive_json()
        websocket.send_json(protocol.invocation_frame("9", protocol.JOIN_GROUP, ""))

        completion = websocket.receive_json()

    assert completion["type"] == "completion"
    assert completion["invocationId"] == "9"
    assert "Group name" in completion["error"]


def test_unknown_method_completes_with_error(client: TestClient) -> None:
    with client.websocket_connect(HUB) as websocket:
        websocket.receive_json()
        websocket.send_json(protocol.invocation_frame("3", "Explode"))

        completion = websocket.receive_json()

    assert completion["error"] == "Unknown hub method 'Explode'"


def test_acknowledgement_is_relayed_to_other_connections(client: TestClient) -> None:
    with client.websocket_connect(HUB) as sender, client.websocket_connect(HUB) as watcher:
        _, (sender_id,) = _event(sender.receive_json())
        watcher.receive_json()

        sender.send_json(
            protocol.invocation_frame("5", protocol.ACKNOWLEDGE_NOTIFICATION, "abc")
        )

        assert sender.receive_json() == protocol.completion_frame("5")
        assert _event(watcher.receive_json()) == (
            protocol.NOTIFICATION_ACKNOWLEDGED,
            ["abc", sender_id],
        )


def test_mark_read_and_delete_events(client: TestClient) -> None:
    with client.websocket_connect(HUB) as websocket:
        websocket.receive_json()
        created = client.post(BASE, json={"title": "T1"}).json()
        websocket.receive_json()

        client.put(f"{BASE}/{created['id']}/read")
        target, arguments = _event(websocket.receive_json())
        assert target == protocol.NOTIFICATION_UPDATED
        assert arguments[0]["isRead"] is True

        client.delete(f"{BASE}/{created['id']}")
        assert _event(websocket.receive_json()) == (
            protocol.NOTIFICATION_DELETED,
            [created["id"]],
        )


def test_mark_all_read_event_is_sent_to_the_user(client: TestClient) -> None:
    with client.websocket_connect(f"{HUB}?user_id=u1") as websocket:
        websocket.receive_json()
        client.post(BASE, json={"title": "mine", "userId": "u1"})
        websocket.receive_json()

        client.put(f"{BASE}/user/u1/read-all")
        target, arguments = _event(websocket.receive_json())

    assert target == protocol.NOTIFICATIONS_UPDATED
    assert [item["title"] for item in arguments[0]] == ["mine"]
    assert arguments[0][0]["isRead"] is True


def test_ping_is_answered(client: TestClient) -> None:
    with client.websocket_connect(HUB) as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "ping"})

        assert websocket.receive_json() == {"type": "pong"}
