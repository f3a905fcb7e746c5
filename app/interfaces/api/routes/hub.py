"""Websocket endpoint of the realtime notification hub."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from app.domain import hub_protocol as protocol
from app.domain.exceptions import InvalidArgumentError
from app.infrastructure.notifications import NotificationConnectionManager
from app.interfaces.api.dependencies import get_connection_manager

router = APIRouter(tags=["hub"])

logger = logging.getLogger(__name__)

_NORMAL_CLOSE_CODES = {status.WS_1000_NORMAL_CLOSURE, status.WS_1001_GOING_AWAY}


@router.websocket("/hubs/notifications")
async def notifications_hub(
    websocket: WebSocket,
    manager: NotificationConnectionManager = Depends(get_connection_manager),
) -> None:
    """Register the client and serve its invocations until it disconnects.

    Clients may pass ``user_id`` as a query parameter so notifications
    addressed to that user reach them without joining a group.
    """

    user_id = (websocket.query_params.get("user_id") or "").strip() or None
    connection_id = await manager.connect(websocket, user_id=user_id)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except (ValueError, KeyError):
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == protocol.FRAME_PING:
                await manager.send_frame(connection_id, {"type": protocol.FRAME_PONG})
                continue

            if message_type == protocol.FRAME_INVOCATION:
                await _handle_invocation(manager, connection_id, message)
    except WebSocketDisconnect as exc:
        cause = None if exc.code in _NORMAL_CLOSE_CODES else exc
        manager.disconnect(connection_id, cause=cause)
    except Exception as exc:
        manager.disconnect(connection_id, cause=exc)
        raise


async def _handle_invocation(
    manager: NotificationConnectionManager, connection_id: str, message: dict[str, Any]
) -> None:
    invocation_id = message.get("invocationId")
    target = message.get("target")
    arguments = message.get("arguments")
    if not isinstance(arguments, list):
        arguments = []

    error: str | None = None
    if target not in _INVOCATION_ARITY:
        error = f"Unknown hub method '{target}'"
    elif len(arguments) != _INVOCATION_ARITY[target]:
        error = f"'{target}' expects {_INVOCATION_ARITY[target]} argument(s)"
    else:
        argument = "" if arguments[0] is None else str(arguments[0])
        try:
            if target == protocol.JOIN_GROUP:
                await manager.join_group(connection_id, argument)
            elif target == protocol.LEAVE_GROUP:
                await manager.leave_group(connection_id, argument)
            else:
                await manager.acknowledge(argument, connection_id)
        except InvalidArgumentError as exc:
            logger.warning("Rejected %s from %s: %s", target, connection_id, exc)
            error = str(exc)

    await manager.send_frame(connection_id, protocol.completion_frame(invocation_id, error))


_INVOCATION_ARITY: dict[str, int] = {
    protocol.JOIN_GROUP: 1,
    protocol.LEAVE_GROUP: 1,
    protocol.ACKNOWLEDGE_NOTIFICATION: 1,
}
