"""Client side of the notification hub: one websocket kept alive with backoff.

:class:`HubConnection` is a small state machine driven by a single supervisor
task::

    Disconnected -> Connecting -> Connected <-> Reconnecting
                        ^                           |
                        +---- backoff sleep <-------+ (close / failed open)

A dropped connection first gets one immediate re-open (``Reconnecting``). If
that fails, or the server closed the socket cleanly, the connection becomes
``Disconnected`` and the supervisor sleeps
``min(2**retry * base_interval + jitter, max_delay)`` before the next attempt,
up to ``max_attempts`` consecutive retries. :meth:`HubConnection.stop`
cancels the supervisor, which also interrupts a pending sleep.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import random
from typing import Any, Awaitable, Callable, Protocol
from uuid import UUID

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from app.config import ClientSettings
from app.domain import hub_protocol as protocol
from app.domain.entities import ConnectionState

from .events import (
    ConnectionStateChanged,
    EventRegistry,
    GroupJoined,
    GroupLeft,
    NotificationAcknowledged,
    NotificationDeleted,
    NotificationReceived,
    NotificationsUpdated,
    NotificationUpdated,
)
from .exceptions import HubInvocationError, NotConnectedError

logger = logging.getLogger(__name__)

_OPEN_ERRORS = (OSError, WebSocketException, asyncio.TimeoutError)


class Transport(Protocol):
    """The subset of a websocket client connection used by the hub client."""

    async def send(self, message: str) -> None: ...

    async def recv(self) -> str | bytes: ...

    async def close(self) -> None: ...


Opener = Callable[[], Awaitable[Transport]]


class HubConnection:
    """Own one logical realtime connection and retry it with capped backoff."""

    def __init__(
        self,
        url: str,
        *,
        events: EventRegistry | None = None,
        opener: Opener | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        jitter: Callable[[], float] = random.random,
        max_attempts: int = 5,
        base_interval: float = 2.0,
        max_delay: float = 30.0,
        max_jitter: float = 1.0,
        invocation_timeout: float = 30.0,
    ) -> None:
        self.url = url
        self.events = events or EventRegistry()
        self._opener = opener or self._open_websocket
        self._sleep = sleep
        self._jitter = jitter
        self.max_attempts = max_attempts
        self.base_interval = base_interval
        self.max_delay = max_delay
        self.max_jitter = max_jitter
        self.invocation_timeout = invocation_timeout

        self._state = ConnectionState.DISCONNECTED
        self._transport: Transport | None = None
        self._connection_id: str | None = None
        self._groups: set[str] = set()
        self._retry_count = 0
        self._task: asyncio.Task[None] | None = None
        self._settled: asyncio.Event | None = None
        self._pending: dict[str, asyncio.Future[str | None]] = {}
        self._invocation_ids = itertools.count(1)

    @classmethod
    def from_settings(cls, settings: ClientSettings, *, url: str | None = None, **kwargs: Any) -> "HubConnection":
        return cls(
            url or settings.hub_url,
            max_attempts=settings.reconnect_max_attempts,
            base_interval=settings.reconnect_base_interval,
            max_delay=settings.reconnect_max_delay,
            max_jitter=settings.reconnect_max_jitter,
            invocation_timeout=settings.request_timeout,
            **kwargs,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED and self._transport is not None

    @property
    def connection_id(self) -> str | None:
        return self._connection_id

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def groups(self) -> frozenset[str]:
        return frozenset(self._groups)

    async def start(self) -> None:
        """Open the connection unless a supervisor is already running.

        Returns once the first attempt has either connected or failed; a
        failure leaves the supervisor retrying in the background.
        """

        if self._task is not None and not self._task.done():
            return

        self._retry_count = 0
        self._settled = asyncio.Event()
        supervisor = self._task = asyncio.create_task(self._supervise(), name="hub-connection")
        settled = asyncio.create_task(self._settled.wait())
        try:
            await asyncio.wait({supervisor, settled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            settled.cancel()

    async def stop(self) -> None:
        """Close the connection on purpose; no reconnect will follow."""

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if self._transport is not None:
            await self._close_transport(self._transport)
            self._detach()
        self._retry_count = 0
        if self._state is not ConnectionState.DISCONNECTED:
            self._set_state(ConnectionState.DISCONNECTED)
        logger.info("Hub connection stopped")

    async def wait_closed(self) -> None:
        """Wait until the supervisor gives up or is stopped."""

        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    def backoff_delay(self, retry_count: int) -> float:
        """Return the delay in seconds before retry number ``retry_count``."""

        delay = (2 ** retry_count) * self.base_interval + self._jitter() * self.max_jitter
        return min(delay, self.max_delay)

    async def join_group(self, name: str) -> None:
        await self.invoke(protocol.JOIN_GROUP, name)
        self._groups.add(name)

    async def leave_group(self, name: str) -> None:
        await self.invoke(protocol.LEAVE_GROUP, name)
        self._groups.discard(name)

    async def acknowledge(self, notification_id: UUID | str) -> None:
        await self.invoke(protocol.ACKNOWLEDGE_NOTIFICATION, str(notification_id))
        logger.debug("Notification acknowledged: %s", notification_id)

    async def invoke(self, target: str, *arguments: Any) -> None:
        """Call ``target`` on the hub and wait for its completion.

        Fails fast with :class:`NotConnectedError` when no transport is open;
        invocations are never queued or retried.
        """

        transport = self._transport
        if transport is None or self._state is not ConnectionState.CONNECTED:
            raise NotConnectedError("No active hub connection")

        invocation_id = str(next(self._invocation_ids))
        future: asyncio.Future[str | None] = asyncio.get_running_loop().create_future()
        self._pending[invocation_id] = future
        try:
            await transport.send(
                json.dumps(protocol.invocation_frame(invocation_id, target, *arguments))
            )
            error = await asyncio.wait_for(future, timeout=self.invocation_timeout)
        except ConnectionClosed as exc:
            raise NotConnectedError("Hub connection closed during invocation") from exc
        finally:
            self._pending.pop(invocation_id, None)

        if error:
            raise HubInvocationError(target, error)

    async def _supervise(self) -> None:
        try:
            while True:
                self._set_state(ConnectionState.CONNECTING)
                transport = await self._open()
                if transport is not None:
                    await self._serve(transport)

                self._set_state(ConnectionState.DISCONNECTED)
                self._mark_settled()
                if self._retry_count >= self.max_attempts:
                    logger.error(
                        "Giving up on hub connection after %s reconnect attempts",
                        self._retry_count,
                    )
                    return
                self._retry_count += 1
                delay = self.backoff_delay(self._retry_count)
                logger.info(
                    "Reconnecting to hub in %.2fs (attempt %s of %s)",
                    delay,
                    self._retry_count,
                    self.max_attempts,
                )
                await self._sleep(delay)
        finally:
            self._mark_settled()

    async def _serve(self, transport: Transport) -> None:
        """Pump frames until the connection is lost for good."""

        while True:
            self._attach(transport)
            try:
                clean = await self._receive(transport)
            finally:
                self._detach()
                await self._close_transport(transport)
            if clean:
                logger.info("Hub connection closed")
                return

            self._set_state(ConnectionState.RECONNECTING)
            reopened = await self._open()
            if reopened is None:
                return
            logger.info("Hub connection re-established")
            transport = reopened

    async def _open(self) -> Transport | None:
        try:
            return await self._opener()
        except _OPEN_ERRORS as exc:
            logger.warning("Could not connect to hub at %s: %s", self.url, exc)
            return None

    async def _open_websocket(self) -> Transport:
        return await websockets.connect(self.url, open_timeout=self.invocation_timeout)

    async def _receive(self, transport: Transport) -> bool:
        """Dispatch incoming frames; return ``True`` when closed cleanly."""

        while True:
            try:
                raw = await transport.recv()
            except ConnectionClosedOK:
                return True
            except (ConnectionClosed, OSError) as exc:
                logger.warning("Hub connection lost: %s", exc)
                return False
            self._dispatch(raw)

    def _dispatch(self, raw: str | bytes) -> None:
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed hub frame: %r", raw)
            return
        if not isinstance(frame, dict):
            return

        frame_type = frame.get("type")
        if frame_type == protocol.FRAME_COMPLETION:
            future = self._pending.get(str(frame.get("invocationId")))
            if future is not None and not future.done():
                future.set_result(frame.get("error"))
        elif frame_type == protocol.FRAME_EVENT:
            arguments = frame.get("arguments")
            try:
                self._handle_event(frame.get("target"), arguments if isinstance(arguments, list) else [])
            except (ValueError, TypeError, KeyError, IndexError) as exc:
                logger.warning("Ignoring invalid %s event: %s", frame.get("target"), exc)

    def _handle_event(self, target: str | None, arguments: list[Any]) -> None:
        if target == protocol.CONNECTION_ESTABLISHED:
            self._connection_id = str(arguments[0])
            logger.info("Connected with ID: %s", self._connection_id)
            self._emit_state()
        elif target == protocol.RECEIVE_NOTIFICATION:
            self.events.publish(NotificationReceived(protocol.notification_from_wire(arguments[0])))
        elif target == protocol.NOTIFICATION_UPDATED:
            self.events.publish(NotificationUpdated(protocol.notification_from_wire(arguments[0])))
        elif target == protocol.NOTIFICATIONS_UPDATED:
            notifications = tuple(protocol.notification_from_wire(item) for item in arguments[0])
            self.events.publish(NotificationsUpdated(notifications))
        elif target == protocol.NOTIFICATION_DELETED:
            self.events.publish(NotificationDeleted(UUID(str(arguments[0]))))
        elif target == protocol.JOINED_GROUP:
            logger.info("Joined notification group: %s", arguments[0])
            self.events.publish(GroupJoined(str(arguments[0])))
        elif target == protocol.LEFT_GROUP:
            logger.info("Left notification group: %s", arguments[0])
            self.events.publish(GroupLeft(str(arguments[0])))
        elif target == protocol.NOTIFICATION_ACKNOWLEDGED:
            self.events.publish(NotificationAcknowledged(str(arguments[0]), str(arguments[1])))
        else:
            logger.debug("Ignoring unknown hub event %s", target)

    def _attach(self, transport: Transport) -> None:
        self._transport = transport
        self._retry_count = 0
        self._set_state(ConnectionState.CONNECTED)
        self._mark_settled()

    def _detach(self) -> None:
        # Group memberships live on the server side connection and die with it.
        self._transport = None
        self._connection_id = None
        self._groups.clear()
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(NotConnectedError("Hub connection lost"))

    @staticmethod
    async def _close_transport(transport: Transport) -> None:
        try:
            await transport.close()
        except _OPEN_ERRORS as exc:
            logger.debug("Error while closing hub transport: %s", exc)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        self._emit_state()

    def _emit_state(self) -> None:
        self.events.publish(ConnectionStateChanged(self._state, self._connection_id))

    def _mark_settled(self) -> None:
        if self._settled is not None:
            self._settled.set()


__all__ = ["HubConnection", "Opener", "Transport"]
