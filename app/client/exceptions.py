"""Errors raised by the notification client."""

from __future__ import annotations


class NotificationClientError(Exception):
    """Base class for client-side failures."""


class NotConnectedError(NotificationClientError):
    """A hub invocation was attempted without an open connection."""


class HubInvocationError(NotificationClientError):
    """The hub rejected an invocation."""

    def __init__(self, target: str, detail: str) -> None:
        super().__init__(f"{target} failed: {detail}")
        self.target = target
        self.detail = detail


class NotificationApiError(NotificationClientError):
    """An HTTP call to the notifications API failed."""

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        super().__init__(detail if status_code is None else f"{status_code}: {detail}")
        self.detail = detail
        self.status_code = status_code


__all__ = [
    "HubInvocationError",
    "NotConnectedError",
    "NotificationApiError",
    "NotificationClientError",
]
