"""Python client for the notification service."""

from .api import NotificationApiClient
from .connection import HubConnection
from .events import ConnectionStateChanged, EventRegistry
from .exceptions import (
    HubInvocationError,
    NotConnectedError,
    NotificationApiError,
    NotificationClientError,
)
from .projection import NotificationProjection
from .service import NotificationClient

__all__ = [
    "ConnectionStateChanged",
    "EventRegistry",
    "HubConnection",
    "HubInvocationError",
    "NotConnectedError",
    "NotificationApiClient",
    "NotificationApiError",
    "NotificationClient",
    "NotificationClientError",
    "NotificationProjection",
]
