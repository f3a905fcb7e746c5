"""Realtime notification helpers for the infrastructure layer."""

from .manager import HubConnection, NotificationConnectionManager
from .publisher import NotificationPublisher, serialize_notification

__all__ = [
    "HubConnection",
    "NotificationConnectionManager",
    "NotificationPublisher",
    "serialize_notification",
]
