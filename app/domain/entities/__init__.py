"""Domain entities exposed by the application."""

from .connection_state import ConnectionState
from .notification import Notification, NotificationType

__all__ = [
    "ConnectionState",
    "Notification",
    "NotificationType",
]
