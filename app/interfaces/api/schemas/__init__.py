from .notification import MessageResponse, NotificationCreate, NotificationRead

__all__ = [
    "MessageResponse",
    "NotificationCreate",
    "NotificationRead",
]
