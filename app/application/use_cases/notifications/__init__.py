"""Use cases for managing notifications."""

from .delete_notification import delete_notification
from .list_notifications import list_notifications
from .list_user_notifications import list_user_notifications
from .mark_notification_read import mark_all_notifications_read, mark_notification_read
from .send_notification import (
    TEST_NOTIFICATION_TITLE,
    send_notification,
    send_test_notification,
)

__all__ = [
    "TEST_NOTIFICATION_TITLE",
    "delete_notification",
    "list_notifications",
    "list_user_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
    "send_notification",
    "send_test_notification",
]
