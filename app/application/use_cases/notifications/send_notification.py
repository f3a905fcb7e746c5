"""Use cases for creating notifications and pushing them to clients."""

from __future__ import annotations

import logging

from app.domain.entities import Notification, NotificationType
from app.domain.exceptions import InvalidArgumentError
from app.infrastructure.notifications import NotificationPublisher
from app.infrastructure.repositories import NotificationRepository
from app.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

TEST_NOTIFICATION_TITLE = "Test Notification"


def send_notification(
    repository: NotificationRepository,
    publisher: NotificationPublisher,
    notification: Notification | None,
) -> Notification:
    """Store ``notification`` and deliver it to its audience.

    The identifier is generated when missing and the timestamp is always
    replaced with the acceptance time.
    """

    if notification is None:
        raise InvalidArgumentError("Notification data is required")

    saved = repository.add(notification)
    logger.info("New notification sent: %s", saved.title)
    publisher.notification_received(saved)
    return saved


def send_test_notification(
    repository: NotificationRepository, publisher: NotificationPublisher
) -> Notification:
    """Broadcast a canned notification, handy to check the realtime channel."""

    notification = Notification(
        title=TEST_NOTIFICATION_TITLE,
        message=f"This is a test notification created at {now_in_app_timezone().isoformat()}",
        type=NotificationType.INFO,
        user_id=None,
    )
    return send_notification(repository, publisher, notification)
