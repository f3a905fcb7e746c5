"""Use cases for marking notifications as read."""

from __future__ import annotations

import logging
from uuid import UUID

from app.infrastructure.notifications import NotificationPublisher
from app.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def mark_notification_read(
    repository: NotificationRepository,
    publisher: NotificationPublisher,
    notification_id: UUID,
) -> bool:
    """Mark one notification as read; ``False`` when the id is unknown.

    Marking an already read notification succeeds again and re-sends the
    update event.
    """

    notification = repository.mark_as_read(notification_id)
    if notification is None:
        logger.warning("Attempt to mark non-existent notification as read: %s", notification_id)
        return False

    logger.info("Notification marked as read: %s", notification_id)
    publisher.notification_updated(notification)
    return True


def mark_all_notifications_read(
    repository: NotificationRepository,
    publisher: NotificationPublisher,
    user_id: str,
) -> bool:
    """Mark every unread notification visible to ``user_id`` as read."""

    changed = repository.mark_all_as_read(user_id)
    logger.info("All notifications marked as read for user: %s", user_id)
    publisher.notifications_updated(user_id, changed)
    return True
