"""Use case for deleting notifications."""

from __future__ import annotations

import logging
from uuid import UUID

from app.infrastructure.notifications import NotificationPublisher
from app.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def delete_notification(
    repository: NotificationRepository,
    publisher: NotificationPublisher,
    notification_id: UUID,
) -> bool:
    """Remove the notification and tell every client; ``False`` when unknown."""

    if not repository.delete(notification_id):
        logger.warning("Attempt to delete non-existent notification: %s", notification_id)
        return False

    logger.info("Notification deleted: %s", notification_id)
    publisher.notification_deleted(notification_id)
    return True
