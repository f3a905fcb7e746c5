"""Use case for listing every stored notification."""

from collections.abc import Sequence

from app.domain.entities import Notification
from app.infrastructure.repositories import NotificationRepository


def list_notifications(repository: NotificationRepository) -> Sequence[Notification]:
    """Return all notifications, newest first."""

    return repository.list_all()
