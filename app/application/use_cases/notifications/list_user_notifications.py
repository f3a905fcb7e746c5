"""Use case for listing the notifications visible to a user."""

from collections.abc import Sequence

from app.domain.entities import Notification
from app.infrastructure.repositories import NotificationRepository


def list_user_notifications(
    repository: NotificationRepository, user_id: str
) -> Sequence[Notification]:
    """Return notifications addressed to ``user_id`` plus broadcast ones.

    Raises ``InvalidArgumentError`` when ``user_id`` is blank.
    """

    return repository.list_for_user(user_id)
