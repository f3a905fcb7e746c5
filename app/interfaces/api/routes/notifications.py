"""Endpoints for creating, listing and updating notifications."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, status

from app.application.use_cases.notifications import (
    delete_notification as delete_notification_uc,
    list_notifications as list_notifications_uc,
    list_user_notifications as list_user_notifications_uc,
    mark_all_notifications_read as mark_all_notifications_read_uc,
    mark_notification_read as mark_notification_read_uc,
    send_notification as send_notification_uc,
    send_test_notification as send_test_notification_uc,
)
from app.domain.exceptions import InvalidArgumentError
from app.infrastructure.notifications import NotificationPublisher
from app.infrastructure.repositories import NotificationRepository
from app.interfaces.api.dependencies import (
    get_notification_publisher,
    get_notification_repository,
)
from app.interfaces.api.schemas import MessageResponse, NotificationCreate, NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])

logger = logging.getLogger(__name__)


def _bad_request(exc: InvalidArgumentError, context: str) -> HTTPException:
    logger.warning("Invalid argument when %s: %s", context, exc)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("", response_model=list[NotificationRead])
def list_notifications(
    repository: NotificationRepository = Depends(get_notification_repository),
) -> list[NotificationRead]:
    """Return every notification, newest first."""

    return [NotificationRead.from_entity(n) for n in list_notifications_uc(repository)]


@router.get("/user/{user_id}", response_model=list[NotificationRead])
def list_user_notifications(
    user_id: str,
    repository: NotificationRepository = Depends(get_notification_repository),
) -> list[NotificationRead]:
    """Return the notifications addressed to ``user_id`` plus broadcast ones."""

    try:
        notifications = list_user_notifications_uc(repository, user_id)
    except InvalidArgumentError as exc:
        raise _bad_request(exc, "getting user notifications") from exc
    return [NotificationRead.from_entity(n) for n in notifications]


@router.post("", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def send_notification(
    payload: NotificationCreate | None = Body(default=None),
    repository: NotificationRepository = Depends(get_notification_repository),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> NotificationRead:
    """Store a notification and push it to the connected clients."""

    try:
        notification = send_notification_uc(
            repository, publisher, payload.to_entity() if payload is not None else None
        )
    except InvalidArgumentError as exc:
        raise _bad_request(exc, "sending notification") from exc
    return NotificationRead.from_entity(notification)


@router.post("/test", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def send_test_notification(
    repository: NotificationRepository = Depends(get_notification_repository),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> NotificationRead:
    """Broadcast a canned test notification."""

    return NotificationRead.from_entity(send_test_notification_uc(repository, publisher))


@router.put("/{notification_id}/read", response_model=MessageResponse)
def mark_notification_read(
    notification_id: UUID,
    repository: NotificationRepository = Depends(get_notification_repository),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> MessageResponse:
    if not mark_notification_read_uc(repository, publisher, notification_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Notification with ID {notification_id} not found",
        )
    return MessageResponse(message="Notification marked as read")


@router.put("/user/{user_id}/read-all", response_model=MessageResponse)
def mark_all_notifications_read(
    user_id: str,
    repository: NotificationRepository = Depends(get_notification_repository),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> MessageResponse:
    try:
        mark_all_notifications_read_uc(repository, publisher, user_id)
    except InvalidArgumentError as exc:
        raise _bad_request(exc, "marking all notifications as read") from exc
    return MessageResponse(message="All notifications marked as read")


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(
    notification_id: UUID,
    repository: NotificationRepository = Depends(get_notification_repository),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> MessageResponse:
    if not delete_notification_uc(repository, publisher, notification_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Notification with ID {notification_id} not found",
        )
    return MessageResponse(message="Notification deleted successfully")
