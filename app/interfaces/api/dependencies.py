"""FastAPI dependency utilities."""

from fastapi import Request
from starlette.requests import HTTPConnection

from app.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationPublisher,
)
from app.infrastructure.repositories import NotificationRepository


def get_notification_repository(request: Request) -> NotificationRepository:
    """Return the store owned by the running application."""

    return request.app.state.notification_repository


def get_connection_manager(connection: HTTPConnection) -> NotificationConnectionManager:
    """Return the hub; usable from both HTTP and websocket routes."""

    return connection.app.state.connection_manager


def get_notification_publisher(request: Request) -> NotificationPublisher:
    return request.app.state.notification_publisher
