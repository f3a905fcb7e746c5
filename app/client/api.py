"""HTTP client for the notifications API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote
from uuid import UUID

import httpx

from app.config import ClientSettings
from app.domain.entities import Notification, NotificationType
from app.domain.hub_protocol import notification_from_wire

from .exceptions import NotificationApiError

logger = logging.getLogger(__name__)


class NotificationApiClient:
    """Thin async wrapper over the CRUD endpoints.

    Failures surface as :class:`NotificationApiError`; calls are never
    retried.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> "NotificationApiClient":
        return cls(settings.api_base_url, timeout=settings.request_timeout, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_all(self) -> list[Notification]:
        response = await self._request("GET", "/notifications")
        return [notification_from_wire(item) for item in response.json()]

    async def list_for_user(self, user_id: str) -> list[Notification]:
        response = await self._request("GET", f"/notifications/user/{quote(user_id, safe='')}")
        return [notification_from_wire(item) for item in response.json()]

    async def send(
        self,
        *,
        title: str = "",
        message: str = "",
        type: NotificationType = NotificationType.INFO,
        user_id: str | None = None,
    ) -> Notification:
        payload = {
            "title": title,
            "message": message,
            "type": NotificationType.parse(type).value,
            "userId": user_id,
        }
        response = await self._request("POST", "/notifications", json=payload)
        return notification_from_wire(response.json())

    async def send_test(self) -> Notification:
        response = await self._request("POST", "/notifications/test")
        return notification_from_wire(response.json())

    async def mark_read(self, notification_id: UUID) -> None:
        await self._request("PUT", f"/notifications/{notification_id}/read")

    async def mark_all_read(self, user_id: str) -> None:
        await self._request("PUT", f"/notifications/user/{quote(user_id, safe='')}/read-all")

    async def delete(self, notification_id: UUID) -> None:
        await self._request("DELETE", f"/notifications/{notification_id}")

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise NotificationApiError(str(exc) or type(exc).__name__) from exc

        if response.is_error:
            detail = _error_detail(response)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, detail)
            raise NotificationApiError(detail, status_code=response.status_code)
        return response


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)


__all__ = ["NotificationApiClient"]
