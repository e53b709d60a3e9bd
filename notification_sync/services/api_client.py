from __future__ import annotations

import json
from typing import Any, Callable, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from notification_sync.core.config import Settings, settings as default_settings
from notification_sync.core.errors import ApplicationError, AuthorizationError, TransportError
from notification_sync.schemas.notification import (
    ApiEnvelope,
    NotificationFilter,
    NotificationPage,
    NotificationPreferences,
    PreferencesUpdate,
    TestNotificationRequest,
    UnreadCount,
)

TokenProvider = Callable[[], Optional[str]]

UNAUTHORIZED_STATUSES = {401, 403}


class NotificationApi:
    """Thin REST client for the notification service.

    Every call raises one of the :mod:`notification_sync.core.errors` types on
    failure and returns the decoded ``data`` member of the response envelope
    on success.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Optional[Settings] = None,
    ) -> None:
        config = config or default_settings
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url or config.API_BASE_URL,
            timeout=timeout if timeout is not None else config.REQUEST_TIMEOUT_SECONDS,
            transport=transport,
            headers={'Content-Type': 'application/json'},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> 'NotificationApi':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    def _auth_headers(self) -> dict[str, str]:
        token = self._token_provider()
        if not token:
            raise AuthorizationError('Not authenticated')
        return {'Authorization': f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        default_error: str,
        params: Optional[dict[str, str]] = None,
        payload: Any = None,
    ) -> Any:
        headers = self._auth_headers()
        request_args: dict[str, Any] = {'headers': headers}
        if params:
            request_args['params'] = params
        if payload is not None:
            request_args['json'] = payload
        try:
            response = await self._client.request(method, path, **request_args)
        except httpx.HTTPError as exc:
            logger.warning(
                json.dumps(
                    {'event': 'notification_api.transport_error', 'method': method, 'path': path, 'error': str(exc)},
                    ensure_ascii=False,
                )
            )
            raise TransportError(str(exc) or 'Connection error') from exc

        if response.status_code in UNAUTHORIZED_STATUSES:
            raise AuthorizationError(self._error_text(response) or 'Not authenticated')

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(f"Unreadable response from {path} (HTTP {response.status_code})") from exc

        try:
            envelope = ApiEnvelope.model_validate(body)
        except ValidationError as exc:
            raise TransportError(f"Unexpected response shape from {path}") from exc

        if not envelope.success or response.is_error:
            message = envelope.error or envelope.message or default_error
            logger.info(
                json.dumps(
                    {
                        'event': 'notification_api.rejected',
                        'method': method,
                        'path': path,
                        'status': response.status_code,
                        'error': message,
                    },
                    ensure_ascii=False,
                )
            )
            raise ApplicationError(message, status_code=response.status_code)
        return envelope.data

    @staticmethod
    def _error_text(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        for key in ('error', 'message', 'detail'):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    @staticmethod
    def _parse(model, data: Any, path: str):  # noqa: ANN001, ANN205
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise TransportError(f"Unexpected payload from {path}") from exc

    async def list_notifications(self, filters: Optional[NotificationFilter] = None) -> NotificationPage:
        filters = filters or NotificationFilter()
        data = await self._request(
            'GET',
            '/notifications',
            params=filters.to_query(),
            default_error='Failed to load notifications',
        )
        return self._parse(NotificationPage, data, '/notifications')

    async def get_unread_count(self) -> int:
        data = await self._request(
            'GET',
            '/notifications/unread-count',
            default_error='Failed to load unread count',
        )
        return self._parse(UnreadCount, data, '/notifications/unread-count').unread_count

    async def mark_as_read(self, notification_id: int) -> None:
        await self._request(
            'POST',
            f"/notifications/{notification_id}/read",
            default_error='Failed to mark notification as read',
        )

    async def mark_all_as_read(self) -> None:
        await self._request(
            'POST',
            '/notifications/mark-all-read',
            default_error='Failed to mark notifications as read',
        )

    async def delete_notification(self, notification_id: int) -> None:
        await self._request(
            'DELETE',
            f"/notifications/{notification_id}",
            default_error='Failed to delete notification',
        )

    async def get_preferences(self) -> NotificationPreferences:
        data = await self._request(
            'GET',
            '/notifications/preferences',
            default_error='Failed to load notification preferences',
        )
        return self._parse(NotificationPreferences, data, '/notifications/preferences')

    async def update_preferences(self, changes: PreferencesUpdate) -> NotificationPreferences:
        data = await self._request(
            'PUT',
            '/notifications/preferences',
            payload=changes.to_payload(),
            default_error='Failed to update notification preferences',
        )
        return self._parse(NotificationPreferences, data, '/notifications/preferences')

    async def send_test_notification(self, request: TestNotificationRequest) -> bool:
        await self._request(
            'POST',
            '/notifications/test',
            payload=request.to_payload(),
            default_error='Failed to send test notification',
        )
        return True
