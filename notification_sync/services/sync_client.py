"""Notification sync client.

Keeps a local, observable view of the signed-in user's notifications in step
with the notification service through three inputs:

* REST calls (initial load, mutations, preferences),
* pushes on the realtime channel,
* a periodic unread-count poll that reconciles missed pushes.

Realtime delivery is at-most-once. Nothing replays events missed while the
channel was down; the poll and the next ``load`` correct the drift.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from loguru import logger

from notification_sync.core.config import Settings, settings as default_settings
from notification_sync.core.errors import AuthorizationError, NotificationClientError
from notification_sync.models.enums import ConnectionState
from notification_sync.schemas.notification import (
    Notification,
    NotificationFilter,
    NotificationPreferences,
    PreferencesUpdate,
    TestNotificationRequest,
)
from notification_sync.services.api_client import NotificationApi, TokenProvider
from notification_sync.services.notification_state import NotificationState
from notification_sync.services.realtime import RealtimeChannel

T = TypeVar('T')

NewNotificationCallback = Callable[[Notification], None]
StateListener = Callable[['NotificationSyncClient'], None]
ChannelFactory = Callable[..., RealtimeChannel]


class NotificationSyncClient:
    def __init__(
        self,
        api: NotificationApi,
        token_provider: TokenProvider,
        *,
        config: Optional[Settings] = None,
        channel_factory: Optional[ChannelFactory] = None,
        poll_interval: Optional[float] = None,
    ) -> None:
        self._api = api
        self._token_provider = token_provider
        self._config = config or default_settings
        self._poll_interval = (
            poll_interval if poll_interval is not None else self._config.UNREAD_POLL_INTERVAL_SECONDS
        )
        self._state = NotificationState()
        self._listeners: list[StateListener] = []
        self._new_notification_callback: Optional[NewNotificationCallback] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._generation = 0
        self._closed = False
        self._unauthorized = False
        factory = channel_factory or RealtimeChannel
        self._channel = factory(
            on_state=self._handle_connection_state,
            on_notification=self._handle_push,
            config=self._config,
        )

    # -- read-only view -------------------------------------------------

    @property
    def state(self) -> NotificationState:
        return self._state

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return self._state.notifications

    @property
    def unread_count(self) -> int:
        return self._state.unread_count

    @property
    def connection_state(self) -> ConnectionState:
        return self._state.connection_state

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    @property
    def preferences(self) -> Optional[NotificationPreferences]:
        return self._state.preferences

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def unauthorized(self) -> bool:
        """True once the service rejected the credentials, until the next ``start``."""
        return self._unauthorized

    # -- observers ------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` after every state update. Returns an unsubscribe handle."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_new_notification(self, callback: NewNotificationCallback) -> None:
        """Register the single push observer. A later registration replaces this one."""
        self._new_notification_callback = callback

    def off_new_notification(self) -> None:
        self._new_notification_callback = None

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -- lifecycle ------------------------------------------------------

    async def start(self) -> None:
        self._closed = False
        self._unauthorized = False
        await self.load()
        if self._unauthorized:
            return
        await self.fetch_preferences()
        await self.refresh_unread_count()
        await self.connect_realtime()
        self._start_polling()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        await self._stop_polling()
        await self._channel.disconnect()
        self._state.clear()
        self._emit()

    async def __aenter__(self) -> 'NotificationSyncClient':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    async def connect_realtime(self) -> None:
        if self._closed or self._unauthorized:
            return
        await self._channel.connect(self._token_provider())

    async def disconnect_realtime(self) -> None:
        await self._channel.disconnect()

    def _start_polling(self) -> None:
        if self._poll_interval <= 0 or self._poll_task is not None:
            return
        self._poll_task = asyncio.create_task(self._poll_unread_count())

    async def _stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _poll_unread_count(self) -> None:
        while not self._closed and not self._unauthorized:
            await asyncio.sleep(self._poll_interval)
            await self.refresh_unread_count()

    # -- request plumbing -----------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    async def _execute(self, call: Callable[[], Awaitable[T]]) -> tuple[bool, Optional[T]]:
        generation = self._generation
        try:
            result = await call()
        except NotificationClientError as exc:
            if self._is_current(generation):
                await self._record_failure(exc)
            return False, None
        if not self._is_current(generation):
            logger.debug("Discarding response that arrived after the session changed")
            return False, None
        self._state.error = None
        return True, result

    async def _record_failure(self, exc: NotificationClientError) -> None:
        if isinstance(exc, AuthorizationError):
            logger.warning(f"Notification service rejected credentials: {exc.message}")
            self._unauthorized = True
            self._generation += 1
            await self._stop_polling()
            self._state.clear()
            await self._channel.disconnect()
        self._state.error = exc.message

    # -- operations -----------------------------------------------------

    async def load(self, filters: Optional[NotificationFilter] = None) -> bool:
        """Replace the local list and unread count with the server's view."""
        self._state.is_loading = True
        self._state.error = None
        self._emit()
        ok, page = await self._execute(lambda: self._api.list_notifications(filters))
        if ok and page is not None:
            self._state.replace(page)
            logger.debug(
                json.dumps(
                    {
                        'event': 'notifications.loaded',
                        'count': len(page.notifications),
                        'unread_count': page.unread_count,
                    }
                )
            )
        self._state.is_loading = False
        self._emit()
        return ok

    async def refresh_unread_count(self) -> bool:
        ok, count = await self._execute(self._api.get_unread_count)
        if ok and count is not None:
            self._state.set_unread_count(count)
        self._emit()
        return ok

    async def mark_as_read(self, notification_id: int) -> bool:
        ok, _ = await self._execute(lambda: self._api.mark_as_read(notification_id))
        if not ok:
            self._emit()
            return False
        if self._state.get(notification_id) is None:
            # Not loaded locally: the server count is the only reliable source.
            return await self.refresh_unread_count()
        self._state.mark_read(notification_id)
        self._emit()
        return True

    async def mark_all_as_read(self) -> bool:
        ok, _ = await self._execute(self._api.mark_all_as_read)
        if ok:
            self._state.mark_all_read()
        self._emit()
        return ok

    async def delete(self, notification_id: int) -> bool:
        """Remove an entry optimistically, rolling back if the service refuses."""
        generation = self._generation
        snapshot = self._state.snapshot()
        removed = self._state.remove(notification_id)
        version_after_removal = self._state.version
        self._emit()

        ok, _ = await self._execute(lambda: self._api.delete_notification(notification_id))
        if ok:
            self._emit()
            return True

        if removed is not None and self._is_current(generation):
            if self._state.version == version_after_removal:
                self._state.restore(snapshot)
            else:
                index, notification = removed
                listed = snapshot.notifications
                self._state.reinsert(
                    notification,
                    after_id=listed[index - 1].id if index > 0 else None,
                    before_id=listed[index + 1].id if index + 1 < len(listed) else None,
                )
            logger.info(f"Rolled back deletion of notification {notification_id}")
        self._emit()
        return False

    async def fetch_preferences(self) -> bool:
        ok, preferences = await self._execute(self._api.get_preferences)
        if ok:
            self._state.preferences = preferences
        self._emit()
        return ok

    async def update_preferences(self, changes: Union[PreferencesUpdate, dict[str, Any]]) -> bool:
        if not isinstance(changes, PreferencesUpdate):
            changes = PreferencesUpdate.model_validate(changes)
        ok, preferences = await self._execute(lambda: self._api.update_preferences(changes))
        if ok:
            self._state.preferences = preferences
        self._emit()
        return ok

    async def send_test_notification(
        self,
        *,
        title: Optional[str] = None,
        message: Optional[str] = None,
        type: Optional[str] = None,
        action_url: Optional[str] = None,
    ) -> bool:
        if not self._config.test_notifications_enabled:
            logger.warning("Test notifications are disabled in this environment")
            return False
        request = TestNotificationRequest(title=title, message=message, type=type, action_url=action_url)
        ok, _ = await self._execute(lambda: self._api.send_test_notification(request))
        self._emit()
        return ok

    # -- realtime callbacks ---------------------------------------------

    def _handle_connection_state(self, state: ConnectionState) -> None:
        self._state.connection_state = state
        self._emit()

    def _handle_push(self, notification: Notification) -> None:
        if self._closed:
            return
        if not self._state.prepend(notification):
            logger.debug(f"Ignoring push for already known notification {notification.id}")
            return
        self._emit()
        callback = self._new_notification_callback
        if callback is not None:
            callback(notification)
