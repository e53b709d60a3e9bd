"""Realtime notification channel over a socket.io namespace."""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError
from loguru import logger
from pydantic import ValidationError

from notification_sync.core.config import Settings, settings as default_settings
from notification_sync.models.enums import ConnectionState
from notification_sync.schemas.notification import Notification

StateListener = Callable[[ConnectionState], None]
NotificationListener = Callable[[Notification], None]
SocketFactory = Callable[[], Any]


class RealtimeChannel:
    """Own one socket.io client connected to the per-user notification namespace.

    The channel only reports what the transport tells it. Reconnection and
    transport fallback stay with the socket.io client defaults.
    """

    def __init__(
        self,
        *,
        on_state: StateListener,
        on_notification: NotificationListener,
        config: Optional[Settings] = None,
        socket_factory: Optional[SocketFactory] = None,
    ) -> None:
        self._config = config or default_settings
        self._on_state = on_state
        self._on_notification = on_notification
        self._socket_factory = socket_factory or self._default_socket
        self._socket: Any = None
        self._state = ConnectionState.DISCONNECTED

    def _default_socket(self) -> socketio.AsyncClient:
        return socketio.AsyncClient(
            reconnection=self._config.SOCKET_RECONNECTION,
            logger=False,
            engineio_logger=False,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def namespace(self) -> str:
        return self._config.SOCKET_NAMESPACE

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        self._state = state
        self._on_state(state)

    def _register_handlers(self, sock: Any) -> None:
        namespace = self.namespace
        sock.on('connect', self._handle_connect, namespace=namespace)
        sock.on('disconnect', self._handle_disconnect, namespace=namespace)
        sock.on('connect_error', self._handle_connect_error, namespace=namespace)
        sock.on('notification', self._handle_notification, namespace=namespace)
        sock.on('pong', self._handle_pong, namespace=namespace)

    async def connect(self, token: Optional[str]) -> None:
        if not token:
            logger.info("Realtime channel skipped: no access token")
            self._set_state(ConnectionState.DISCONNECTED)
            return
        if self._socket is not None and getattr(self._socket, 'connected', False):
            return

        stale, self._socket = self._socket, None
        if stale is not None:
            await self._close_socket(stale)

        self._set_state(ConnectionState.CONNECTING)
        sock = self._socket_factory()
        self._register_handlers(sock)
        self._socket = sock
        try:
            await sock.connect(
                self._config.socket_url,
                auth={'token': token},
                namespaces=[self.namespace],
                transports=self._config.socket_transports or None,
                socketio_path=self._config.SOCKET_PATH,
            )
        except SocketConnectionError as exc:
            logger.warning(f"Realtime connection failed: {exc}")
            self._set_state(ConnectionState.ERROR)

    async def disconnect(self) -> None:
        sock, self._socket = self._socket, None
        if sock is not None:
            await self._close_socket(sock)
        self._set_state(ConnectionState.DISCONNECTED)

    async def _close_socket(self, sock: Any) -> None:
        try:
            await sock.disconnect()
        except Exception as exc:
            logger.warning(f"Realtime disconnect raised: {exc}")

    def _handle_connect(self) -> None:
        logger.info("Realtime channel connected")
        self._set_state(ConnectionState.CONNECTED)

    def _handle_disconnect(self, *args: Any) -> None:
        reason = args[0] if args else None
        logger.info(f"Realtime channel disconnected ({reason or 'unknown reason'})")
        self._set_state(ConnectionState.DISCONNECTED)

    def _handle_connect_error(self, data: Any = None) -> None:
        logger.warning(f"Realtime connection error: {data}")
        self._set_state(ConnectionState.ERROR)

    def _handle_notification(self, data: Any) -> None:
        try:
            notification = Notification.model_validate(data)
        except ValidationError as exc:
            logger.warning(f"Dropping malformed notification event: {exc.error_count()} errors")
            return
        logger.debug(
            json.dumps(
                {'event': 'realtime.notification', 'id': notification.id, 'type': notification.type},
                ensure_ascii=False,
            )
        )
        self._on_notification(notification)

    def _handle_pong(self, data: Any = None) -> None:
        logger.debug(f"Realtime pong received: {data}")
