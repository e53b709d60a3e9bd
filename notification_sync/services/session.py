from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from notification_sync.core.config import Settings, settings as default_settings
from notification_sync.services.api_client import NotificationApi, TokenProvider
from notification_sync.services.realtime import RealtimeChannel
from notification_sync.services.sync_client import ChannelFactory, NotificationSyncClient
from notification_sync.services.token_service import AccessTokenProvider

ApiFactory = Callable[[TokenProvider, Settings], NotificationApi]


def _default_api_factory(token_provider: TokenProvider, config: Settings) -> NotificationApi:
    return NotificationApi(token_provider, config=config)


class NotificationSession:
    """Owns the sync client for the lifetime of one authenticated user.

    A client (REST pool, socket, poll task) exists only while authenticated:
    it is built on login and torn down, with its cached data, on logout.
    """

    def __init__(
        self,
        *,
        config: Optional[Settings] = None,
        token_provider: Optional[TokenProvider] = None,
        api_factory: Optional[ApiFactory] = None,
        channel_factory: Optional[ChannelFactory] = None,
        poll_interval: Optional[float] = None,
    ) -> None:
        self._config = config or default_settings
        self._token_provider = token_provider or AccessTokenProvider.from_settings(self._config)
        self._api_factory = api_factory or _default_api_factory
        self._channel_factory = channel_factory or RealtimeChannel
        self._poll_interval = poll_interval
        self._api: Optional[NotificationApi] = None
        self._client: Optional[NotificationSyncClient] = None

    @property
    def client(self) -> Optional[NotificationSyncClient]:
        return self._client

    @property
    def is_authenticated(self) -> bool:
        return self._client is not None

    async def set_authenticated(self, authenticated: bool) -> Optional[NotificationSyncClient]:
        if not authenticated:
            await self._teardown()
            return None
        if self._client is not None:
            if self._client.unauthorized and self._token_provider():
                logger.info("Access token available again; restarting notification session")
                await self._client.start()
            return self._client
        if not self._token_provider():
            logger.info("No usable access token; notification session stays signed out")
            return None
        self._api = self._api_factory(self._token_provider, self._config)
        self._client = NotificationSyncClient(
            self._api,
            self._token_provider,
            config=self._config,
            channel_factory=self._channel_factory,
            poll_interval=self._poll_interval,
        )
        logger.info("Notification session started")
        await self._client.start()
        return self._client

    async def _teardown(self) -> None:
        client, self._client = self._client, None
        api, self._api = self._api, None
        if client is not None:
            await client.close()
            logger.info("Notification session closed")
        if api is not None:
            await api.aclose()

    async def __aenter__(self) -> 'NotificationSession':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self._teardown()
