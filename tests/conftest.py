from functools import partial

import httpx
import pytest

from notification_sync.core.config import Settings
from notification_sync.services.api_client import NotificationApi
from notification_sync.services.realtime import RealtimeChannel
from notification_sync.services.sync_client import NotificationSyncClient
from tests.support import FakeNotificationService, FakeSocketFactory, TokenHolder

TEST_API_BASE_URL = 'http://testserver/api'


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        API_BASE_URL=TEST_API_BASE_URL,
        STORAGE_PATH=tmp_path / 'storage.json',
        UNREAD_POLL_INTERVAL_SECONDS=0,
        ENV='test',
    )


@pytest.fixture
def service() -> FakeNotificationService:
    return FakeNotificationService()


@pytest.fixture
def sockets() -> FakeSocketFactory:
    return FakeSocketFactory()


@pytest.fixture
def token() -> TokenHolder:
    return TokenHolder()


@pytest.fixture
def make_api(service, test_settings):
    def _make(token_provider) -> NotificationApi:
        return NotificationApi(
            token_provider,
            config=test_settings,
            transport=httpx.ASGITransport(app=service.app),
        )

    return _make


@pytest.fixture
def make_client(make_api, test_settings, sockets, token):
    def _make(poll_interval: float = 0) -> NotificationSyncClient:
        return NotificationSyncClient(
            make_api(token),
            token,
            config=test_settings,
            channel_factory=partial(RealtimeChannel, socket_factory=sockets),
            poll_interval=poll_interval,
        )

    return _make


@pytest.fixture
def anyio_backend() -> str:
    return 'asyncio'
