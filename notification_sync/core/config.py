from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROJECT_NAME = "Mimariproje Notification Sync"
DEFAULT_API_BASE_URL = "http://localhost:5000/api"
DEFAULT_ACCESS_TOKEN_KEY = "mimariproje_access_token"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    PROJECT_NAME: str = DEFAULT_PROJECT_NAME
    ENV: str = 'development'
    DEBUG: bool = False
    LOG_LEVEL: str = 'INFO'

    API_BASE_URL: str = DEFAULT_API_BASE_URL
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    SOCKET_URL: Optional[str] = None
    SOCKET_NAMESPACE: str = '/notifications'
    SOCKET_PATH: str = 'socket.io'
    SOCKET_TRANSPORTS: str = 'websocket,polling'
    SOCKET_RECONNECTION: bool = True

    UNREAD_POLL_INTERVAL_SECONDS: float = 60.0

    STORAGE_PATH: Path = Path('.mimariproje/storage.json')
    ACCESS_TOKEN_KEY: str = DEFAULT_ACCESS_TOKEN_KEY
    ACCESS_TOKEN: Optional[str] = None

    TEST_NOTIFICATIONS_ENABLED: Optional[bool] = None

    @field_validator('SOCKET_NAMESPACE', mode='before')
    @classmethod
    def normalize_namespace(cls, value):  # type: ignore[override]
        if isinstance(value, str):
            value = value.strip()
            if not value.startswith('/'):
                value = f"/{value}"
        return value

    @property
    def socket_transports(self) -> list[str]:
        return [item.strip() for item in self.SOCKET_TRANSPORTS.split(',') if item.strip()]

    @property
    def socket_url(self) -> str:
        if self.SOCKET_URL:
            return self.SOCKET_URL.rstrip('/')
        base = self.API_BASE_URL.rstrip('/')
        if base.endswith('/api'):
            base = base[: -len('/api')]
        return base

    @property
    def test_notifications_enabled(self) -> bool:
        if self.TEST_NOTIFICATIONS_ENABLED is not None:
            return self.TEST_NOTIFICATIONS_ENABLED
        return self.ENV != 'production'


settings = Settings()
