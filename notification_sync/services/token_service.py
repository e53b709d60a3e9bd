from typing import Optional
from datetime import datetime, timezone
from jose import JWTError, jwt
from loguru import logger
from notification_sync.core.config import Settings, settings as default_settings
from notification_sync.core.storage import LocalStorage


def token_expires_at(token: str) -> Optional[datetime]:
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get('exp')
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(float(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def is_token_expired(token: str, now: Optional[datetime] = None) -> bool:
    expires_at = token_expires_at(token)
    if expires_at is None:
        return False
    current = now or datetime.now(timezone.utc)
    return expires_at <= current


class AccessTokenProvider:
    """Reads the bearer token the authentication layer left in client storage."""

    def __init__(self, storage: LocalStorage, key: str, override: Optional[str] = None) -> None:
        self._storage = storage
        self._key = key
        self._override = override

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> 'AccessTokenProvider':
        config = config or default_settings
        return cls(LocalStorage(config.STORAGE_PATH), config.ACCESS_TOKEN_KEY, config.ACCESS_TOKEN)

    def get_token(self) -> Optional[str]:
        token = self._override or self._storage.get_item(self._key)
        if not token:
            return None
        if is_token_expired(token):
            logger.info("Stored access token has expired")
            return None
        return token

    def __call__(self) -> Optional[str]:
        return self.get_token()
