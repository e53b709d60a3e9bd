from typing import Optional


class NotificationClientError(Exception):
    """Base error for every failure raised by the notification client."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransportError(NotificationClientError):
    """The request never produced a usable response (network drop, bad body)."""


class AuthorizationError(NotificationClientError):
    """The caller is not authenticated: missing/expired token or 401/403."""


class ApplicationError(NotificationClientError):
    """The service answered but reported failure (``success: false``)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
