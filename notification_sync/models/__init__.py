from notification_sync.models.enums import (
    ConnectionState,
    NotificationPriority,
    NotificationType,
    NotificationView,
)

__all__ = [
    'ConnectionState',
    'NotificationPriority',
    'NotificationType',
    'NotificationView',
]
