from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from dateutil.relativedelta import relativedelta

from notification_sync.models.enums import (
    ConnectionState,
    NotificationPriority,
    NotificationType,
    NotificationView,
)
from notification_sync.schemas.notification import Notification

BADGE_LIMIT = 99

_TYPE_ICONS = {
    NotificationType.MESSAGE: 'message-circle',
    NotificationType.PROJECT_LIKE: 'heart',
    NotificationType.PROJECT_COMMENT: 'message-square',
    NotificationType.JOB_APPLICATION: 'briefcase',
    NotificationType.PAYMENT_SUCCESS: 'credit-card',
    NotificationType.PAYMENT_FAILED: 'alert-triangle',
    NotificationType.SYSTEM_ANNOUNCEMENT: 'info',
}

_PRIORITY_TONES = {
    NotificationPriority.URGENT: 'red',
    NotificationPriority.HIGH: 'orange',
    NotificationPriority.NORMAL: 'blue',
    NotificationPriority.LOW: 'gray',
}

_CONNECTION_LABELS = {
    ConnectionState.CONNECTED: 'Live',
    ConnectionState.CONNECTING: 'Connecting',
}


def badge_label(unread_count: int) -> str:
    if unread_count <= 0:
        return ''
    if unread_count > BADGE_LIMIT:
        return f"{BADGE_LIMIT}+"
    return str(unread_count)


def connection_label(state: ConnectionState) -> str:
    return _CONNECTION_LABELS.get(state, 'Offline')


def filter_notifications(
    notifications: Iterable[Notification],
    view: Union[NotificationView, str] = NotificationView.ALL,
) -> list[Notification]:
    view = NotificationView(view)
    if view == NotificationView.UNREAD:
        return [item for item in notifications if not item.is_read]
    return list(notifications)


def icon_for_type(notification_type: str) -> str:
    try:
        return _TYPE_ICONS.get(NotificationType(notification_type), 'bell')
    except ValueError:
        return 'bell'


def priority_tone(priority: Union[NotificationPriority, str]) -> str:
    try:
        return _PRIORITY_TONES[NotificationPriority(priority)]
    except (KeyError, ValueError):
        return 'gray'


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _plural(amount: int, unit: str) -> str:
    return f"{amount} {unit}{'' if amount == 1 else 's'} ago"


def format_relative_time(created_at: datetime, now: Optional[datetime] = None) -> str:
    """Render ``created_at`` the way the notification list shows it, e.g. ``3 days ago``."""
    current = _ensure_utc(now or datetime.now(timezone.utc))
    created = _ensure_utc(created_at)
    if created >= current:
        return 'just now'
    delta = relativedelta(current, created)
    if delta.years:
        return _plural(delta.years, 'year')
    if delta.months:
        return _plural(delta.months, 'month')
    if delta.days:
        return _plural(delta.days, 'day')
    if delta.hours:
        return _plural(delta.hours, 'hour')
    if delta.minutes:
        return _plural(delta.minutes, 'minute')
    return 'just now'
