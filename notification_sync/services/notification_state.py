"""Local cache of the signed-in user's notifications.

The container is synchronous and performs no I/O: the sync client decides
when to call it, this module only keeps the list and the unread counter
consistent with each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from notification_sync.models.enums import ConnectionState
from notification_sync.schemas.notification import (
    Notification,
    NotificationPage,
    NotificationPreferences,
)


@dataclass(frozen=True)
class Snapshot:
    notifications: tuple[Notification, ...]
    unread_count: int


class NotificationState:
    def __init__(self) -> None:
        self._notifications: list[Notification] = []
        self._unread_count = 0
        self._version = 0
        self.connection_state = ConnectionState.DISCONNECTED
        self.preferences: Optional[NotificationPreferences] = None
        self.error: Optional[str] = None
        self.is_loading = False

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    @property
    def unread_count(self) -> int:
        return self._unread_count

    @property
    def version(self) -> int:
        """Incremented whenever the notification list changes."""
        return self._version

    @property
    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED

    def local_unread_count(self) -> int:
        return sum(1 for item in self._notifications if not item.is_read)

    def index_of(self, notification_id: int) -> Optional[int]:
        for index, item in enumerate(self._notifications):
            if item.id == notification_id:
                return index
        return None

    def get(self, notification_id: int) -> Optional[Notification]:
        index = self.index_of(notification_id)
        return None if index is None else self._notifications[index]

    def _touch(self) -> None:
        self._version += 1

    def replace(self, page: NotificationPage) -> None:
        self._notifications = list(page.notifications)
        self._unread_count = max(0, page.unread_count)
        self._touch()

    def set_unread_count(self, count: int) -> None:
        self._unread_count = max(0, count)

    def mark_read(self, notification_id: int) -> bool:
        """Flip one entry to read. Returns False when nothing changed."""
        index = self.index_of(notification_id)
        if index is None:
            return False
        current = self._notifications[index]
        if current.is_read:
            return False
        self._notifications[index] = current.as_read()
        self._unread_count = max(0, self._unread_count - 1)
        self._touch()
        return True

    def mark_all_read(self) -> None:
        self._notifications = [item.as_read() for item in self._notifications]
        self._unread_count = 0
        self._touch()

    def remove(self, notification_id: int) -> Optional[tuple[int, Notification]]:
        index = self.index_of(notification_id)
        if index is None:
            return None
        removed = self._notifications.pop(index)
        if not removed.is_read:
            self._unread_count = max(0, self._unread_count - 1)
        self._touch()
        return index, removed

    def reinsert(
        self,
        notification: Notification,
        *,
        after_id: Optional[int] = None,
        before_id: Optional[int] = None,
    ) -> None:
        """Put a removed entry back between the neighbours it had when it was removed.

        Entries pushed in the meantime shift positions, so the neighbours are
        located by id. Without either neighbour the entry is placed by age.
        """
        if self.index_of(notification.id) is not None:
            return
        index = None
        if after_id is not None:
            anchor = self.index_of(after_id)
            if anchor is not None:
                index = anchor + 1
        if index is None and before_id is not None:
            index = self.index_of(before_id)
        if index is None:
            index = next(
                (
                    position
                    for position, item in enumerate(self._notifications)
                    if item.created_at < notification.created_at
                ),
                len(self._notifications),
            )
        self._notifications.insert(index, notification)
        if not notification.is_read:
            self._unread_count += 1
        self._touch()

    def prepend(self, notification: Notification) -> bool:
        # Pushes only create entries; an id already present came from a racing load.
        if self.index_of(notification.id) is not None:
            return False
        self._notifications.insert(0, notification)
        if not notification.is_read:
            self._unread_count += 1
        self._touch()
        return True

    def snapshot(self) -> Snapshot:
        return Snapshot(notifications=tuple(self._notifications), unread_count=self._unread_count)

    def restore(self, snapshot: Snapshot) -> None:
        self._notifications = list(snapshot.notifications)
        self._unread_count = snapshot.unread_count
        self._touch()

    def clear(self) -> None:
        self._notifications = []
        self._unread_count = 0
        self.preferences = None
        self.error = None
        self.is_loading = False
        self._touch()
