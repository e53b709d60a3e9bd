from notification_sync.schemas.notification import Notification, NotificationPage
from notification_sync.services.notification_state import NotificationState
from tests.support import make_notification


def _item(notification_id, **kwargs) -> Notification:
    return Notification.model_validate(make_notification(notification_id, **kwargs))


def _loaded(*items, unread_count=None) -> NotificationState:
    state = NotificationState()
    if unread_count is None:
        unread_count = sum(1 for item in items if not item.is_read)
    state.replace(NotificationPage(notifications=list(items), unread_count=unread_count))
    return state


def test_replace_is_a_full_replace():
    state = _loaded(_item(1), _item(2))
    state.replace(NotificationPage(notifications=[_item(3, is_read=True)], unread_count=0))

    assert [item.id for item in state.notifications] == [3]
    assert state.unread_count == 0


def test_mark_read_only_counts_unread_entries():
    state = _loaded(_item(1), _item(2, is_read=True))

    assert state.mark_read(1) is True
    assert state.mark_read(1) is False
    assert state.mark_read(2) is False
    assert state.mark_read(99) is False
    assert state.unread_count == 0


def test_mark_read_never_goes_negative():
    state = _loaded(_item(1), unread_count=0)

    state.mark_read(1)

    assert state.unread_count == 0


def test_mark_all_read():
    state = _loaded(_item(1), _item(2), _item(3, is_read=True))
    version = state.version

    state.mark_all_read()

    assert all(item.is_read for item in state.notifications)
    assert state.unread_count == 0
    assert state.version == version + 1


def test_remove_adjusts_count_for_unread_only():
    state = _loaded(_item(1), _item(2, is_read=True))

    assert state.remove(2)[0] == 1
    assert state.unread_count == 1
    index, removed = state.remove(1)
    assert (index, removed.id) == (0, 1)
    assert state.unread_count == 0
    assert state.remove(1) is None


def test_prepend_keeps_arrival_order_without_sorting():
    state = NotificationState()
    for notification_id, minutes in ((1, 30), (2, 10), (3, 20)):
        state.prepend(_item(notification_id, minutes=minutes))

    assert [item.id for item in state.notifications] == [3, 2, 1]
    assert state.unread_count == 3


def test_prepend_ignores_known_ids():
    state = _loaded(_item(1))

    assert state.prepend(_item(1)) is False
    assert state.unread_count == 1


def test_snapshot_restore_round_trip():
    state = _loaded(_item(1), _item(2))
    snapshot = state.snapshot()

    state.remove(1)
    state.restore(snapshot)

    assert [item.id for item in state.notifications] == [1, 2]
    assert state.unread_count == 2


def test_reinsert_puts_entry_back_in_place():
    state = _loaded(_item(1), _item(2), _item(3))
    _, removed = state.remove(2)

    state.reinsert(removed, after_id=1, before_id=3)

    assert [item.id for item in state.notifications] == [1, 2, 3]
    assert state.unread_count == 3


def test_clear_drops_everything_but_connection_state():
    state = _loaded(_item(1))
    state.error = 'boom'

    state.clear()

    assert state.notifications == ()
    assert state.unread_count == 0
    assert state.error is None
    assert state.preferences is None


def test_reinsert_follows_neighbours_after_prepend():
    state = _loaded(_item(1, minutes=2), _item(2, minutes=1))
    _, removed = state.remove(2)
    state.prepend(_item(9, minutes=10))

    state.reinsert(removed, after_id=1)

    assert [item.id for item in state.notifications] == [9, 1, 2]
    assert state.unread_count == 3


def test_reinsert_without_neighbours_places_by_age():
    state = _loaded(_item(1, minutes=3), _item(2, minutes=2), _item(3, minutes=1))
    _, removed = state.remove(2)
    state.remove(1)
    state.remove(3)
    state.prepend(_item(4, minutes=0))
    state.prepend(_item(9, minutes=10))

    state.reinsert(removed, after_id=1, before_id=3)

    assert [item.id for item in state.notifications] == [9, 2, 4]
    assert state.unread_count == state.local_unread_count()
