"""Tests for the list view (local order, refresh suppression, save)."""

import threading

import pytest

from conftest import FakeClient, make_payload
from mal_watchlist.errors import (
    FetchError,
    ListNotReadyError,
    SaveError,
    SaveInProgressError,
)
from mal_watchlist.view import WatchListView


@pytest.fixture
def view(fake_client):
    view = WatchListView(fake_client)
    view.refresh()
    return view


def test_refresh_derives_order(view):
    """The initial order is the active bucket in priority order."""
    assert view.order == [1, 2, 3, 4]
    assert view.pending is False
    assert view.has_unsaved_changes is False
    assert view.buckets.watching_releasing == [2]


def test_move_marks_unsaved(view):
    """A reorder changes the local order only."""
    view.move(4, 1)

    assert view.order == [4, 1, 2, 3]
    assert view.has_unsaved_changes is True
    assert view.client.saved == []


def test_noop_move(view):
    """Moving onto itself changes nothing."""
    view.move(2, 2)

    assert view.order == [1, 2, 3, 4]
    assert view.has_unsaved_changes is False


def test_refresh_keeps_unsaved_order(view):
    """A background refetch does not overwrite pending edits."""
    view.move(4, 1)

    replaced = view.refresh()

    assert replaced is False
    assert view.order == [4, 1, 2, 3]
    assert view.client.fetch_count == 2


def test_forced_refresh_replaces_order(view):
    """A forced refresh goes back to the server order."""
    view.move(4, 1)

    assert view.refresh(force=True) is True
    assert view.order == [1, 2, 3, 4]


def test_save_persists_and_refetches(view):
    """Saving posts the order and re-fetches the list."""
    view.move(4, 1)

    view.save()

    assert view.client.saved == [[4, 1, 2, 3]]
    assert view.client.fetch_count == 2
    assert view.order == [4, 1, 2, 3]
    assert view.has_unsaved_changes is False
    assert view.pending is False


def test_save_is_repeatable(view):
    """Submitting the same order twice is safe."""
    view.move(3, 1)
    view.save()
    view.save()

    assert view.client.saved == [[3, 1, 2, 4], [3, 1, 2, 4]]
    assert view.order == [3, 1, 2, 4]


def test_failed_save_keeps_local_order(view):
    """A failed save keeps the edits so the user can retry."""
    view.client.fail_save = True
    view.move(4, 1)

    with pytest.raises(SaveError):
        view.save()

    assert view.order == [4, 1, 2, 3]
    assert view.has_unsaved_changes is True
    assert view.saving is False


def test_concurrent_save_is_refused(view):
    """A second save while one is in flight is rejected."""
    view._save_lock.acquire()
    try:
        with pytest.raises(SaveInProgressError):
            view.save()
    finally:
        view._save_lock.release()

    assert view.client.saved == []


def test_reorder_refused_while_importing():
    """Reordering is disabled until the import finishes."""
    payload = make_payload(
        animes=[(1, "FINISHED"), (2, "FINISHED")],
        entries=[(1, "watching", 1), (2, "watching", 2)],
        import_status="importing",
    )
    view = WatchListView(FakeClient(payload))
    view.refresh()

    with pytest.raises(ListNotReadyError):
        view.move(2, 1)
    with pytest.raises(ListNotReadyError):
        view.save()


def test_move_before_load():
    """Nothing can be reordered before the first fetch."""
    view = WatchListView(FakeClient(make_payload()))

    with pytest.raises(ListNotReadyError):
        view.bring_to_front(1)


def test_bring_to_front(view):
    """Bring to front moves the anime to the head of the order."""
    view.bring_to_front(3)

    assert view.order == [3, 1, 2, 4]
    assert view.has_unsaved_changes is True


def test_discard(view):
    """Discard restores the server order."""
    view.move(4, 1)

    view.discard()

    assert view.order == [1, 2, 3, 4]
    assert view.has_unsaved_changes is False


def test_can_leave(view):
    """Navigation asks for confirmation only with unsaved edits."""
    asked = []

    def confirm():
        asked.append(True)
        return False

    assert view.can_leave(confirm) is True
    assert asked == []

    view.move(4, 1)

    assert view.can_leave(confirm) is False
    assert view.can_leave(lambda: True) is True
    assert asked == [True]


def test_refresh_error_propagates(view):
    """Fetch failures reach the caller; the previous state is kept."""
    view.client.fetch_error = FetchError("HTTP 503", status_code=503)

    with pytest.raises(FetchError):
        view.refresh()

    assert view.order == [1, 2, 3, 4]


def test_edits_are_serialized(view):
    """A move waits for an in-progress edit to finish."""
    view._edit_lock.acquire()
    worker = threading.Thread(target=view.move, args=(4, 1))
    try:
        worker.start()
        worker.join(timeout=0.2)

        assert worker.is_alive()
        assert view.order == [1, 2, 3, 4]
    finally:
        view._edit_lock.release()
    worker.join(timeout=5)

    assert not worker.is_alive()
    assert view.order == [4, 1, 2, 3]


def test_concurrent_moves_keep_a_permutation(view):
    """Parallel edits never lose or duplicate an anime."""
    threads = [
        threading.Thread(target=view.bring_to_front, args=(anime_id,))
        for anime_id in [4, 3, 2, 1] * 25
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(view.order) == [1, 2, 3, 4]
