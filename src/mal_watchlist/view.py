"""List view state: the locally editable order for one page view."""

import logging
import threading
from typing import Callable, Optional

from .errors import ListNotReadyError, SaveError, SaveInProgressError
from .models import ImportStatus, ListPayload, WatchListBuckets
from .reconciler import WatchListReconciler, bring_to_front, reorder

logger = logging.getLogger(__name__)


class WatchListView:
    """Owns the current order for one view of the list.

    The order is derived from the server payload on load and on refresh.
    Once the user edits it, it stays authoritative until a save completes
    or the edits are discarded.
    """

    def __init__(self, client):
        """Initialize the view with a WatchListClient (or anything shaped like one)."""
        self.client = client
        self.payload: Optional[ListPayload] = None
        self.reconciler: Optional[WatchListReconciler] = None
        self.buckets = WatchListBuckets()
        self.order: list[int] = []
        self._edited = False
        self._save_lock = threading.Lock()
        self._edit_lock = threading.Lock()

    @property
    def import_status(self) -> Optional[ImportStatus]:
        return self.payload.import_status if self.payload else None

    @property
    def pending(self) -> bool:
        """True when the local order differs from the persisted priorities."""
        if self.reconciler is None:
            return False
        return self.reconciler.has_pending_changes(self.order)

    @property
    def has_unsaved_changes(self) -> bool:
        """True when the user edited the order and it differs from the server."""
        return self._edited and self.pending

    @property
    def saving(self) -> bool:
        return self._save_lock.locked()

    def refresh(self, force: bool = False) -> bool:
        """Fetch the list and recompute buckets.

        The local order is only replaced when the user has no unsaved edits,
        or when ``force`` is set. Returns True if the order was replaced.
        """
        payload = self.client.fetch_list()
        reconciler = WatchListReconciler(payload)
        buckets = reconciler.classify()

        with self._edit_lock:
            self.payload = payload
            self.reconciler = reconciler
            self.buckets = buckets

            if self.has_unsaved_changes and not force:
                logger.info("Unsaved reorder pending, keeping local order")
                return False

            self.order = reconciler.active_order()
            self._edited = False
            return True

    def _require_ready(self) -> None:
        if self.payload is None:
            raise ListNotReadyError("List has not been loaded yet")
        if self.payload.import_status != ImportStatus.IMPORTED:
            raise ListNotReadyError(
                f"List is {self.payload.import_status.value}, reordering is disabled"
            )

    def move(self, moved_id: int, target_id: int) -> list[int]:
        """Move ``moved_id`` into ``target_id``'s position."""
        self._require_ready()
        with self._edit_lock:
            updated = reorder(self.order, moved_id, target_id)
            if updated != self.order:
                logger.debug(f"Moved {moved_id} to the position of {target_id}")
                self.order = updated
                self._edited = True
            return list(self.order)

    def bring_to_front(self, anime_id: int) -> list[int]:
        self._require_ready()
        with self._edit_lock:
            updated = bring_to_front(self.order, anime_id)
            if updated != self.order:
                self.order = updated
                self._edited = True
            return list(self.order)

    def discard(self) -> list[int]:
        """Drop local edits and go back to the server order."""
        with self._edit_lock:
            if self.reconciler is not None:
                self.order = self.reconciler.active_order()
            self._edited = False
            return list(self.order)

    def save(self) -> list[int]:
        """Persist the current order, then re-fetch.

        Raises SaveInProgressError if a save is already running, and
        SaveError if the backend rejects it (the local order is kept).
        """
        self._require_ready()
        if not self._save_lock.acquire(blocking=False):
            raise SaveInProgressError("A save is already in progress")

        try:
            with self._edit_lock:
                ids = list(self.order)
            try:
                self.client.save_order(ids)
            except SaveError:
                logger.warning("Save failed, local order kept for retry")
                raise
        finally:
            self._save_lock.release()

        self.refresh(force=True)
        return self.order

    def can_leave(self, confirm: Callable[[], bool]) -> bool:
        """Navigation gate: asks ``confirm`` only when edits are unsaved."""
        if self.has_unsaved_changes:
            return bool(confirm())
        return True
