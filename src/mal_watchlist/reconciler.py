"""Watch-list reconciliation: classification buckets and list ordering.

Everything in this module is pure. Missing cross references (a list entry
whose anime is absent, a relation pointing at an unknown anime) resolve to
"not found" and never raise.
"""

import logging
from typing import Iterable, Optional

from .models import (
    AiringStatus,
    ListEntry,
    ListPayload,
    Relation,
    RelationKind,
    WatchListBuckets,
    WatchStatus,
)

logger = logging.getLogger(__name__)

UPCOMING_STATUSES = (AiringStatus.RELEASING, AiringStatus.NOT_YET_RELEASED)


def entry_lookup(entries: Iterable[ListEntry]) -> dict[int, ListEntry]:
    """Map anime id to its list entry. Later duplicates win."""
    return {entry.anime_id: entry for entry in entries}


def _unique(ids: Iterable[int]) -> list[int]:
    seen = set()
    result = []
    for anime_id in ids:
        if anime_id not in seen:
            seen.add(anime_id)
            result.append(anime_id)
    return result


def prequels_of(anime_id: int, relations: Iterable[Relation]) -> list[int]:
    """Ids of every prequel of ``anime_id``, using edges in either direction."""
    found = []
    for rel in relations:
        if rel.kind == RelationKind.PREQUEL and rel.anime_id == anime_id:
            found.append(rel.related_id)
        elif rel.kind == RelationKind.SEQUEL and rel.related_id == anime_id:
            found.append(rel.anime_id)
    return _unique(found)


def sequels_of(anime_id: int, relations: Iterable[Relation]) -> list[int]:
    """Ids of every sequel of ``anime_id``, using edges in either direction."""
    found = []
    for rel in relations:
        if rel.kind == RelationKind.SEQUEL and rel.anime_id == anime_id:
            found.append(rel.related_id)
        elif rel.kind == RelationKind.PREQUEL and rel.related_id == anime_id:
            found.append(rel.anime_id)
    return _unique(found)


def has_not_watched_prequel(
    anime_id: int,
    relations: Iterable[Relation],
    lookup: dict[int, ListEntry],
) -> bool:
    """True if any prequel of ``anime_id`` is not completed.

    A prequel without a list entry was never added and counts as not
    watched. An anime without prequels returns False.
    """
    for prequel_id in prequels_of(anime_id, relations):
        entry = lookup.get(prequel_id)
        if entry is None or entry.watch_status != WatchStatus.COMPLETED:
            return True
    return False


def default_order(entries: Iterable[ListEntry]) -> list[int]:
    """Anime ids sorted by watch priority, unset (0) priorities last."""
    ordered = sorted(
        entries,
        key=lambda e: (e.watch_priority == 0, e.watch_priority, e.anime_id),
    )
    return _unique(e.anime_id for e in ordered)


def reorder(order: list[int], moved_id: int, target_id: int) -> list[int]:
    """Move ``moved_id`` into the position ``target_id`` held.

    Remove-and-reinsert, not a swap: entries in between shift by one.
    Returns an unchanged copy when the ids are equal or either is unknown.
    """
    if moved_id == target_id or moved_id not in order or target_id not in order:
        return list(order)

    from_index = order.index(moved_id)
    to_index = order.index(target_id)
    updated = list(order)
    updated.insert(to_index, updated.pop(from_index))
    return updated


def bring_to_front(order: list[int], anime_id: int) -> list[int]:
    """Move ``anime_id`` to the first position."""
    if not order:
        return []
    return reorder(order, anime_id, order[0])


def has_pending_changes(
    order: list[int],
    entries: Iterable[ListEntry] | dict[int, ListEntry],
) -> bool:
    """True if the order differs from the persisted priorities.

    Position ``i`` expects priority ``i + 1``; an id without a list entry
    has no persisted priority and is always pending.
    """
    lookup = entries if isinstance(entries, dict) else entry_lookup(entries)
    for index, anime_id in enumerate(order):
        entry = lookup.get(anime_id)
        if entry is None or entry.watch_priority != index + 1:
            return True
    return False


class WatchListReconciler:
    """Derives buckets and the editable order from one list payload."""

    def __init__(self, payload: ListPayload):
        self.payload = payload
        self.lookup = entry_lookup(payload.list_entries)
        self.animes = {anime.id: anime for anime in payload.animes}
        self.relations = payload.relations

    def entry_for(self, anime_id: int) -> Optional[ListEntry]:
        return self.lookup.get(anime_id)

    def _watching_with_status(self, status: AiringStatus) -> list[int]:
        ids = []
        for anime_id in default_order(self.payload.list_entries):
            anime = self.animes.get(anime_id)
            if anime is None or anime.status != status:
                continue
            if self.lookup[anime_id].watch_status != WatchStatus.COMPLETED:
                ids.append(anime_id)
        return ids

    def watching_released(self) -> list[int]:
        """Finished anime in the list that are not completed."""
        return self._watching_with_status(AiringStatus.FINISHED)

    def watching_releasing(self) -> list[int]:
        """Releasing anime in the list that are not completed."""
        return self._watching_with_status(AiringStatus.RELEASING)

    def _sequel_targets(self) -> list[int]:
        # Every anime in the payload is a source, with or without a list entry
        sources = _unique([*self.lookup, *self.animes])
        targets = []
        for anime_id in sources:
            targets.extend(sequels_of(anime_id, self.relations))
        return _unique(targets)

    def sequel_not_in_list(self) -> list[int]:
        """Sequels of anime in the payload that have no list entry."""
        return [i for i in self._sequel_targets() if i not in self.lookup]

    def upcoming_sequels(self) -> list[int]:
        """Sequels still releasing or not yet released, not being watched."""
        ids = []
        for anime_id in self._sequel_targets():
            anime = self.animes.get(anime_id)
            if anime is None or anime.status not in UPCOMING_STATUSES:
                continue
            entry = self.lookup.get(anime_id)
            if entry is not None and entry.watch_status == WatchStatus.WATCHING:
                continue
            ids.append(anime_id)
        return ids

    def has_not_watched_prequel(self, anime_id: int) -> bool:
        return has_not_watched_prequel(anime_id, self.relations, self.lookup)

    def unwatched_prequel(self) -> list[int]:
        """Listed anime with at least one prequel that is not completed."""
        return [
            anime_id
            for anime_id in default_order(self.payload.list_entries)
            if self.has_not_watched_prequel(anime_id)
        ]

    def classify(self) -> WatchListBuckets:
        buckets = WatchListBuckets(
            watching_released=self.watching_released(),
            watching_releasing=self.watching_releasing(),
            sequel_not_in_list=self.sequel_not_in_list(),
            upcoming_sequels=self.upcoming_sequels(),
            unwatched_prequel=self.unwatched_prequel(),
        )
        logger.debug(
            f"Classified {len(self.payload.list_entries)} entries: "
            f"released={len(buckets.watching_released)}, "
            f"releasing={len(buckets.watching_releasing)}, "
            f"sequels_missing={len(buckets.sequel_not_in_list)}, "
            f"upcoming={len(buckets.upcoming_sequels)}"
        )
        return buckets

    def active_order(self) -> list[int]:
        """Default order of the editable bucket (released + releasing, unwatched)."""
        active = set(self.watching_released()) | set(self.watching_releasing())
        return [i for i in default_order(self.payload.list_entries) if i in active]

    def has_pending_changes(self, order: list[int]) -> bool:
        return has_pending_changes(order, self.lookup)


def classify(payload: ListPayload) -> WatchListBuckets:
    """Classify a payload into buckets."""
    return WatchListReconciler(payload).classify()
