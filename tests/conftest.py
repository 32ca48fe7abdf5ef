"""Shared fixtures: payload builders and an in-memory backend."""

import pytest

from mal_watchlist.errors import SaveError
from mal_watchlist.models import CurrentUser, ListEntry, ListPayload


def make_payload(animes=(), entries=(), relations=(), import_status="imported") -> ListPayload:
    """Build a payload from short tuples.

    animes: (id, status) ; entries: (anime_id, watch_status, priority) ;
    relations: (anime_id, related_id, kind)
    """
    return ListPayload.model_validate(
        {
            "animes": [
                {"id": anime_id, "status": status, "romaji_title": f"Anime {anime_id}"}
                for anime_id, status in animes
            ],
            "list_entries": [
                {"anime_id": anime_id, "watch_status": watch, "watch_priority": priority}
                for anime_id, watch, priority in entries
            ],
            "relations": [
                {"anime_id": a, "related_id": b, "kind": kind} for a, b, kind in relations
            ],
            "import_status": import_status,
        }
    )


class FakeClient:
    """In-memory stand-in for WatchListClient.

    save_order assigns priority i + 1 to each saved id, like the backend.
    """

    def __init__(self, payload: ListPayload):
        self.payload = payload
        self.saved = []
        self.fetch_count = 0
        self.fail_save = False
        self.fetch_error = None
        self.user = CurrentUser(id="u1", name="tester", mal_id=42)

    def fetch_list(self) -> ListPayload:
        self.fetch_count += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.payload.model_copy(deep=True)

    def fetch_anime(self, anime_id: int) -> ListPayload:
        return self.payload.model_copy(deep=True)

    def get_current_user(self) -> CurrentUser:
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.user

    def save_order(self, ids):
        if self.fail_save:
            raise SaveError("Saving list order failed with HTTP 500", status_code=500)
        self.saved.append(list(ids))
        priorities = {anime_id: index + 1 for index, anime_id in enumerate(ids)}
        entries = []
        for entry in self.payload.list_entries:
            if entry.anime_id in priorities:
                entry = ListEntry(
                    anime_id=entry.anime_id,
                    watch_status=entry.watch_status,
                    watch_priority=priorities[entry.anime_id],
                )
            entries.append(entry)
        self.payload = self.payload.model_copy(update={"list_entries": entries})

    def login_url(self) -> str:
        return "http://backend.test/oauth/mal/redirect"


@pytest.fixture
def payload() -> ListPayload:
    """Four finished/releasing anime in the list, one completed, with relations."""
    return make_payload(
        animes=[
            (1, "FINISHED"),
            (2, "RELEASING"),
            (3, "FINISHED"),
            (4, "FINISHED"),
            (5, "FINISHED"),
            (6, "NOT_YET_RELEASED"),
        ],
        entries=[
            (1, "watching", 1),
            (2, "watching", 2),
            (3, "plan_to_watch", 3),
            (4, "on_hold", 4),
            (5, "completed", 5),
        ],
        relations=[
            (5, 6, "SEQUEL"),
            (4, 5, "PREQUEL"),
        ],
    )


@pytest.fixture
def fake_client(payload) -> FakeClient:
    return FakeClient(payload)
