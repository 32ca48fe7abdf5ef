"""Data models for the watch-list payload."""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

logger = logging.getLogger(__name__)


class AiringStatus(str, Enum):
    """Release status of an anime."""

    FINISHED = "FINISHED"
    RELEASING = "RELEASING"
    NOT_YET_RELEASED = "NOT_YET_RELEASED"
    CANCELLED = "CANCELLED"
    HIATUS = "HIATUS"


class WatchStatus(str, Enum):
    """User's watch status for an anime."""

    WATCHING = "watching"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    DROPPED = "dropped"
    PLAN_TO_WATCH = "plan_to_watch"


class RelationKind(str, Enum):
    """Relation kinds the reconciler understands."""

    PREQUEL = "PREQUEL"
    SEQUEL = "SEQUEL"


class ImportStatus(str, Enum):
    """Import state of the whole list on the backend."""

    IMPORTING = "importing"
    UPDATING = "updating"
    IMPORTED = "imported"


def _upper(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().upper().replace("-", "_").replace(" ", "_")
    return value


def _lower(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower().replace("-", "_").replace(" ", "_")
    return value


class Anime(BaseModel):
    """Catalog entry for an anime. Read-only on the client."""

    id: int
    romaji_title: Optional[str] = None
    english_title: Optional[str] = None
    status: AiringStatus
    picture: str = ""
    season: Optional[str] = None
    season_year: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return _upper(v)

    @property
    def title(self) -> str:
        return self.romaji_title or self.english_title or f"#{self.id}"


ANIME_FIELDS = tuple(Anime.model_fields)


class ListEntry(BaseModel):
    """A user's list entry for one anime."""

    anime_id: int
    watch_status: WatchStatus = Field(
        validation_alias=AliasChoices("watch_status", "status"),
    )
    watch_priority: int = Field(default=0, ge=0)

    @field_validator("watch_status", mode="before")
    @classmethod
    def normalize_watch_status(cls, v):
        return _lower(v)

    @field_validator("watch_priority", mode="before")
    @classmethod
    def default_priority(cls, v):
        return 0 if v is None else v


class Relation(BaseModel):
    """Directed prequel/sequel edge between two anime."""

    anime_id: int
    related_id: int = Field(validation_alias=AliasChoices("related_id", "relation_id"))
    kind: RelationKind = Field(validation_alias=AliasChoices("kind", "relation"))

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v):
        return _upper(v)


def _relation_kind(item: Any) -> Any:
    if isinstance(item, Relation):
        return item.kind.value
    if isinstance(item, dict):
        return _upper(item.get("kind", item.get("relation")))
    return None


def _embedded_anime(rel: dict) -> Optional[Anime]:
    """Catalog entry of the related anime in a nested relation, if it has one."""
    if _relation_kind(rel) not in {kind.value for kind in RelationKind}:
        return None
    anime_id = rel.get("id", rel.get("relation_id", rel.get("related_id")))
    if anime_id is None or rel.get("status") is None:
        return None
    fields = {key: rel[key] for key in ANIME_FIELDS if key in rel}
    fields["id"] = anime_id
    try:
        return Anime.model_validate(fields)
    except ValidationError as e:
        logger.warning(f"Skipping malformed related anime {anime_id}: {e.error_count()} error(s)")
        return None


class ListPayload(BaseModel):
    """Full list fetch: catalog entries, list entries and relations."""

    animes: list[Anime] = Field(default_factory=list)
    list_entries: list[ListEntry] = Field(
        default_factory=list,
        validation_alias=AliasChoices("list_entries", "list_status"),
    )
    relations: list[Relation] = Field(default_factory=list)
    import_status: ImportStatus = Field(
        default=ImportStatus.IMPORTED,
        validation_alias=AliasChoices("import_status", "status"),
    )

    @model_validator(mode="before")
    @classmethod
    def hoist_embedded_relations(cls, data):
        """Accept relations nested under each anime as ``relation``.

        Each nested relation also carries the related anime's catalog
        fields; related anime missing from ``animes`` are added from them.
        """
        if not isinstance(data, dict):
            return data
        animes = list(data.get("animes") or [])
        known_ids = {a.get("id") if isinstance(a, dict) else getattr(a, "id", None) for a in animes}
        embedded = []
        related = []
        for anime in animes:
            if isinstance(anime, dict) and isinstance(anime.get("relation"), list):
                for rel in anime["relation"]:
                    if not isinstance(rel, dict):
                        continue
                    embedded.append({"anime_id": anime.get("id"), **rel})
                    related_anime = _embedded_anime(rel)
                    if related_anime is not None and related_anime.id not in known_ids:
                        known_ids.add(related_anime.id)
                        related.append(related_anime)
        if embedded:
            data = dict(data)
            data["relations"] = list(data.get("relations") or []) + embedded
            data["animes"] = animes + related
        return data

    @field_validator("relations", mode="before")
    @classmethod
    def drop_other_relation_kinds(cls, v):
        """Side stories, summaries and truncated edges are not reconciled."""
        if v is None:
            return []
        known = {kind.value for kind in RelationKind}
        relations = []
        for item in v:
            if _relation_kind(item) not in known:
                continue
            if isinstance(item, Relation):
                relations.append(item)
                continue
            try:
                relations.append(Relation.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed relation {item!r}: {e.error_count()} error(s)")
        return relations

    @field_validator("import_status", mode="before")
    @classmethod
    def normalize_import_status(cls, v):
        return ImportStatus.IMPORTED if v is None else _lower(v)


class CurrentUser(BaseModel):
    """Authenticated user returned by the session check."""

    id: str
    name: str
    mal_id: Optional[int] = None
    picture: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v):
        return str(v) if isinstance(v, int) else v


class WatchListBuckets(BaseModel):
    """Classification buckets derived from a payload (anime ids)."""

    watching_released: list[int] = Field(default_factory=list)
    watching_releasing: list[int] = Field(default_factory=list)
    sequel_not_in_list: list[int] = Field(default_factory=list)
    upcoming_sequels: list[int] = Field(default_factory=list)
    unwatched_prequel: list[int] = Field(default_factory=list)
