"""Filtering and ordering of a profile's show list."""

from __future__ import annotations

import re
from typing import Iterable, Mapping, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .models import Show, WatchStatus

LEADING_ARTICLE_RE = re.compile(r"^(the|a|an)\s+", re.IGNORECASE)


class FilterSpec(BaseModel):
    """Optional constraints on the genre, streaming service and status axes.

    Values come from URL query parameters, so anything unusable is treated as
    "no constraint" instead of being rejected.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    genre: str | None = None
    streaming_service: str | None = Field(
        default=None,
        validation_alias=AliasChoices("streaming_service", "streamingService"),
    )
    watch_status: WatchStatus | None = Field(
        default=None,
        validation_alias=AliasChoices("watch_status", "watchStatus"),
    )

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "FilterSpec":
        return cls.model_validate(dict(params))

    @field_validator("genre", "streaming_service", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if not isinstance(value, str):
            return None
        stripped = value.strip()
        return stripped or None

    @field_validator("watch_status", mode="before")
    @classmethod
    def _parse_status(cls, value: object) -> object:
        return WatchStatus.parse(value)

    def is_empty(self) -> bool:
        return not (self.genre or self.streaming_service or self.watch_status)


def strip_article(title: str) -> str:
    """Drop a leading "The", "A" or "An" so titles sort by their first real word."""

    stripped = (title or "").strip()
    return LEADING_ARTICLE_RE.sub("", stripped, count=1)


def sort_key(show: Show) -> tuple[int, str]:
    return show.watch_status.rank, strip_article(show.title).casefold()


def matches(show: Show, spec: FilterSpec) -> bool:
    """Return whether the show satisfies every constrained axis."""

    if spec.genre and spec.genre not in show.genres:
        return False
    if spec.streaming_service and spec.streaming_service not in show.streaming_services:
        return False
    if spec.watch_status and show.watch_status is not spec.watch_status:
        return False
    return True


def apply_filters(shows: Iterable[Show], spec: FilterSpec | None = None) -> list[Show]:
    """Return the filtered shows ordered by watch status then title.

    The input is never modified. ``sorted`` is stable, so shows with equal
    keys keep their original relative order.
    """

    spec = spec or FilterSpec()
    ordered = sorted(shows, key=sort_key)
    if spec.is_empty():
        return ordered
    return [show for show in ordered if matches(show, spec)]


def derive_facets(shows: Sequence[Show]) -> tuple[frozenset[str], frozenset[str]]:
    """Return the distinct genre and streaming-service labels across shows."""

    genres: set[str] = set()
    services: set[str] = set()
    for show in shows:
        genres.update(show.genres)
        services.update(show.streaming_services)
    return frozenset(genres), frozenset(services)
