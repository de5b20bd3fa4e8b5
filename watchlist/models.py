"""Pydantic models describing watchlist payloads."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class WatchStatus(str, Enum):
    """Viewing progress of a show for a single profile."""

    NOT_WATCHED = "NOT_WATCHED"
    WATCHING = "WATCHING"
    WATCHED = "WATCHED"

    @property
    def rank(self) -> int:
        """Return the display rank; unwatched shows are listed first."""

        return _WATCH_STATUS_RANK[self]

    @classmethod
    def parse(cls, value: object) -> "WatchStatus | None":
        """Return the matching status or ``None`` for blank/unknown input."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        cleaned = value.strip().upper().replace("-", "_").replace(" ", "_")
        if not cleaned:
            return None
        try:
            return cls(cleaned)
        except ValueError:
            return None


_WATCH_STATUS_RANK = {
    WatchStatus.NOT_WATCHED: 1,
    WatchStatus.WATCHING: 2,
    WatchStatus.WATCHED: 3,
}


def _split_labels(value: object) -> object:
    """Accept label collections as lists or comma separated strings."""

    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple, set, frozenset)):
        labels: list[str] = []
        for entry in value:
            label = str(entry).strip()
            if label and label not in labels:
                labels.append(label)
        return tuple(labels)
    return value


class Show(BaseModel):
    """A show on a profile's watchlist.

    Everything except ``watch_status`` and ``favorite`` is fixed once the show
    has been fetched; those two fields change through explicit actions.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    show_id: int = Field(validation_alias=AliasChoices("show_id", "showId", "id"))
    title: str
    genres: tuple[str, ...] = ()
    streaming_services: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("streaming_services", "streamingServices"),
    )
    watch_status: WatchStatus = Field(
        default=WatchStatus.NOT_WATCHED,
        validation_alias=AliasChoices("watch_status", "watchStatus"),
    )
    favorite: bool = False
    description: str | None = None
    release_date: str | None = None
    image: str | None = None
    user_rating: float | None = None
    tv_parental_guidelines: str | None = None
    season_count: int | None = None
    episode_count: int | None = None

    @field_validator("genres", "streaming_services", mode="before")
    @classmethod
    def _parse_labels(cls, value: object) -> object:
        return _split_labels(value)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON payload served by the REST API."""

        return self.model_dump(mode="json")


class Profile(BaseModel):
    """A household member belonging to an account."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    account_id: int | None = Field(
        default=None, validation_alias=AliasChoices("account_id", "accountId")
    )
    name: str
    image: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ProfileNameRequest(BaseModel):
    """Body accepted when creating or renaming a profile."""

    name: str = Field(min_length=1, max_length=120)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class FavoriteRequest(BaseModel):
    """Body accepted when adding a show to a profile's favorites."""

    model_config = ConfigDict(populate_by_name=True)

    show_id: int = Field(validation_alias=AliasChoices("show_id", "showId", "id"))


class WatchStatusRequest(BaseModel):
    """Body accepted when changing a show's watch status."""

    model_config = ConfigDict(populate_by_name=True)

    show_id: int = Field(validation_alias=AliasChoices("show_id", "showId", "id"))
    status: WatchStatus = Field(
        validation_alias=AliasChoices("status", "watch_status", "watchStatus")
    )

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, value: object) -> object:
        parsed = WatchStatus.parse(value)
        if parsed is None:
            raise ValueError("status must be one of NOT_WATCHED, WATCHING, WATCHED")
        return parsed
