"""Client-side cache of each profile's shows and their filter facets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from .filters import derive_facets
from .models import Show, WatchStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProfileShowCacheEntry:
    """Complete show list for one profile plus the derived facet values."""

    shows: list[Show]
    genres: frozenset[str]
    streaming_services: frozenset[str]

    @classmethod
    def build(cls, shows: Iterable[Show]) -> "ProfileShowCacheEntry":
        show_list = [show.model_copy() for show in shows]
        genres, services = derive_facets(show_list)
        return cls(shows=show_list, genres=genres, streaming_services=services)

    def find(self, show_id: int) -> Show | None:
        for show in self.shows:
            if show.show_id == show_id:
                return show
        return None


class FetchGate:
    """Allow at most one outstanding show fetch per profile."""

    def __init__(self) -> None:
        self._in_flight: set[int] = set()

    def should_fetch(
        self, profile_id: int, current_entry: ProfileShowCacheEntry | None
    ) -> bool:
        """Return whether a fetch for the profile may be issued.

        This is a pure decision; use :meth:`begin` to decide and mark the
        profile as in flight in one step.
        """

        if current_entry is not None:
            return False
        return profile_id not in self._in_flight

    def begin(
        self, profile_id: int, current_entry: ProfileShowCacheEntry | None
    ) -> bool:
        if not self.should_fetch(profile_id, current_entry):
            return False
        self._in_flight.add(profile_id)
        return True

    def finish(self, profile_id: int) -> None:
        self._in_flight.discard(profile_id)

    def is_in_flight(self, profile_id: int) -> bool:
        return profile_id in self._in_flight

    def reset(self) -> None:
        self._in_flight.clear()


class ProfileShowStore:
    """Per-profile show cache owned by a single client session."""

    def __init__(
        self, initial: Mapping[int, ProfileShowCacheEntry] | None = None
    ) -> None:
        self._entries: dict[int, ProfileShowCacheEntry] = dict(initial or {})
        self._errors: dict[int, str] = {}

    def entry_for(self, profile_id: int) -> ProfileShowCacheEntry | None:
        return self._entries.get(profile_id)

    def entries(self) -> dict[int, ProfileShowCacheEntry]:
        """Return a shallow copy of every cached entry keyed by profile."""

        return dict(self._entries)

    def get_shows_for(self, profile_id: int) -> list[Show]:
        """Return copies of the cached shows; change them via the ``on_*`` hooks."""

        entry = self._entries.get(profile_id)
        if entry is None:
            return []
        return [show.model_copy() for show in entry.shows]

    def get_genres_for(self, profile_id: int) -> frozenset[str]:
        entry = self._entries.get(profile_id)
        return entry.genres if entry else frozenset()

    def get_streaming_services_for(self, profile_id: int) -> frozenset[str]:
        entry = self._entries.get(profile_id)
        return entry.streaming_services if entry else frozenset()

    def error_for(self, profile_id: int) -> str | None:
        """Return the message of the last failed fetch for the profile."""

        return self._errors.get(profile_id)

    def on_fetched(self, profile_id: int, shows: Iterable[Show]) -> None:
        self._entries[profile_id] = ProfileShowCacheEntry.build(shows)
        self._errors.pop(profile_id, None)

    def on_fetch_failed(self, profile_id: int, message: str) -> None:
        # No entry is created so the next request may try again.
        self._errors[profile_id] = message

    def on_watch_status_changed(
        self, profile_id: int, show_id: int, new_status: WatchStatus
    ) -> None:
        show = self._find(profile_id, show_id)
        if show is None:
            return
        show.watch_status = new_status

    def on_favorite_added(self, profile_id: int, show_id: int) -> None:
        show = self._find(profile_id, show_id)
        if show is None:
            return
        show.favorite = True

    def clear(self) -> None:
        self._entries.clear()
        self._errors.clear()

    def _find(self, profile_id: int, show_id: int) -> Show | None:
        entry = self._entries.get(profile_id)
        if entry is None:
            logger.debug("Ignoring update for uncached profile %s", profile_id)
            return None
        show = entry.find(show_id)
        if show is None:
            logger.debug(
                "Ignoring update for show %s missing from profile %s",
                show_id,
                profile_id,
            )
        return show
