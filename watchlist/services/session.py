"""Client session state: profiles and the per-profile show cache."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Literal

import httpx

from ..config import Settings
from ..filters import FilterSpec, apply_filters
from ..models import Profile, Show, WatchStatus
from ..store import FetchGate, ProfileShowStore
from .api_client import WatchlistApiClient, WatchlistApiError

logger = logging.getLogger(__name__)

RequestStatus = Literal["idle", "pending", "succeeded", "failed"]


@dataclass
class ProfilesState:
    """Profiles of the signed-in account, kept sorted by name."""

    status: RequestStatus = "idle"
    error: str | None = None
    profiles: list[Profile] = field(default_factory=list)

    def set_all(self, profiles: list[Profile]) -> None:
        self.profiles = sorted(profiles, key=_profile_sort_key)

    def upsert(self, profile: Profile) -> None:
        remaining = [entry for entry in self.profiles if entry.id != profile.id]
        remaining.append(profile)
        self.set_all(remaining)

    def remove(self, profile_id: int) -> None:
        self.profiles = [entry for entry in self.profiles if entry.id != profile_id]


def _profile_sort_key(profile: Profile) -> str:
    return profile.name.casefold()


@dataclass(slots=True)
class ShowFacets:
    """Sorted facet values used to populate filter controls."""

    genres: list[str]
    streaming_services: list[str]


class WatchlistSession:
    """Coordinates API calls with the locally cached profile and show state."""

    def __init__(
        self,
        api: WatchlistApiClient,
        *,
        store: ProfileShowStore | None = None,
        gate: FetchGate | None = None,
    ):
        self._api = api
        self.store = store or ProfileShowStore()
        self.gate = gate or FetchGate()
        self.profiles = ProfilesState()
        self._generation = 0

    async def load_shows(self, profile_id: int) -> bool:
        """Fetch the profile's shows unless they are cached or already loading.

        Returns ``False`` when the request was suppressed. Fetch failures are
        recorded on the store and re-raised; no cache entry is created so a
        later call can try again.
        """

        if not self.gate.begin(profile_id, self.store.entry_for(profile_id)):
            logger.debug("Skipping show fetch for profile %s", profile_id)
            return False

        logger.info("Fetching shows for profile %s", profile_id)
        generation = self._generation
        try:
            shows = await self._api.fetch_shows_for_profile(profile_id)
        except WatchlistApiError as exc:
            if generation == self._generation:
                self.store.on_fetch_failed(profile_id, exc.message)
            raise
        finally:
            if generation == self._generation:
                self.gate.finish(profile_id)

        if generation != self._generation:
            # The session was logged out while the request was outstanding.
            logger.info("Discarding shows for profile %s after logout", profile_id)
            return False
        self.store.on_fetched(profile_id, shows)
        logger.info("Cached %s shows for profile %s", len(shows), profile_id)
        return True

    def shows_view(
        self, profile_id: int, spec: FilterSpec | None = None
    ) -> list[Show]:
        return apply_filters(self.store.get_shows_for(profile_id), spec)

    def facets(self, profile_id: int) -> ShowFacets:
        return ShowFacets(
            genres=sorted(self.store.get_genres_for(profile_id)),
            streaming_services=sorted(
                self.store.get_streaming_services_for(profile_id)
            ),
        )

    async def update_watch_status(
        self, profile_id: int, show_id: int, status: WatchStatus
    ) -> None:
        await self._api.update_watch_status(profile_id, show_id, status)
        self.store.on_watch_status_changed(profile_id, show_id, status)

    async def add_favorite(self, profile_id: int, show_id: int) -> None:
        await self._api.add_favorite(profile_id, show_id)
        self.store.on_favorite_added(profile_id, show_id)

    async def fetch_profiles(self, account_id: int) -> bool:
        """Load the account's profiles once per session."""

        if self.profiles.status != "idle":
            return False
        self.profiles.status = "pending"
        try:
            profiles = await self._api.fetch_profiles(account_id)
        except WatchlistApiError as exc:
            self._fail(exc)
            raise
        self.profiles.set_all(profiles)
        self.profiles.status = "succeeded"
        return True

    async def add_profile(self, account_id: int, name: str) -> Profile:
        self._begin()
        try:
            profile = await self._api.add_profile(account_id, name)
        except WatchlistApiError as exc:
            self._fail(exc)
            raise
        self.profiles.upsert(profile)
        self.profiles.status = "succeeded"
        return profile

    async def edit_profile(self, account_id: int, profile_id: int, name: str) -> Profile:
        self._begin()
        try:
            profile = await self._api.edit_profile(account_id, profile_id, name)
        except WatchlistApiError as exc:
            self._fail(exc)
            raise
        self.profiles.upsert(profile)
        self.profiles.status = "succeeded"
        return profile

    async def delete_profile(self, account_id: int, profile_id: int) -> None:
        self._begin()
        try:
            await self._api.delete_profile(account_id, profile_id)
        except WatchlistApiError as exc:
            self._fail(exc)
            raise
        self.profiles.remove(profile_id)
        self.profiles.status = "succeeded"

    def logout(self) -> None:
        """Drop everything cached for the signed-in account."""

        self._generation += 1
        self.store.clear()
        self.gate.reset()
        self.profiles = ProfilesState()

    def _begin(self) -> None:
        self.profiles.status = "pending"
        self.profiles.error = None

    def _fail(self, exc: WatchlistApiError) -> None:
        self.profiles.status = "failed"
        self.profiles.error = exc.message


@asynccontextmanager
async def open_session(settings: Settings) -> AsyncIterator[WatchlistSession]:
    """Yield a session talking to the configured API for its lifetime."""

    async with httpx.AsyncClient(
        base_url=str(settings.api_base_url),
        timeout=httpx.Timeout(settings.request_timeout_seconds, connect=10.0),
    ) as http_client:
        yield WatchlistSession(WatchlistApiClient(settings, http_client))
