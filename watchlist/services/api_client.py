"""Utilities for communicating with the watchlist REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..models import Profile, Show, WatchStatus

logger = logging.getLogger(__name__)


class WatchlistApiError(Exception):
    """Raised when the REST API cannot be reached or rejects a request."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)


class WatchlistApiClient:
    """Thin wrapper around the watchlist HTTP API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": f"{self._settings.app_name} (watchlist)",
        }

    async def _request(
        self, method: str, url: str, *, json: dict[str, Any] | None = None
    ) -> Any:
        try:
            response = await self._client.request(
                method, url, headers=self._headers(), json=json
            )
        except httpx.HTTPError as exc:
            logger.warning("Request %s %s failed: %s", method, url, exc)
            raise WatchlistApiError(
                f"Unable to reach the watchlist API ({exc.__class__.__name__})"
            ) from exc

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning(
                "Request %s %s returned %s: %s",
                method,
                url,
                response.status_code,
                detail,
            )
            raise WatchlistApiError(detail, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise WatchlistApiError(
                "Unexpected non-JSON response", status_code=response.status_code
            ) from exc

    async def fetch_shows_for_profile(self, profile_id: int) -> list[Show]:
        """Fetch every show on the profile's watchlist."""

        data = await self._request("GET", f"/api/profiles/{profile_id}/shows")
        if isinstance(data, dict):
            data = data.get("results", data.get("shows"))
        if not isinstance(data, list):
            raise WatchlistApiError("Unexpected response structure for shows")
        return _parse_shows(data)

    async def fetch_show_details(self, profile_id: int, show_id: int) -> Show:
        data = await self._request(
            "GET", f"/api/profiles/{profile_id}/shows/{show_id}/details"
        )
        try:
            return Show.model_validate(data)
        except ValidationError as exc:
            raise WatchlistApiError("Unexpected response structure for show") from exc

    async def fetch_next_watch(self, profile_id: int) -> list[Show]:
        data = await self._request("GET", f"/api/profiles/{profile_id}/shows/nextWatch")
        if not isinstance(data, list):
            raise WatchlistApiError("Unexpected response structure for next watch")
        return _parse_shows(data)

    async def update_watch_status(
        self, profile_id: int, show_id: int, status: WatchStatus
    ) -> None:
        await self._request(
            "PUT",
            f"/api/profiles/{profile_id}/shows/watchstatus",
            json={"show_id": show_id, "status": status.value},
        )

    async def add_favorite(self, profile_id: int, show_id: int) -> Show | None:
        data = await self._request(
            "POST",
            f"/api/profiles/{profile_id}/shows/favorites",
            json={"show_id": show_id},
        )
        if not isinstance(data, dict):
            return None
        try:
            return Show.model_validate(data)
        except ValidationError:
            logger.info("Favorite response for show %s could not be parsed", show_id)
            return None

    async def fetch_profiles(self, account_id: int) -> list[Profile]:
        data = await self._request("GET", f"/api/account/{account_id}/profiles")
        if not isinstance(data, list):
            raise WatchlistApiError("Unexpected response structure for profiles")
        try:
            return [Profile.model_validate(entry) for entry in data]
        except ValidationError as exc:
            raise WatchlistApiError("Unexpected profile payload") from exc

    async def add_profile(self, account_id: int, name: str) -> Profile:
        data = await self._request(
            "POST", f"/api/account/{account_id}/profiles", json={"name": name}
        )
        return _parse_profile(data)

    async def edit_profile(self, account_id: int, profile_id: int, name: str) -> Profile:
        data = await self._request(
            "PUT",
            f"/api/account/{account_id}/profiles/{profile_id}",
            json={"name": name},
        )
        return _parse_profile(data)

    async def delete_profile(self, account_id: int, profile_id: int) -> None:
        await self._request(
            "DELETE", f"/api/account/{account_id}/profiles/{profile_id}"
        )


def _parse_shows(data: list[Any]) -> list[Show]:
    shows: list[Show] = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        try:
            shows.append(Show.model_validate(entry))
        except ValidationError as exc:
            raise WatchlistApiError("Unexpected show payload") from exc
    return shows


def _parse_profile(data: Any) -> Profile:
    try:
        return Profile.model_validate(data)
    except ValidationError as exc:
        raise WatchlistApiError("Unexpected profile payload") from exc


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        detail = data.get("detail") or data.get("message") or data.get("error")
        if detail:
            return str(detail)
    return f"HTTP {response.status_code}"
