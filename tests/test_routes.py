from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from watchlist.main import register_routes
from watchlist.models import Profile, Show, WatchStatus
from watchlist.services.profiles import ProfileService
from watchlist.services.shows import ShowService


class DummyShowService(ShowService):
    """Minimal ShowService stub for route testing."""

    def __init__(self) -> None:  # pragma: no cover - nothing to initialise
        # Deliberately skip super().__init__ to avoid touching the database.
        self.shows = {
            1: Show(show_id=1, title="The Wire", genres=["Drama"]),
            2: Show(show_id=2, title="Archer", watch_status=WatchStatus.WATCHING),
        }
        self.status_updates: list[tuple[int, int, WatchStatus]] = []

    async def list_shows(self, profile_id: int) -> list[Show]:  # type: ignore[override]
        if profile_id != 1:
            raise KeyError(f"Profile {profile_id} not found")
        return list(self.shows.values())

    async def update_watch_status(  # type: ignore[override]
        self, profile_id: int, show_id: int, status: WatchStatus
    ) -> Show:
        if show_id not in self.shows:
            raise KeyError(f"Show {show_id} is not on profile {profile_id}")
        self.status_updates.append((profile_id, show_id, status))
        return self.shows[show_id].model_copy(update={"watch_status": status})

    async def add_favorite(self, profile_id: int, show_id: int) -> Show:  # type: ignore[override]
        return self.shows[1].model_copy(update={"favorite": True})

    async def get_next_watch(self, profile_id: int) -> list[Show]:  # type: ignore[override]
        return [self.shows[2]]

    async def get_show_details(self, profile_id: int, show_id: int) -> Show:  # type: ignore[override]
        if show_id not in self.shows:
            raise KeyError(f"Show {show_id} not found")
        return self.shows[show_id]


class DummyProfileService(ProfileService):
    """Minimal ProfileService stub for route testing."""

    def __init__(self) -> None:  # pragma: no cover - nothing to initialise
        self.created: list[tuple[int, str]] = []

    async def list_profiles(self, account_id: int) -> list[Profile]:  # type: ignore[override]
        return [Profile(id=1, account_id=account_id, name="Adam")]

    async def add_profile(self, account_id: int, name: str) -> Profile:  # type: ignore[override]
        self.created.append((account_id, name))
        return Profile(id=2, account_id=account_id, name=name)

    async def edit_profile(  # type: ignore[override]
        self, account_id: int, profile_id: int, name: str
    ) -> Profile:
        raise KeyError(f"Profile {profile_id} not found")

    async def delete_profile(self, account_id: int, profile_id: int) -> None:  # type: ignore[override]
        return None


def build_client() -> tuple[TestClient, DummyShowService, DummyProfileService]:
    app = FastAPI()
    register_routes(app)
    shows = DummyShowService()
    profiles = DummyProfileService()
    app.state.show_service = shows
    app.state.profile_service = profiles
    return TestClient(app), shows, profiles


def test_list_shows_returns_payloads() -> None:
    client, _, _ = build_client()

    with client:
        response = client.get("/api/profiles/1/shows")

    assert response.status_code == 200
    payload = response.json()
    assert [entry["show_id"] for entry in payload] == [1, 2]
    assert payload[0]["genres"] == ["Drama"]
    assert payload[1]["watch_status"] == "WATCHING"


def test_list_shows_unknown_profile_is_404() -> None:
    client, _, _ = build_client()

    with client:
        response = client.get("/api/profiles/9/shows")

    assert response.status_code == 404
    assert response.json()["detail"] == "Profile 9 not found"


def test_update_watch_status() -> None:
    client, shows, _ = build_client()

    with client:
        response = client.put(
            "/api/profiles/1/shows/watchstatus",
            json={"show_id": 1, "status": "watched"},
        )

    assert response.status_code == 200
    assert response.json()["watch_status"] == "WATCHED"
    assert shows.status_updates == [(1, 1, WatchStatus.WATCHED)]


def test_update_watch_status_rejects_unknown_status() -> None:
    client, shows, _ = build_client()

    with client:
        response = client.put(
            "/api/profiles/1/shows/watchstatus",
            json={"show_id": 1, "status": "SOMETIMES"},
        )

    assert response.status_code == 400
    assert shows.status_updates == []


def test_update_watch_status_missing_show_is_404() -> None:
    client, _, _ = build_client()

    with client:
        response = client.put(
            "/api/profiles/1/shows/watchstatus",
            json={"show_id": 5, "status": "WATCHING"},
        )

    assert response.status_code == 404


def test_add_favorite_and_next_watch() -> None:
    client, _, _ = build_client()

    with client:
        favorite = client.post("/api/profiles/1/shows/favorites", json={"show_id": 1})
        next_watch = client.get("/api/profiles/1/shows/nextWatch")

    assert favorite.status_code == 200
    assert favorite.json()["favorite"] is True
    assert [entry["title"] for entry in next_watch.json()] == ["Archer"]


def test_show_details() -> None:
    client, _, _ = build_client()

    with client:
        found = client.get("/api/profiles/1/shows/2/details")
        missing = client.get("/api/profiles/1/shows/3/details")

    assert found.json()["title"] == "Archer"
    assert missing.status_code == 404


def test_profile_routes() -> None:
    client, _, profiles = build_client()

    with client:
        listed = client.get("/api/account/7/profiles")
        created = client.post("/api/account/7/profiles", json={"name": "  Bea "})
        blank = client.post("/api/account/7/profiles", json={"name": "   "})
        edited = client.put("/api/account/7/profiles/4", json={"name": "Cal"})
        deleted = client.delete("/api/account/7/profiles/1")

    assert listed.json() == [{"id": 1, "account_id": 7, "name": "Adam", "image": None}]
    assert created.status_code == 201
    assert created.json()["name"] == "Bea"
    assert profiles.created == [(7, "Bea")]
    assert blank.status_code == 400
    assert edited.status_code == 404
    assert deleted.status_code == 204


def test_invalid_json_body_is_rejected() -> None:
    client, _, _ = build_client()

    with client:
        response = client.post(
            "/api/profiles/1/shows/favorites",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

    assert response.status_code == 400


def test_healthcheck() -> None:
    client, _, _ = build_client()

    with client:
        response = client.get("/healthz")

    assert response.json() == {"status": "ok"}
