"""Entry point for the FastAPI-powered watchlist API."""

from __future__ import annotations
import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from .config import settings
from .database import Database
from .models import FavoriteRequest, ProfileNameRequest, WatchStatusRequest
from .services.profiles import ProfileService
from .services.shows import ShowService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    database = Database(settings.database_url)
    await database.create_all()

    fastapi_app.state.database = database
    fastapi_app.state.show_service = ShowService(settings, database.session_factory)
    fastapi_app.state.profile_service = ProfileService(database.session_factory)
    logger.info("Watchlist API ready using %s", settings.database_url)

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Track what every profile in the household is watching",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_show_service(app: FastAPI) -> ShowService:
    service = getattr(app.state, "show_service", None)
    if not isinstance(service, ShowService):
        raise RuntimeError("Show service not initialised")
    return service


def get_profile_service(app: FastAPI) -> ProfileService:
    service = getattr(app.state, "profile_service", None)
    if not isinstance(service, ProfileService):
        raise RuntimeError("Profile service not initialised")
    return service


async def _parse_body(request: Request, model: type[BaseModel]) -> Any:
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        payload = None
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=400, detail=exc.errors(include_url=False, include_context=False)
        ) from exc


def _not_found(exc: KeyError) -> HTTPException:
    message = exc.args[0] if exc.args else "Not found"
    return HTTPException(status_code=404, detail=str(message))


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/account/{account_id}/profiles")
    async def list_profiles(account_id: int) -> JSONResponse:
        service = get_profile_service(fastapi_app)
        try:
            profiles = await service.list_profiles(account_id)
        except KeyError as exc:
            raise _not_found(exc) from exc
        return JSONResponse([profile.to_payload() for profile in profiles])

    @fastapi_app.post("/api/account/{account_id}/profiles")
    async def add_profile(request: Request, account_id: int) -> JSONResponse:
        service = get_profile_service(fastapi_app)
        body = await _parse_body(request, ProfileNameRequest)
        try:
            profile = await service.add_profile(account_id, body.name)
        except KeyError as exc:
            raise _not_found(exc) from exc
        return JSONResponse(profile.to_payload(), status_code=201)

    @fastapi_app.put("/api/account/{account_id}/profiles/{profile_id}")
    async def edit_profile(
        request: Request, account_id: int, profile_id: int
    ) -> JSONResponse:
        service = get_profile_service(fastapi_app)
        body = await _parse_body(request, ProfileNameRequest)
        try:
            profile = await service.edit_profile(account_id, profile_id, body.name)
        except KeyError as exc:
            raise _not_found(exc) from exc
        return JSONResponse(profile.to_payload())

    @fastapi_app.delete("/api/account/{account_id}/profiles/{profile_id}")
    async def delete_profile(account_id: int, profile_id: int) -> Response:
        service = get_profile_service(fastapi_app)
        try:
            await service.delete_profile(account_id, profile_id)
        except KeyError as exc:
            raise _not_found(exc) from exc
        return Response(status_code=204)

    @fastapi_app.get("/api/profiles/{profile_id}/shows")
    async def list_shows(profile_id: int) -> JSONResponse:
        service = get_show_service(fastapi_app)
        try:
            shows = await service.list_shows(profile_id)
        except KeyError as exc:
            raise _not_found(exc) from exc
        return JSONResponse([show.to_payload() for show in shows])

    @fastapi_app.post("/api/profiles/{profile_id}/shows/favorites")
    async def add_favorite(request: Request, profile_id: int) -> JSONResponse:
        service = get_show_service(fastapi_app)
        body = await _parse_body(request, FavoriteRequest)
        try:
            show = await service.add_favorite(profile_id, body.show_id)
        except KeyError as exc:
            raise _not_found(exc) from exc
        return JSONResponse(show.to_payload())

    @fastapi_app.put("/api/profiles/{profile_id}/shows/watchstatus")
    async def update_watch_status(request: Request, profile_id: int) -> JSONResponse:
        service = get_show_service(fastapi_app)
        body = await _parse_body(request, WatchStatusRequest)
        try:
            show = await service.update_watch_status(
                profile_id, body.show_id, body.status
            )
        except KeyError as exc:
            raise _not_found(exc) from exc
        return JSONResponse(show.to_payload())

    @fastapi_app.get("/api/profiles/{profile_id}/shows/nextWatch")
    async def next_watch(profile_id: int) -> JSONResponse:
        service = get_show_service(fastapi_app)
        try:
            shows = await service.get_next_watch(profile_id)
        except KeyError as exc:
            raise _not_found(exc) from exc
        return JSONResponse([show.to_payload() for show in shows])

    @fastapi_app.get("/api/profiles/{profile_id}/shows/{show_id}/details")
    async def show_details(profile_id: int, show_id: int) -> JSONResponse:
        service = get_show_service(fastapi_app)
        try:
            show = await service.get_show_details(profile_id, show_id)
        except KeyError as exc:
            raise _not_found(exc) from exc
        return JSONResponse(show.to_payload())


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "watchlist.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
