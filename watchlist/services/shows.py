"""Persistence-backed operations on a profile's shows."""

from __future__ import annotations

import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings
from ..db_models import Profile as ProfileRecord
from ..db_models import ProfileShow, Show as ShowRecord, utcnow
from ..filters import sort_key
from ..models import Show, WatchStatus

logger = logging.getLogger(__name__)


class ShowService:
    """Reads and updates per-profile watch state."""

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        self._settings = settings
        self._session_factory = session_factory

    async def list_shows(self, profile_id: int) -> list[Show]:
        """Return every show on the profile's list in insertion order."""

        async with self._session_factory() as session:
            await self._require_profile(session, profile_id)
            stmt = (
                select(ProfileShow, ShowRecord)
                .join(ShowRecord, ShowRecord.id == ProfileShow.show_id)
                .where(ProfileShow.profile_id == profile_id)
                .order_by(ProfileShow.id)
            )
            result = await session.execute(stmt)
            return [_to_show(record, link) for link, record in result.all()]

    async def get_show_details(self, profile_id: int, show_id: int) -> Show:
        async with self._session_factory() as session:
            await self._require_profile(session, profile_id)
            record = await session.get(ShowRecord, show_id)
            if record is None:
                raise KeyError(f"Show {show_id} not found")
            link = await self._find_link(session, profile_id, show_id)
            return _to_show(record, link)

    async def add_favorite(self, profile_id: int, show_id: int) -> Show:
        """Add the show to the profile's list and flag it as a favorite."""

        async with self._session_factory() as session:
            await self._require_profile(session, profile_id)
            record = await session.get(ShowRecord, show_id)
            if record is None:
                raise KeyError(f"Show {show_id} not found")
            link = await self._find_link(session, profile_id, show_id)
            if link is None:
                link = ProfileShow(
                    profile_id=profile_id,
                    show_id=show_id,
                    watch_status=WatchStatus.NOT_WATCHED.value,
                    favorite=True,
                )
                session.add(link)
            else:
                link.favorite = True
                link.updated_at = utcnow()
            await session.commit()
            logger.info("Profile %s favorited show %s", profile_id, show_id)
            return _to_show(record, link)

    async def update_watch_status(
        self, profile_id: int, show_id: int, status: WatchStatus
    ) -> Show:
        async with self._session_factory() as session:
            await self._require_profile(session, profile_id)
            link = await self._find_link(session, profile_id, show_id)
            if link is None:
                raise KeyError(f"Show {show_id} is not on profile {profile_id}")
            record = await session.get(ShowRecord, show_id)
            if record is None:
                raise KeyError(f"Show {show_id} not found")
            link.watch_status = status.value
            link.updated_at = utcnow()
            await session.commit()
            return _to_show(record, link)

    async def get_next_watch(self, profile_id: int) -> list[Show]:
        """Suggest what to watch next.

        Shows already in progress come first, followed by favorites that have
        not been started.
        """

        shows = await self.list_shows(profile_id)
        watching = sorted(
            (show for show in shows if show.watch_status is WatchStatus.WATCHING),
            key=sort_key,
        )
        queued = sorted(
            (
                show
                for show in shows
                if show.favorite and show.watch_status is WatchStatus.NOT_WATCHED
            ),
            key=sort_key,
        )
        return (watching + queued)[: self._settings.next_watch_limit]

    @staticmethod
    async def _require_profile(session: AsyncSession, profile_id: int) -> None:
        if await session.get(ProfileRecord, profile_id) is None:
            raise KeyError(f"Profile {profile_id} not found")

    @staticmethod
    async def _find_link(
        session: AsyncSession, profile_id: int, show_id: int
    ) -> ProfileShow | None:
        stmt = select(ProfileShow).where(
            ProfileShow.profile_id == profile_id,
            ProfileShow.show_id == show_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


def _to_show(record: ShowRecord, link: ProfileShow | None) -> Show:
    status = WatchStatus.parse(link.watch_status) if link else None
    return Show(
        show_id=record.id,
        title=record.title,
        genres=record.genres or (),
        streaming_services=record.streaming_services or (),
        watch_status=status or WatchStatus.NOT_WATCHED,
        favorite=bool(link.favorite) if link else False,
        description=record.description,
        release_date=record.release_date,
        image=record.image,
        user_rating=record.user_rating,
        tv_parental_guidelines=record.tv_parental_guidelines,
        season_count=record.season_count,
        episode_count=record.episode_count,
    )
