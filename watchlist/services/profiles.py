"""Persistence-backed profile management for an account."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import Account, ProfileShow
from ..db_models import Profile as ProfileRecord
from ..models import Profile

logger = logging.getLogger(__name__)


class ProfileService:
    """Create, rename, delete and list the profiles of an account."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_profiles(self, account_id: int) -> list[Profile]:
        async with self._session_factory() as session:
            await self._require_account(session, account_id)
            stmt = (
                select(ProfileRecord)
                .where(ProfileRecord.account_id == account_id)
                .order_by(ProfileRecord.id)
            )
            result = await session.execute(stmt)
            return [_to_profile(record) for record in result.scalars().all()]

    async def add_profile(self, account_id: int, name: str) -> Profile:
        async with self._session_factory() as session:
            await self._require_account(session, account_id)
            record = ProfileRecord(account_id=account_id, name=name, image=None)
            session.add(record)
            await session.commit()
            logger.info("Created profile %s for account %s", record.id, account_id)
            return _to_profile(record)

    async def edit_profile(self, account_id: int, profile_id: int, name: str) -> Profile:
        async with self._session_factory() as session:
            record = await self._require_profile(session, account_id, profile_id)
            record.name = name
            await session.commit()
            return _to_profile(record)

    async def delete_profile(self, account_id: int, profile_id: int) -> None:
        async with self._session_factory() as session:
            await self._require_profile(session, account_id, profile_id)
            await session.execute(
                delete(ProfileShow).where(ProfileShow.profile_id == profile_id)
            )
            await session.execute(
                delete(ProfileRecord).where(ProfileRecord.id == profile_id)
            )
            await session.commit()
            logger.info("Deleted profile %s from account %s", profile_id, account_id)

    @staticmethod
    async def _require_account(session: AsyncSession, account_id: int) -> None:
        if await session.get(Account, account_id) is None:
            raise KeyError(f"Account {account_id} not found")

    @staticmethod
    async def _require_profile(
        session: AsyncSession, account_id: int, profile_id: int
    ) -> ProfileRecord:
        record = await session.get(ProfileRecord, profile_id)
        if record is None or record.account_id != account_id:
            raise KeyError(f"Profile {profile_id} not found")
        return record


def _to_profile(record: ProfileRecord) -> Profile:
    return Profile(
        id=record.id,
        account_id=record.account_id,
        name=record.name,
        image=record.image,
    )
