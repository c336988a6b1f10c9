"""Persistence helpers for charities."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.models.charity import Charity


async def get(db: AsyncSession, charity_id: UUID) -> Optional[Charity]:
    result = await db.execute(select(Charity).where(Charity.id == charity_id))
    return result.scalar_one_or_none()


async def get_by_user(db: AsyncSession, user_id: UUID) -> Optional[Charity]:
    result = await db.execute(select(Charity).where(Charity.user_id == user_id))
    return result.scalar_one_or_none()
