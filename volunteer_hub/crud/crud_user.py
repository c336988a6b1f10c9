"""Persistence helpers for user accounts."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.models.user import User


async def get(db: AsyncSession, user_id: UUID) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def active_user_ids_with_role(db: AsyncSession, role: str) -> List[UUID]:
    result = await db.execute(select(User.id).where(User.role == role, User.is_active.is_(True)))
    return list(result.scalars().all())
