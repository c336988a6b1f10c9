"""Persistence helpers for volunteer profiles."""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.models.volunteer import Volunteer
from volunteer_hub.utils.constants import ApprovalStatus


async def get(db: AsyncSession, volunteer_id: UUID) -> Optional[Volunteer]:
    result = await db.execute(select(Volunteer).where(Volunteer.id == volunteer_id))
    return result.scalar_one_or_none()


async def get_by_user(db: AsyncSession, user_id: UUID) -> Optional[Volunteer]:
    result = await db.execute(select(Volunteer).where(Volunteer.user_id == user_id))
    return result.scalar_one_or_none()


async def approved_pool(db: AsyncSession, limit: int) -> List[Volunteer]:
    """Approved, active volunteers in a stable order, at most `limit` of them."""
    result = await db.execute(
        select(Volunteer)
        .where(
            Volunteer.approval_status == ApprovalStatus.APPROVED.value,
            Volunteer.is_active.is_(True),
        )
        .order_by(Volunteer.created_at, Volunteer.id)
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_by_approval_status(db: AsyncSession) -> Dict[str, int]:
    result = await db.execute(
        select(Volunteer.approval_status, func.count(Volunteer.id)).group_by(Volunteer.approval_status)
    )
    return {status: count for status, count in result.all()}
