"""Persistence helpers for attendance records."""

from dataclasses import dataclass
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import case, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.core.exceptions import ConflictError
from volunteer_hub.models.attendance import Attendance
from volunteer_hub.models.opportunity import Opportunity
from volunteer_hub.models.volunteer import Volunteer
from volunteer_hub.utils.constants import COMPLETED_ATTENDANCE_STATUSES
from volunteer_hub.utils.helpers import round_decimal, round_half_up


@dataclass
class VolunteerTotals:
    total_hours_volunteered: int
    total_opportunities_completed: int
    rating: float


async def get(db: AsyncSession, attendance_id: UUID) -> Optional[Attendance]:
    result = await db.execute(select(Attendance).where(Attendance.id == attendance_id))
    return result.scalar_one_or_none()


async def get_for_pair(
    db: AsyncSession, opportunity_id: UUID, volunteer_id: UUID
) -> Optional[Attendance]:
    result = await db.execute(
        select(Attendance).where(
            Attendance.opportunity_id == opportunity_id,
            Attendance.volunteer_id == volunteer_id,
        )
    )
    return result.scalar_one_or_none()


async def list_for_opportunity(db: AsyncSession, opportunity_id: UUID) -> List[Attendance]:
    result = await db.execute(select(Attendance).where(Attendance.opportunity_id == opportunity_id))
    return list(result.scalars().all())


async def list_for_volunteer(
    db: AsyncSession,
    volunteer_id: UUID,
    status: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[Attendance], int]:
    """One page of a volunteer's attendance, newest first, plus the unpaged count."""
    filters = [Attendance.volunteer_id == volunteer_id]
    if status is not None:
        filters.append(Attendance.status == status)

    total = await db.scalar(select(func.count()).select_from(Attendance).where(*filters))
    result = await db.execute(
        select(Attendance)
        .where(*filters)
        .order_by(desc(Attendance.created_at), desc(Attendance.id))
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total or 0)


async def add(db: AsyncSession, attendance: Attendance) -> None:
    db.add(attendance)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Attendance for this volunteer was recorded concurrently, retry the request")


async def recompute_volunteer_totals(db: AsyncSession, volunteer_id: UUID) -> VolunteerTotals:
    """
    Rebuild the volunteer's derived totals from the full attendance history.

    Pending ORM changes must already be flushed. The result does not depend on
    previous totals, so running it twice (or concurrently) is harmless.
    """
    result = await db.execute(
        select(
            func.coalesce(func.sum(Attendance.hours_worked), 0),
            func.coalesce(
                func.sum(case((Attendance.status.in_(COMPLETED_ATTENDANCE_STATUSES), 1), else_=0)), 0
            ),
            func.avg(Attendance.charity_rating),
        ).where(Attendance.volunteer_id == volunteer_id)
    )
    hours, completed, average_rating = result.one()

    totals = VolunteerTotals(
        total_hours_volunteered=round_half_up(hours),
        total_opportunities_completed=int(completed),
        rating=round_decimal(average_rating) if average_rating is not None else 0.0,
    )
    await db.execute(
        update(Volunteer)
        .where(Volunteer.id == volunteer_id)
        .values(
            total_hours_volunteered=totals.total_hours_volunteered,
            total_opportunities_completed=totals.total_opportunities_completed,
            rating=totals.rating,
        )
    )
    return totals


async def rated_by_charities(db: AsyncSession, volunteer_id: UUID) -> List[Attendance]:
    """Attendance rows of a volunteer carrying a charity rating, newest first."""
    result = await db.execute(
        select(Attendance)
        .where(Attendance.volunteer_id == volunteer_id, Attendance.charity_rating.is_not(None))
        .order_by(desc(Attendance.created_at))
    )
    return list(result.scalars().all())


async def rated_by_volunteers(db: AsyncSession, charity_id: UUID) -> List[Attendance]:
    """Attendance rows on a charity's opportunities carrying a volunteer rating, newest first."""
    result = await db.execute(
        select(Attendance)
        .join(Opportunity, Attendance.opportunity_id == Opportunity.id)
        .where(Opportunity.charity_id == charity_id, Attendance.volunteer_rating.is_not(None))
        .order_by(desc(Attendance.created_at))
    )
    return list(result.scalars().all())
