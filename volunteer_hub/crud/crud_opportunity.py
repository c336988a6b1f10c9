"""Persistence helpers for opportunities.

`volunteers_confirmed` and `views` are counters; they only change through the
single-statement increments below, never through read-modify-write.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from volunteer_hub.models.opportunity import Opportunity
from volunteer_hub.utils.constants import LEGACY_OPPORTUNITY_STATUSES, OpportunityStatus

# Stored values that read as "published"
PUBLISHED_VALUES = [OpportunityStatus.PUBLISHED.value] + [
    legacy for legacy, canonical in LEGACY_OPPORTUNITY_STATUSES.items()
    if canonical == OpportunityStatus.PUBLISHED
]


async def get(db: AsyncSession, opportunity_id: UUID) -> Optional[Opportunity]:
    result = await db.execute(select(Opportunity).where(Opportunity.id == opportunity_id))
    return result.scalar_one_or_none()


async def increment_confirmed(db: AsyncSession, opportunity: Opportunity) -> int:
    """Atomically add one confirmed volunteer; returns the stored count."""
    result = await db.execute(
        update(Opportunity)
        .where(Opportunity.id == opportunity.id)
        .values(volunteers_confirmed=Opportunity.volunteers_confirmed + 1)
        .returning(Opportunity.volunteers_confirmed)
        .execution_options(synchronize_session=False)
    )
    confirmed = result.scalar_one()
    set_committed_value(opportunity, "volunteers_confirmed", confirmed)
    return confirmed


async def increment_views(db: AsyncSession, opportunity: Opportunity) -> int:
    result = await db.execute(
        update(Opportunity)
        .where(Opportunity.id == opportunity.id)
        .values(views=Opportunity.views + 1)
        .returning(Opportunity.views)
        .execution_options(synchronize_session=False)
    )
    views = result.scalar_one()
    set_committed_value(opportunity, "views", views)
    return views


async def list_published(
    db: AsyncSession, starting_after: datetime, limit: int
) -> List[Opportunity]:
    """Published opportunities that have not started yet (or have no start date)."""
    result = await db.execute(
        select(Opportunity)
        .where(
            Opportunity.status.in_(PUBLISHED_VALUES),
            or_(Opportunity.start_date.is_(None), Opportunity.start_date >= starting_after),
        )
        .order_by(Opportunity.created_at, Opportunity.id)
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_open_for_charity(db: AsyncSession, charity_id: UUID) -> List[Opportunity]:
    """Published opportunities of a charity that still have places left."""
    result = await db.execute(
        select(Opportunity)
        .where(
            Opportunity.charity_id == charity_id,
            Opportunity.status.in_(PUBLISHED_VALUES),
            Opportunity.volunteers_confirmed < Opportunity.number_of_volunteers,
        )
        .order_by(Opportunity.start_date, Opportunity.created_at)
    )
    return list(result.scalars().all())
