"""Persistence helpers for applications.

The (opportunity_id, volunteer_id) unique constraint is the source of truth
for duplicate detection; lookups here are only a fast path.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple
from uuid import UUID

import structlog
from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.core.exceptions import ConflictError, ValidationError
from volunteer_hub.models.application import Application
from volunteer_hub.models.opportunity import Opportunity
from volunteer_hub.utils.constants import ApplicationStatus

logger = structlog.get_logger(__name__)

_STATUS_VALUES = frozenset(s.value for s in ApplicationStatus)


@dataclass(frozen=True)
class ApplicationQuery:
    """Typed filter for application listings. Validated on construction."""

    volunteer_id: Optional[UUID] = None
    charity_id: Optional[UUID] = None
    opportunity_id: Optional[UUID] = None
    statuses: Tuple[str, ...] = ()
    system_matched: Optional[bool] = None
    needs_moderation: bool = False
    flagged_reason: Optional[str] = None
    order_by_match_score: bool = False
    limit: Optional[int] = None

    def __post_init__(self):
        unknown = [s for s in self.statuses if s not in _STATUS_VALUES]
        if unknown:
            raise ValidationError(f"Unknown application status: {', '.join(unknown)}")
        if self.limit is not None and self.limit < 1:
            raise ValidationError("limit must be a positive integer")


@dataclass(frozen=True)
class SuggestedMatchQuery:
    """Pending, system-generated applications on one charity's opportunities."""

    charity_id: UUID
    opportunity_id: Optional[UUID] = None

    def to_query(self) -> ApplicationQuery:
        return ApplicationQuery(
            charity_id=self.charity_id,
            opportunity_id=self.opportunity_id,
            statuses=(ApplicationStatus.PENDING.value,),
            system_matched=True,
            order_by_match_score=True,
        )


async def get(db: AsyncSession, application_id: UUID) -> Optional[Application]:
    result = await db.execute(select(Application).where(Application.id == application_id))
    return result.scalar_one_or_none()


async def get_for_pair(
    db: AsyncSession, opportunity_id: UUID, volunteer_id: UUID
) -> Optional[Application]:
    result = await db.execute(
        select(Application).where(
            Application.opportunity_id == opportunity_id,
            Application.volunteer_id == volunteer_id,
        )
    )
    return result.scalar_one_or_none()


async def existing_volunteer_ids(
    db: AsyncSession, opportunity_id: UUID, volunteer_ids: Iterable[UUID]
) -> Set[UUID]:
    """Volunteers among `volunteer_ids` that already applied (in any status)."""
    volunteer_ids = list(volunteer_ids)
    if not volunteer_ids:
        return set()
    result = await db.execute(
        select(Application.volunteer_id).where(
            Application.opportunity_id == opportunity_id,
            Application.volunteer_id.in_(volunteer_ids),
        )
    )
    return set(result.scalars().all())


async def add_all(db: AsyncSession, applications: Sequence[Application]) -> None:
    """
    Insert applications in one flush.

    A unique-constraint violation means another request created the same
    (opportunity, volunteer) pair first; the transaction is rolled back and
    reported as a conflict.
    """
    db.add_all(applications)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        logger.info("application_duplicate_rejected", error=str(e.orig))
        raise ConflictError("An application already exists for this volunteer and opportunity")


async def list_applications(db: AsyncSession, query: ApplicationQuery) -> List[Application]:
    stmt = select(Application)

    if query.charity_id is not None:
        stmt = stmt.join(Opportunity, Application.opportunity_id == Opportunity.id).where(
            Opportunity.charity_id == query.charity_id
        )
    if query.volunteer_id is not None:
        stmt = stmt.where(Application.volunteer_id == query.volunteer_id)
    if query.opportunity_id is not None:
        stmt = stmt.where(Application.opportunity_id == query.opportunity_id)
    if query.statuses:
        stmt = stmt.where(Application.status.in_(query.statuses))
    if query.system_matched is not None:
        stmt = stmt.where(Application.is_system_matched.is_(query.system_matched))
    if query.needs_moderation:
        stmt = stmt.where(
            or_(
                Application.flagged_for_moderation.is_(True),
                Application.status == ApplicationStatus.MODERATOR_REVIEW.value,
            )
        )
    if query.flagged_reason:
        stmt = stmt.where(Application.flagged_reason.ilike(f"%{query.flagged_reason}%"))

    if query.order_by_match_score:
        stmt = stmt.order_by(desc(Application.match_score), desc(Application.created_at))
    else:
        stmt = stmt.order_by(desc(Application.created_at), Application.id)

    if query.limit is not None:
        stmt = stmt.limit(query.limit)

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def pending_suggestion_counts(db: AsyncSession, opportunity_ids: List[UUID]) -> dict:
    """opportunity_id -> number of pending system-matched applications."""
    if not opportunity_ids:
        return {}
    result = await db.execute(
        select(Application.opportunity_id, func.count(Application.id))
        .where(
            Application.opportunity_id.in_(opportunity_ids),
            Application.is_system_matched.is_(True),
            Application.status == ApplicationStatus.PENDING.value,
        )
        .group_by(Application.opportunity_id)
    )
    return {opportunity_id: count for opportunity_id, count in result.all()}
