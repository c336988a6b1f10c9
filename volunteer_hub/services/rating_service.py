"""Average ratings from attendance feedback, in both directions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.core.exceptions import NotFoundError
from volunteer_hub.crud import crud_attendance, crud_charity, crud_volunteer
from volunteer_hub.utils.helpers import round_decimal


@dataclass
class RatingEntry:
    rating: int
    opportunity_id: UUID
    opportunity_title: Optional[str]
    date: datetime


@dataclass
class RatingSummary:
    average_rating: float = 0.0
    total_ratings: int = 0
    ratings: List[RatingEntry] = field(default_factory=list)


def _summarize(entries: List[RatingEntry]) -> RatingSummary:
    if not entries:
        return RatingSummary()
    average = sum(e.rating for e in entries) / len(entries)
    return RatingSummary(average_rating=round_decimal(average), total_ratings=len(entries), ratings=entries)


class RatingService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def calculate_volunteer_average_rating(self, volunteer_id: UUID) -> RatingSummary:
        """Charity -> volunteer ratings, newest first."""
        if await crud_volunteer.get(self.db, volunteer_id) is None:
            raise NotFoundError("Volunteer not found")

        records = await crud_attendance.rated_by_charities(self.db, volunteer_id)
        return _summarize([
            RatingEntry(
                rating=r.charity_rating,
                opportunity_id=r.opportunity_id,
                opportunity_title=r.opportunity.title if r.opportunity else None,
                date=r.created_at,
            )
            for r in records
        ])

    async def calculate_charity_average_rating(self, charity_id: UUID) -> RatingSummary:
        """Volunteer -> charity ratings across all of the charity's opportunities, newest first."""
        if await crud_charity.get(self.db, charity_id) is None:
            raise NotFoundError("Charity not found")

        records = await crud_attendance.rated_by_volunteers(self.db, charity_id)
        return _summarize([
            RatingEntry(
                rating=r.volunteer_rating,
                opportunity_id=r.opportunity_id,
                opportunity_title=r.opportunity.title if r.opportunity else None,
                date=r.created_at,
            )
            for r in records
        ])
