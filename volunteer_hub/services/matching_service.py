"""
Matching Service
Ranks approved volunteers for an opportunity, and opportunities for a volunteer.

Both directions are read-only: they score a bounded pool with the match
scorer, filter by a minimum score and keep a stable descending order, so
unchanged data always yields the same ranking.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.config import settings
from volunteer_hub.core.exceptions import NotFoundError, ValidationError
from volunteer_hub.crud import crud_opportunity, crud_volunteer
from volunteer_hub.models.opportunity import Opportunity
from volunteer_hub.models.volunteer import Volunteer
from volunteer_hub.services.match_scorer import MatchScore, band_color, score_match
from volunteer_hub.utils.helpers import utcnow

logger = structlog.get_logger(__name__)


@dataclass
class RankedMatch:
    """A scored volunteer in a ranked list (rank is 1-based)."""
    rank: int
    volunteer: Volunteer
    score: MatchScore

    @property
    def color(self) -> str:
        return band_color(self.score.value)


@dataclass
class MatchResults:
    opportunity: Opportunity
    total_found: int
    total_evaluated: int
    min_score: int
    limit: int
    matches: List[RankedMatch] = field(default_factory=list)


@dataclass
class Recommendation:
    rank: int
    opportunity: Opportunity
    score: MatchScore


def _validate_window(limit: int, min_score: int) -> None:
    if limit is None or limit < 1:
        raise ValidationError("limit must be a positive integer")
    if min_score is None or not 0 <= min_score <= 100:
        raise ValidationError("min_score must be between 0 and 100")


class MatchingService:
    """Service for ranking volunteer / opportunity pairs"""

    def __init__(self, db: AsyncSession, pool_size: Optional[int] = None):
        self.db = db
        self.pool_size = pool_size or settings.MATCH_POOL_SIZE

    async def find_matches(
        self,
        opportunity_id: UUID,
        limit: int = settings.DEFAULT_MATCH_LIMIT,
        min_score: int = settings.DEFAULT_MIN_MATCH_SCORE,
        today: Optional[date] = None,
    ) -> MatchResults:
        """
        Rank approved, active volunteers for an opportunity.

        Args:
            opportunity_id: Opportunity to match against
            limit: Max number of matches returned
            min_score: Minimum score (0-100) to be included
            today: Reference date for age-based scoring

        Returns:
            MatchResults with 1-based ranks

        Raises:
            NotFoundError: opportunity does not exist
        """
        _validate_window(limit, min_score)

        opportunity = await crud_opportunity.get(self.db, opportunity_id)
        if opportunity is None:
            raise NotFoundError("Opportunity not found")

        pool = await crud_volunteer.approved_pool(self.db, self.pool_size)

        scored = [(volunteer, score_match(volunteer, opportunity, today)) for volunteer in pool]
        qualified = [pair for pair in scored if pair[1].value >= min_score]
        # sorted() is stable, so equal scores keep pool order
        qualified = sorted(qualified, key=lambda pair: pair[1].value, reverse=True)[:limit]

        matches = [
            RankedMatch(rank=index, volunteer=volunteer, score=score)
            for index, (volunteer, score) in enumerate(qualified, start=1)
        ]

        logger.info(
            "opportunity_matched",
            opportunity_id=str(opportunity_id),
            matched=len(matches),
            evaluated=len(pool),
            min_score=min_score,
        )
        return MatchResults(
            opportunity=opportunity,
            total_found=len(matches),
            total_evaluated=len(pool),
            min_score=min_score,
            limit=limit,
            matches=matches,
        )

    async def recommend_opportunities(
        self,
        volunteer_user_id: UUID,
        limit: int = settings.RECOMMENDATION_LIMIT,
        min_score: int = settings.RECOMMENDATION_MIN_SCORE,
        today: Optional[date] = None,
    ) -> List[Recommendation]:
        """Published, upcoming opportunities ranked for the caller's volunteer profile."""
        _validate_window(limit, min_score)

        volunteer = await crud_volunteer.get_by_user(self.db, volunteer_user_id)
        if volunteer is None:
            raise NotFoundError("Volunteer profile not found")

        opportunities = await crud_opportunity.list_published(self.db, utcnow(), self.pool_size)

        scored = [(opportunity, score_match(volunteer, opportunity, today)) for opportunity in opportunities]
        qualified = sorted(
            (pair for pair in scored if pair[1].value >= min_score),
            key=lambda pair: pair[1].value,
            reverse=True,
        )[:limit]

        return [
            Recommendation(rank=index, opportunity=opportunity, score=score)
            for index, (opportunity, score) in enumerate(qualified, start=1)
        ]
