"""
Opportunities API
Opportunity detail (with view counting) and volunteer recommendations
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.api.deps import get_cache, get_db, require_role
from volunteer_hub.config import settings
from volunteer_hub.core.cache import CacheManager
from volunteer_hub.core.security import Caller
from volunteer_hub.schemas.matching import RecommendationResponse, match_score_response
from volunteer_hub.schemas.volunteer import OpportunityResponse
from volunteer_hub.services.matching_service import MatchingService
from volunteer_hub.services.opportunity_service import OpportunityService
from volunteer_hub.utils.constants import Role

router = APIRouter()


def opportunity_response(opportunity) -> OpportunityResponse:
    # Legacy status values are reported in the canonical vocabulary
    return OpportunityResponse.model_validate(opportunity).model_copy(
        update={"status": opportunity.canonical_status.value}
    )


@router.get("/recommended", response_model=List[RecommendationResponse])
async def recommended_opportunities(
    limit: int = Query(settings.RECOMMENDATION_LIMIT),
    caller: Caller = Depends(require_role(Role.VOLUNTEER.value)),
    db: AsyncSession = Depends(get_db),
):
    """
    Upcoming published opportunities ranked for the current volunteer

    **Auth**: Volunteer
    """
    recommendations = await MatchingService(db).recommend_opportunities(caller.user_id, limit=limit)
    return [
        RecommendationResponse(
            rank=r.rank,
            opportunity_id=r.opportunity.id,
            title=r.opportunity.title,
            category=r.opportunity.category,
            location_type=r.opportunity.location_type,
            start_date=r.opportunity.start_date,
            score=match_score_response(r.score),
        )
        for r in recommendations
    ]


@router.get("/{opportunity_id}", response_model=OpportunityResponse)
async def get_opportunity(
    opportunity_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    cache_manager: Optional[CacheManager] = Depends(get_cache),
):
    """
    Opportunity detail

    Public. Each client counts as one view per opportunity per
    VIEW_DEBOUNCE_SECONDS.
    """
    service = OpportunityService(db, cache_manager)
    client_key = request.client.host if request.client else "anonymous"
    await service.record_view(opportunity_id, client_key)
    return opportunity_response(await service.get_opportunity(opportunity_id))
