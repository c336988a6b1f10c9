"""
Charity Matches API
Volunteer matching and system-suggested matches for charities
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.api.deps import get_db, get_notifier, require_role
from volunteer_hub.config import settings
from volunteer_hub.core.security import Caller
from volunteer_hub.schemas.application import ApplicationResponse
from volunteer_hub.schemas.matching import (
    GenerateMatchesRequest,
    MatchDetailsResponse,
    MatchResultsResponse,
    OpportunityNeedResponse,
    RankedMatchResponse,
    SuggestedMatchResponse,
    SuggestionReviewRequest,
    SystemMatchResponse,
    match_score_response,
    volunteer_summary,
)
from volunteer_hub.services.matching_service import MatchingService
from volunteer_hub.services.notification_service import NotificationDispatcher
from volunteer_hub.services.suggestion_service import SuggestionService
from volunteer_hub.utils.constants import Role

router = APIRouter()

charity_or_moderator = require_role(Role.CHARITY.value, Role.MODERATOR.value)
charity_only = require_role(Role.CHARITY.value)


def get_suggestions(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> SuggestionService:
    return SuggestionService(db, notifier)


@router.get("/opportunities/needing-matches", response_model=List[OpportunityNeedResponse])
async def opportunities_needing_matches(
    caller: Caller = Depends(charity_only),
    suggestions: SuggestionService = Depends(get_suggestions),
):
    needs = await suggestions.get_opportunities_needing_matches(caller.user_id)
    return [
        OpportunityNeedResponse(
            opportunity_id=n.opportunity.id,
            title=n.opportunity.title,
            start_date=n.opportunity.start_date,
            number_of_volunteers=n.opportunity.number_of_volunteers,
            volunteers_confirmed=n.opportunity.volunteers_confirmed,
            spots_remaining=n.spots_remaining,
            pending_suggestions=n.pending_suggestions,
        )
        for n in needs
    ]


@router.get("/opportunities/{opportunity_id}", response_model=MatchResultsResponse)
async def find_matches(
    opportunity_id: UUID,
    limit: int = Query(settings.DEFAULT_MATCH_LIMIT),
    min_score: int = Query(settings.DEFAULT_MIN_MATCH_SCORE),
    caller: Caller = Depends(charity_or_moderator),
    db: AsyncSession = Depends(get_db),
):
    """
    Rank approved volunteers for an opportunity

    **Auth**: Charity or moderator
    """
    results = await MatchingService(db).find_matches(opportunity_id, limit=limit, min_score=min_score)
    return MatchResultsResponse(
        opportunity_id=results.opportunity.id,
        total_found=results.total_found,
        total_evaluated=results.total_evaluated,
        min_score=results.min_score,
        limit=results.limit,
        matches=[
            RankedMatchResponse(
                rank=m.rank,
                volunteer=volunteer_summary(m.volunteer),
                score=match_score_response(m.score),
            )
            for m in results.matches
        ],
    )


@router.post(
    "/opportunities/{opportunity_id}/generate",
    response_model=List[SystemMatchResponse],
    status_code=status.HTTP_201_CREATED,
)
async def generate_system_matches(
    opportunity_id: UUID,
    body: Optional[GenerateMatchesRequest] = None,
    caller: Caller = Depends(charity_or_moderator),
    suggestions: SuggestionService = Depends(get_suggestions),
):
    """Create pending, system-matched applications for the strongest candidates."""
    max_matches = (body.max_matches if body else None) or settings.SYSTEM_MATCH_DEFAULT_MAX
    created = await suggestions.create_system_matches(opportunity_id, max_matches, caller=caller)
    return [
        SystemMatchResponse(
            application=ApplicationResponse.model_validate(c.application),
            volunteer=volunteer_summary(c.match.volunteer),
            score=match_score_response(c.match.score),
        )
        for c in created
    ]


@router.get("", response_model=List[SuggestedMatchResponse])
async def suggested_matches_for_review(
    opportunity_id: Optional[UUID] = Query(None),
    caller: Caller = Depends(charity_only),
    suggestions: SuggestionService = Depends(get_suggestions),
):
    applications = await suggestions.get_suggested_matches_for_review(caller.user_id, opportunity_id)
    return [
        SuggestedMatchResponse(
            application=ApplicationResponse.model_validate(a),
            volunteer=volunteer_summary(a.volunteer),
            opportunity_title=a.opportunity.title,
        )
        for a in applications
    ]


@router.get("/{application_id}", response_model=MatchDetailsResponse)
async def match_details(
    application_id: UUID,
    caller: Caller = Depends(charity_only),
    suggestions: SuggestionService = Depends(get_suggestions),
):
    details = await suggestions.get_match_details(application_id, caller.user_id)
    return MatchDetailsResponse(
        application=ApplicationResponse.model_validate(details.application),
        volunteer=volunteer_summary(details.application.volunteer),
        score=match_score_response(details.score),
        recent_applications=[ApplicationResponse.model_validate(a) for a in details.recent_applications],
    )


@router.post("/{application_id}/review", response_model=ApplicationResponse)
async def review_suggested_match(
    application_id: UUID,
    body: SuggestionReviewRequest,
    caller: Caller = Depends(charity_only),
    suggestions: SuggestionService = Depends(get_suggestions),
):
    """
    Accept or decline a suggested match

    accept moves it to under_review, decline rejects it.
    """
    return await suggestions.review_suggested_match(application_id, caller.user_id, body.decision, body.notes)
