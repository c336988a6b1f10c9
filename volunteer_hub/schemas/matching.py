"""Matching and suggestion schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from volunteer_hub.schemas.application import ApplicationResponse


class MatchFactorResponse(BaseModel):
    name: str
    points: float
    detail: str

    class Config:
        from_attributes = True


class MatchScoreResponse(BaseModel):
    value: int
    band: str
    color: str
    factors: List[MatchFactorResponse]

    class Config:
        from_attributes = True


class VolunteerSummary(BaseModel):
    id: UUID
    full_name: Optional[str] = None
    city: Optional[str] = None
    skills: List[str] = []
    interests: List[str] = []
    rating: Optional[float] = None
    total_hours_volunteered: int = 0


class RankedMatchResponse(BaseModel):
    rank: int
    volunteer: VolunteerSummary
    score: MatchScoreResponse


class MatchResultsResponse(BaseModel):
    opportunity_id: UUID
    total_found: int
    total_evaluated: int
    min_score: int
    limit: int
    matches: List[RankedMatchResponse]


class GenerateMatchesRequest(BaseModel):
    max_matches: Optional[int] = None


class SystemMatchResponse(BaseModel):
    application: ApplicationResponse
    volunteer: VolunteerSummary
    score: MatchScoreResponse


class SuggestionReviewRequest(BaseModel):
    decision: str
    notes: Optional[str] = None


class SuggestedMatchResponse(BaseModel):
    application: ApplicationResponse
    volunteer: VolunteerSummary
    opportunity_title: str


class MatchDetailsResponse(BaseModel):
    application: ApplicationResponse
    volunteer: VolunteerSummary
    score: MatchScoreResponse
    recent_applications: List[ApplicationResponse]


class OpportunityNeedResponse(BaseModel):
    opportunity_id: UUID
    title: str
    start_date: Optional[datetime] = None
    number_of_volunteers: int
    volunteers_confirmed: int
    spots_remaining: int
    pending_suggestions: int


class RecommendationResponse(BaseModel):
    rank: int
    opportunity_id: UUID
    title: str
    category: Optional[str] = None
    location_type: str
    start_date: Optional[datetime] = None
    score: MatchScoreResponse


def volunteer_summary(volunteer) -> VolunteerSummary:
    return VolunteerSummary(
        id=volunteer.id,
        full_name=volunteer.user.full_name if volunteer.user else None,
        city=volunteer.city,
        skills=volunteer.skills or [],
        interests=volunteer.interests or [],
        rating=volunteer.rating,
        total_hours_volunteered=volunteer.total_hours_volunteered or 0,
    )


def match_score_response(score) -> MatchScoreResponse:
    return MatchScoreResponse(
        value=score.value,
        band=score.band,
        color=score.color,
        factors=[MatchFactorResponse(name=f.name, points=f.points, detail=f.detail) for f in score.factors],
    )
