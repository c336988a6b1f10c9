"""Application schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# Request bodies. Range and vocabulary checks live in the service layer so
# every caller gets the same error shape.
class ApplicationCreate(BaseModel):
    opportunity_id: UUID
    message: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None


class WithdrawRequest(BaseModel):
    reason: Optional[str] = None


class AdditionalInfoRequest(BaseModel):
    fields: List[str] = Field(default_factory=list, description="Names of the pieces of information needed")
    message: Optional[str] = None


class AdditionalInfoProvide(BaseModel):
    info: Dict[str, Any] = Field(default_factory=dict)


class VettingRequest(BaseModel):
    score: Optional[int] = Field(None, description="Vetting score 1-10")
    notes: Optional[str] = None
    flag_for_moderation: bool = False
    flag_reason: Optional[str] = None
    requires_background_check: bool = False


class ModeratorReviewRequest(BaseModel):
    decision: str = Field(..., description="approved, rejected or escalated")
    notes: Optional[str] = None
    override_status: Optional[str] = None


class ConfirmParticipationRequest(BaseModel):
    committed_hours: Optional[int] = Field(None, description="Hours committed, 1-168")


# Responses
class ApplicationResponse(BaseModel):
    id: UUID
    opportunity_id: UUID
    volunteer_id: UUID
    status: str
    application_message: Optional[str] = None
    review_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    additional_info_requested: Optional[Dict[str, Any]] = None
    additional_info_provided: Optional[Dict[str, Any]] = None
    vetting_score: Optional[int] = None
    flagged_for_moderation: bool = False
    flagged_reason: Optional[str] = None
    moderator_review_status: Optional[str] = None
    is_system_matched: bool = False
    match_score: Optional[float] = None
    withdrawn_reason: Optional[str] = None
    withdrawn_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    hours_committed: Optional[int] = None
    hours_worked: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationResponse]
    total: int
