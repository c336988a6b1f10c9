"""Volunteer and opportunity schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


class VolunteerModerationRequest(BaseModel):
    notes: Optional[str] = None


class VolunteerResponse(BaseModel):
    id: UUID
    user_id: UUID
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None
    availability: Optional[Dict[str, Any]] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    approval_status: str
    approval_date: Optional[datetime] = None
    approval_notes: Optional[str] = None
    rating: Optional[float] = None
    total_hours_volunteered: int
    total_opportunities_completed: int
    is_active: bool

    class Config:
        from_attributes = True


class VolunteerStatsResponse(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int

    class Config:
        from_attributes = True


class OpportunityResponse(BaseModel):
    id: UUID
    charity_id: UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    required_skills: Optional[List[str]] = None
    number_of_volunteers: int
    volunteers_confirmed: int
    location_type: str
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    status: str
    application_deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    views: int
    suspended_at: Optional[datetime] = None
    suspension_reason: Optional[str] = None

    class Config:
        from_attributes = True


class OpportunitySuspendRequest(BaseModel):
    reason: Optional[str] = None


class OpportunityResumeRequest(BaseModel):
    notes: Optional[str] = None
