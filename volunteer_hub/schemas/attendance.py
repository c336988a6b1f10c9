"""Attendance and rating schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class AttendanceCreate(BaseModel):
    opportunity_id: UUID
    volunteer_id: UUID
    status: str
    hours_worked: Optional[float] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    notes: Optional[str] = None
    charity_feedback: Optional[str] = None
    charity_rating: Optional[int] = None


class VolunteerFeedbackRequest(BaseModel):
    rating: Optional[int] = None
    feedback: Optional[str] = None


class AttendanceResponse(BaseModel):
    id: UUID
    opportunity_id: UUID
    volunteer_id: UUID
    status: str
    hours_worked: Optional[float] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    notes: Optional[str] = None
    charity_feedback: Optional[str] = None
    charity_rating: Optional[int] = None
    volunteer_feedback: Optional[str] = None
    volunteer_rating: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AttendanceRowResponse(BaseModel):
    application_id: UUID
    volunteer_id: UUID
    volunteer_name: Optional[str] = None
    hours_committed: Optional[int] = None
    attendance: Optional[AttendanceResponse] = None


class RatingEntryResponse(BaseModel):
    rating: int
    opportunity_id: UUID
    opportunity_title: Optional[str] = None
    date: datetime

    class Config:
        from_attributes = True


class RatingSummaryResponse(BaseModel):
    average_rating: float
    total_ratings: int
    ratings: List[RatingEntryResponse]

    class Config:
        from_attributes = True


class AttendanceHistoryResponse(BaseModel):
    records: List[AttendanceResponse]
    total: int

    class Config:
        from_attributes = True
