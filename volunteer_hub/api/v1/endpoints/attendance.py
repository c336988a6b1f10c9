"""
Attendance API
Attendance recording, volunteer feedback and ratings
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.api.deps import get_current_caller, get_db, require_role
from volunteer_hub.core.security import Caller
from volunteer_hub.schemas.attendance import (
    AttendanceCreate,
    AttendanceHistoryResponse,
    AttendanceResponse,
    AttendanceRowResponse,
    RatingSummaryResponse,
    VolunteerFeedbackRequest,
)
from volunteer_hub.services.attendance_service import AttendanceService
from volunteer_hub.services.rating_service import RatingService
from volunteer_hub.utils.constants import Role

router = APIRouter()

charity_only = require_role(Role.CHARITY.value)


@router.post("", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def record_attendance(
    body: AttendanceCreate,
    caller: Caller = Depends(charity_only),
    db: AsyncSession = Depends(get_db),
):
    """
    Record (or update) attendance for a confirmed volunteer

    **Auth**: Charity owning the opportunity
    """
    return await AttendanceService(db).record_attendance(
        caller,
        body.opportunity_id,
        body.volunteer_id,
        body.status,
        hours_worked=body.hours_worked,
        check_in_time=body.check_in_time,
        check_out_time=body.check_out_time,
        notes=body.notes,
        charity_feedback=body.charity_feedback,
        charity_rating=body.charity_rating,
    )


@router.delete("/{attendance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance(
    attendance_id: UUID,
    caller: Caller = Depends(charity_only),
    db: AsyncSession = Depends(get_db),
):
    await AttendanceService(db).delete_attendance(caller, attendance_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{attendance_id}/feedback", response_model=AttendanceResponse)
async def submit_volunteer_feedback(
    attendance_id: UUID,
    body: VolunteerFeedbackRequest,
    caller: Caller = Depends(require_role(Role.VOLUNTEER.value)),
    db: AsyncSession = Depends(get_db),
):
    """Rate the charity for an attended opportunity."""
    return await AttendanceService(db).submit_volunteer_feedback(
        caller, attendance_id, body.rating, body.feedback
    )


@router.get("/opportunities/{opportunity_id}/volunteers", response_model=List[AttendanceRowResponse])
async def volunteers_for_attendance(
    opportunity_id: UUID,
    caller: Caller = Depends(charity_only),
    db: AsyncSession = Depends(get_db),
):
    rows = await AttendanceService(db).get_volunteers_for_attendance(caller, opportunity_id)
    return [
        AttendanceRowResponse(
            application_id=row.application.id,
            volunteer_id=row.application.volunteer_id,
            volunteer_name=row.application.volunteer.user.full_name if row.application.volunteer.user else None,
            hours_committed=row.application.hours_committed,
            attendance=AttendanceResponse.model_validate(row.attendance) if row.attendance else None,
        )
        for row in rows
    ]


@router.get("/ratings/volunteers/{volunteer_id}", response_model=RatingSummaryResponse)
async def volunteer_rating(
    volunteer_id: UUID,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Average rating charities gave this volunteer."""
    return await RatingService(db).calculate_volunteer_average_rating(volunteer_id)


@router.get("/ratings/charities/{charity_id}", response_model=RatingSummaryResponse)
async def charity_rating(
    charity_id: UUID,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """Average rating volunteers gave this charity."""
    return await RatingService(db).calculate_charity_average_rating(charity_id)


@router.get("/my-history", response_model=AttendanceHistoryResponse)
async def my_attendance_history(
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(require_role(Role.VOLUNTEER.value)),
    db: AsyncSession = Depends(get_db),
):
    """
    Your own attendance records, newest first

    **Auth**: Volunteer
    """
    history = await AttendanceService(db).get_my_attendance_history(caller, status_filter, limit, offset)
    return AttendanceHistoryResponse(
        records=[AttendanceResponse.model_validate(record) for record in history.records],
        total=history.total,
    )
