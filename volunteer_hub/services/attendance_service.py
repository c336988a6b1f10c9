"""
Attendance Service
Post-event attendance records and the volunteer totals derived from them.

Totals (hours, completed count, average charity rating) are recomputed from
the volunteer's full attendance history inside the same transaction as every
attendance write, never adjusted incrementally.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from volunteer_hub.core.security import Caller
from volunteer_hub.crud import crud_application, crud_attendance, crud_opportunity, crud_volunteer
from volunteer_hub.crud.crud_application import ApplicationQuery
from volunteer_hub.models.application import Application
from volunteer_hub.models.attendance import Attendance
from volunteer_hub.models.opportunity import Opportunity
from volunteer_hub.utils.constants import MAX_RATING, MIN_RATING, ApplicationStatus, AttendanceStatus
from volunteer_hub.utils.helpers import round_half_up

logger = structlog.get_logger(__name__)

_ATTENDANCE_STATUSES = frozenset(s.value for s in AttendanceStatus)


@dataclass
class AttendanceRow:
    """A confirmed volunteer and their attendance record, if one exists yet."""
    application: Application
    attendance: Optional[Attendance]


@dataclass
class AttendanceHistory:
    records: List[Attendance]
    total: int


def _validate_rating(rating: Optional[int]) -> None:
    if rating is not None and not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")


class AttendanceService:
    """Records attendance and keeps volunteer totals consistent."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _owned_opportunity(self, opportunity_id: UUID, caller: Caller) -> Opportunity:
        opportunity = await crud_opportunity.get(self.db, opportunity_id)
        if opportunity is None:
            raise NotFoundError("Opportunity not found")
        if opportunity.owner_user_id != caller.user_id:
            raise ForbiddenError("Not authorized to manage attendance for this opportunity")
        return opportunity

    async def record_attendance(
        self,
        caller: Caller,
        opportunity_id: UUID,
        volunteer_id: UUID,
        status: str,
        hours_worked: Optional[float] = None,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
        notes: Optional[str] = None,
        charity_feedback: Optional[str] = None,
        charity_rating: Optional[int] = None,
    ) -> Attendance:
        """
        Create or update the attendance record for (opportunity, volunteer).

        Only the charity owning the opportunity may record, and only for a
        volunteer whose application is confirmed.
        """
        if status not in _ATTENDANCE_STATUSES:
            raise ValidationError(
                f"Invalid attendance status '{status}'. Must be one of: {', '.join(sorted(_ATTENDANCE_STATUSES))}"
            )
        if hours_worked is not None and hours_worked < 0:
            raise ValidationError("Hours worked cannot be negative")
        _validate_rating(charity_rating)
        if check_in_time and check_out_time and check_out_time < check_in_time:
            raise ValidationError("Check-out time cannot be before check-in time")

        opportunity = await self._owned_opportunity(opportunity_id, caller)

        application = await crud_application.get_for_pair(self.db, opportunity.id, volunteer_id)
        if application is None or application.status != ApplicationStatus.CONFIRMED.value:
            raise ConflictError("Attendance can only be recorded for confirmed volunteers")

        attendance = await crud_attendance.get_for_pair(self.db, opportunity.id, volunteer_id)
        created = attendance is None
        if created:
            attendance = Attendance(
                opportunity_id=opportunity.id,
                volunteer_id=volunteer_id,
                recorded_by=caller.user_id,
            )

        # A re-record replaces the whole record; omitted fields are cleared
        attendance.status = status
        attendance.recorded_by = caller.user_id
        attendance.hours_worked = hours_worked
        attendance.check_in_time = check_in_time
        attendance.check_out_time = check_out_time
        attendance.notes = notes
        attendance.charity_feedback = charity_feedback
        attendance.charity_rating = charity_rating
        application.hours_worked = round_half_up(hours_worked or 0)

        if created:
            await crud_attendance.add(self.db, attendance)
        else:
            await self.db.flush()

        totals = await crud_attendance.recompute_volunteer_totals(self.db, volunteer_id)
        await self.db.commit()

        logger.info(
            "attendance_recorded",
            attendance_id=str(attendance.id),
            volunteer_id=str(volunteer_id),
            status=status,
            created=created,
            total_hours=totals.total_hours_volunteered,
            completed=totals.total_opportunities_completed,
        )
        return attendance

    async def delete_attendance(self, caller: Caller, attendance_id: UUID) -> None:
        attendance = await crud_attendance.get(self.db, attendance_id)
        if attendance is None:
            raise NotFoundError("Attendance record not found")
        if attendance.opportunity.owner_user_id != caller.user_id:
            raise ForbiddenError("Not authorized to delete this attendance record")

        volunteer_id = attendance.volunteer_id
        await self.db.delete(attendance)
        await self.db.flush()
        await crud_attendance.recompute_volunteer_totals(self.db, volunteer_id)
        await self.db.commit()

        logger.info("attendance_deleted", attendance_id=str(attendance_id), volunteer_id=str(volunteer_id))

    async def submit_volunteer_feedback(
        self,
        caller: Caller,
        attendance_id: UUID,
        rating: Optional[int],
        feedback: Optional[str] = None,
    ) -> Attendance:
        """Volunteer rates the charity for an attended opportunity."""
        if rating is None:
            raise ValidationError("Rating is required")
        _validate_rating(rating)

        attendance = await crud_attendance.get(self.db, attendance_id)
        if attendance is None:
            raise NotFoundError("Attendance record not found")
        if attendance.volunteer is None or attendance.volunteer.user_id != caller.user_id:
            raise ForbiddenError("Not authorized to rate this attendance record")

        attendance.volunteer_rating = rating
        attendance.volunteer_feedback = feedback
        await self.db.commit()

        logger.info("volunteer_feedback_submitted", attendance_id=str(attendance.id), rating=rating)
        return attendance

    async def get_volunteers_for_attendance(self, caller: Caller, opportunity_id: UUID) -> List[AttendanceRow]:
        opportunity = await self._owned_opportunity(opportunity_id, caller)

        confirmed = await crud_application.list_applications(
            self.db,
            ApplicationQuery(opportunity_id=opportunity.id, statuses=(ApplicationStatus.CONFIRMED.value,)),
        )
        records = {
            record.volunteer_id: record
            for record in await crud_attendance.list_for_opportunity(self.db, opportunity.id)
        }
        return [AttendanceRow(application=app, attendance=records.get(app.volunteer_id)) for app in confirmed]

    async def get_my_attendance_history(
        self,
        caller: Caller,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> AttendanceHistory:
        """The calling volunteer's own attendance records, newest first."""
        if status is not None and status not in _ATTENDANCE_STATUSES:
            raise ValidationError(
                f"Invalid attendance status '{status}'. Must be one of: {', '.join(sorted(_ATTENDANCE_STATUSES))}"
            )

        volunteer = await crud_volunteer.get_by_user(self.db, caller.user_id)
        if volunteer is None:
            raise NotFoundError("Volunteer profile not found")

        records, total = await crud_attendance.list_for_volunteer(
            self.db, volunteer.id, status=status, limit=limit, offset=offset
        )
        return AttendanceHistory(records=records, total=total)
