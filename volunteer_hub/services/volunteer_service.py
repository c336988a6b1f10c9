"""
Volunteer Service
Moderator approval of volunteer profiles. Only approved volunteers can apply
or be matched.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from volunteer_hub.core.security import Caller
from volunteer_hub.crud import crud_volunteer
from volunteer_hub.models.volunteer import Volunteer
from volunteer_hub.services import notification_service as notices
from volunteer_hub.services.notification_service import NotificationDispatcher
from volunteer_hub.utils.constants import ApprovalStatus
from volunteer_hub.utils.helpers import utcnow

logger = structlog.get_logger(__name__)


@dataclass
class VolunteerStats:
    total: int
    pending: int
    approved: int
    rejected: int


class VolunteerService:
    def __init__(self, db: AsyncSession, notifier: NotificationDispatcher):
        self.db = db
        self.notifier = notifier

    async def _load_for_moderation(self, volunteer_id: UUID, caller: Caller) -> Volunteer:
        if not caller.is_moderator:
            raise ForbiddenError("Moderator access required")
        volunteer = await crud_volunteer.get(self.db, volunteer_id)
        if volunteer is None:
            raise NotFoundError("Volunteer not found")
        return volunteer

    async def approve_volunteer(
        self, volunteer_id: UUID, caller: Caller, notes: Optional[str] = None
    ) -> Volunteer:
        volunteer = await self._load_for_moderation(volunteer_id, caller)

        volunteer.approval_status = ApprovalStatus.APPROVED.value
        volunteer.approval_date = utcnow()
        volunteer.approved_by = caller.user_id
        volunteer.approval_notes = notes
        await self.db.commit()

        logger.info("volunteer_approved", volunteer_id=str(volunteer.id), moderator_id=str(caller.user_id))
        await self.notifier.notify(notices.volunteer_verified(volunteer.user_id))
        return volunteer

    async def reject_volunteer(self, volunteer_id: UUID, caller: Caller, notes: Optional[str]) -> Volunteer:
        """Reject a profile. A reason is mandatory so the volunteer knows what to fix."""
        if not notes or not notes.strip():
            raise ValidationError("Rejection notes are required")

        volunteer = await self._load_for_moderation(volunteer_id, caller)

        volunteer.approval_status = ApprovalStatus.REJECTED.value
        volunteer.approval_date = utcnow()
        volunteer.approved_by = caller.user_id
        volunteer.approval_notes = notes.strip()
        await self.db.commit()

        logger.info("volunteer_rejected", volunteer_id=str(volunteer.id), moderator_id=str(caller.user_id))
        await self.notifier.notify(notices.volunteer_rejected(volunteer.user_id, volunteer.approval_notes))
        return volunteer

    async def get_volunteer_stats(self, caller: Caller) -> VolunteerStats:
        if not caller.is_moderator:
            raise ForbiddenError("Moderator access required")

        counts = await crud_volunteer.count_by_approval_status(self.db)
        return VolunteerStats(
            total=sum(counts.values()),
            pending=counts.get(ApprovalStatus.PENDING.value, 0),
            approved=counts.get(ApprovalStatus.APPROVED.value, 0),
            rejected=counts.get(ApprovalStatus.REJECTED.value, 0),
        )

    async def get_my_profile(self, caller: Caller) -> Volunteer:
        volunteer = await crud_volunteer.get_by_user(self.db, caller.user_id)
        if volunteer is None:
            raise NotFoundError("Volunteer profile not found")
        return volunteer
