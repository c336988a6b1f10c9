"""
Opportunity Service
Opportunity reads, debounced view counting and moderator suspension.

A view by the same client on the same opportunity counts at most once per
VIEW_DEBOUNCE_SECONDS. The marker lives in Redis with an expiry, so it is
shared by all workers and cleans itself up; without a cache every view counts.

Suspending stores the current status in previous_status and resuming puts it
back (published when nothing was stored).
"""

from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.config import settings
from volunteer_hub.core.cache import CacheManager
from volunteer_hub.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from volunteer_hub.core.security import Caller
from volunteer_hub.crud import crud_opportunity
from volunteer_hub.models.opportunity import Opportunity
from volunteer_hub.services import notification_service as notices
from volunteer_hub.services.notification_service import NotificationDispatcher
from volunteer_hub.utils.constants import OpportunityStatus
from volunteer_hub.utils.helpers import utcnow

logger = structlog.get_logger(__name__)


class OpportunityService:
    def __init__(
        self,
        db: AsyncSession,
        cache_manager: Optional[CacheManager] = None,
        notifier: Optional[NotificationDispatcher] = None,
    ):
        self.db = db
        self.cache_manager = cache_manager
        self.notifier = notifier

    async def get_opportunity(self, opportunity_id: UUID) -> Opportunity:
        opportunity = await crud_opportunity.get(self.db, opportunity_id)
        if opportunity is None:
            raise NotFoundError("Opportunity not found")
        return opportunity

    def _first_view_in_window(self, opportunity_id: UUID, client_key: str) -> bool:
        if self.cache_manager is None:
            return True
        key = self.cache_manager.key("opportunity_view", opportunity_id, client_key)
        return self.cache_manager.set_if_absent(key, settings.VIEW_DEBOUNCE_SECONDS)

    async def record_view(self, opportunity_id: UUID, client_key: str) -> bool:
        """Count a view unless this client viewed the opportunity recently. Returns True if counted."""
        opportunity = await self.get_opportunity(opportunity_id)

        if not self._first_view_in_window(opportunity.id, client_key):
            logger.debug("opportunity_view_debounced", opportunity_id=str(opportunity_id), client=client_key)
            return False

        await crud_opportunity.increment_views(self.db, opportunity)
        await self.db.commit()
        return True

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    async def suspend_opportunity(self, opportunity_id: UUID, caller: Caller, reason: Optional[str]) -> Opportunity:
        """Take an opportunity out of circulation. A reason is mandatory."""
        if not caller.is_moderator:
            raise ForbiddenError("Moderator access required")
        if not reason or not reason.strip():
            raise ValidationError("Suspension reason is required")

        opportunity = await self.get_opportunity(opportunity_id)
        if opportunity.canonical_status == OpportunityStatus.SUSPENDED:
            raise ConflictError("Opportunity is already suspended")

        opportunity.previous_status = opportunity.status
        opportunity.status = OpportunityStatus.SUSPENDED.value
        opportunity.suspended_at = utcnow()
        opportunity.suspended_by = caller.user_id
        opportunity.suspension_reason = reason.strip()
        await self.db.commit()

        logger.info(
            "opportunity_suspended",
            opportunity_id=str(opportunity.id),
            previous_status=opportunity.previous_status,
            moderator_id=str(caller.user_id),
        )
        if self.notifier is not None:
            await self.notifier.notify(
                notices.opportunity_suspended(
                    opportunity.owner_user_id, opportunity.id, opportunity.title, opportunity.suspension_reason
                )
            )
        return opportunity

    async def resume_opportunity(
        self, opportunity_id: UUID, caller: Caller, notes: Optional[str] = None
    ) -> Opportunity:
        if not caller.is_moderator:
            raise ForbiddenError("Moderator access required")

        opportunity = await self.get_opportunity(opportunity_id)
        if opportunity.canonical_status != OpportunityStatus.SUSPENDED:
            raise ConflictError("Opportunity is not suspended")

        restored = opportunity.previous_status or OpportunityStatus.PUBLISHED.value
        opportunity.status = restored
        opportunity.previous_status = None
        opportunity.suspended_at = None
        opportunity.suspended_by = None
        opportunity.suspension_reason = None
        opportunity.resumed_at = utcnow()
        opportunity.resumed_by = caller.user_id
        await self.db.commit()

        logger.info(
            "opportunity_resumed",
            opportunity_id=str(opportunity.id),
            status=restored,
            moderator_id=str(caller.user_id),
        )
        if self.notifier is not None:
            await self.notifier.notify(
                notices.opportunity_resumed(
                    opportunity.owner_user_id,
                    opportunity.id,
                    opportunity.title,
                    opportunity.canonical_status.value,
                    notes,
                )
            )
        return opportunity
