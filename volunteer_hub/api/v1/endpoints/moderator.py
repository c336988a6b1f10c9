"""
Moderator API
Moderation queue, application adjudication, volunteer approval and
opportunity suspension

**Auth**: Moderator only
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from volunteer_hub.api.deps import get_db, get_notifier, require_role
from volunteer_hub.api.v1.endpoints.applications import get_lifecycle
from volunteer_hub.api.v1.endpoints.opportunities import opportunity_response
from volunteer_hub.core.security import Caller
from volunteer_hub.schemas.application import (
    ApplicationListResponse,
    ApplicationResponse,
    ModeratorReviewRequest,
)
from volunteer_hub.schemas.volunteer import (
    OpportunityResponse,
    OpportunityResumeRequest,
    OpportunitySuspendRequest,
    VolunteerModerationRequest,
    VolunteerResponse,
    VolunteerStatsResponse,
)
from volunteer_hub.services.application_lifecycle import ApplicationLifecycle
from volunteer_hub.services.notification_service import NotificationDispatcher
from volunteer_hub.services.opportunity_service import OpportunityService
from volunteer_hub.services.volunteer_service import VolunteerService
from volunteer_hub.utils.constants import Role

router = APIRouter()

moderator_only = require_role(Role.MODERATOR.value)


def get_volunteer_service(
    db=Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> VolunteerService:
    return VolunteerService(db, notifier)


def get_opportunity_service(
    db=Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> OpportunityService:
    return OpportunityService(db, notifier=notifier)


@router.get("/applications/queue", response_model=ApplicationListResponse)
async def moderation_queue(
    flagged_reason: Optional[str] = Query(None),
    caller: Caller = Depends(moderator_only),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """Applications flagged for moderation and not yet reviewed."""
    applications = await lifecycle.list_moderator_queue(caller, flagged_reason)
    return ApplicationListResponse(
        applications=[ApplicationResponse.model_validate(a) for a in applications],
        total=len(applications),
    )


@router.post("/applications/{application_id}/review", response_model=ApplicationResponse)
async def moderator_review(
    application_id: UUID,
    body: ModeratorReviewRequest,
    caller: Caller = Depends(moderator_only),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.moderator_review(
        application_id, body.decision, caller, notes=body.notes, override_status=body.override_status
    )


@router.post("/volunteers/{volunteer_id}/approve", response_model=VolunteerResponse)
async def approve_volunteer(
    volunteer_id: UUID,
    body: Optional[VolunteerModerationRequest] = None,
    caller: Caller = Depends(moderator_only),
    volunteers: VolunteerService = Depends(get_volunteer_service),
):
    return await volunteers.approve_volunteer(volunteer_id, caller, body.notes if body else None)


@router.post("/volunteers/{volunteer_id}/reject", response_model=VolunteerResponse)
async def reject_volunteer(
    volunteer_id: UUID,
    body: VolunteerModerationRequest,
    caller: Caller = Depends(moderator_only),
    volunteers: VolunteerService = Depends(get_volunteer_service),
):
    """Reject a volunteer profile. Notes are required."""
    return await volunteers.reject_volunteer(volunteer_id, caller, body.notes)


@router.get("/volunteers/stats", response_model=VolunteerStatsResponse)
async def volunteer_stats(
    caller: Caller = Depends(moderator_only),
    volunteers: VolunteerService = Depends(get_volunteer_service),
):
    return await volunteers.get_volunteer_stats(caller)


@router.post("/opportunities/{opportunity_id}/suspend", response_model=OpportunityResponse)
async def suspend_opportunity(
    opportunity_id: UUID,
    body: OpportunitySuspendRequest,
    caller: Caller = Depends(moderator_only),
    opportunities: OpportunityService = Depends(get_opportunity_service),
):
    """
    Suspend an opportunity

    A reason is required. While suspended, only moderators can approve or
    confirm volunteers and volunteers cannot confirm participation.
    """
    opportunity = await opportunities.suspend_opportunity(opportunity_id, caller, body.reason)
    return opportunity_response(opportunity)


@router.post("/opportunities/{opportunity_id}/resume", response_model=OpportunityResponse)
async def resume_opportunity(
    opportunity_id: UUID,
    body: Optional[OpportunityResumeRequest] = None,
    caller: Caller = Depends(moderator_only),
    opportunities: OpportunityService = Depends(get_opportunity_service),
):
    """Restore the status the opportunity had before it was suspended."""
    opportunity = await opportunities.resume_opportunity(opportunity_id, caller, body.notes if body else None)
    return opportunity_response(opportunity)
