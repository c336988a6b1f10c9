"""
Applications API
Volunteer applications and their lifecycle transitions
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.api.deps import get_current_caller, get_db, get_notifier
from volunteer_hub.core.security import Caller
from volunteer_hub.schemas.application import (
    AdditionalInfoProvide,
    AdditionalInfoRequest,
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationStatusUpdate,
    ConfirmParticipationRequest,
    VettingRequest,
    WithdrawRequest,
)
from volunteer_hub.services.application_lifecycle import ApplicationLifecycle
from volunteer_hub.services.notification_service import NotificationDispatcher

router = APIRouter()


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> ApplicationLifecycle:
    return ApplicationLifecycle(db, notifier)


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    body: ApplicationCreate,
    caller: Caller = Depends(get_current_caller),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """
    Apply to an opportunity

    **Auth**: Volunteer with an approved profile
    """
    return await lifecycle.create_application(body.opportunity_id, caller, body.message)


@router.get("", response_model=ApplicationListResponse)
async def list_applications(
    status_filter: Optional[str] = Query(None, alias="status"),
    caller: Caller = Depends(get_current_caller),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """
    List applications visible to the caller

    Volunteers get their own applications, charities the applications on
    their opportunities, moderators everything.
    """
    applications = await lifecycle.list_applications_for_caller(caller, status_filter)
    return ApplicationListResponse(
        applications=[ApplicationResponse.model_validate(a) for a in applications],
        total=len(applications),
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: UUID,
    caller: Caller = Depends(get_current_caller),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.get_application(application_id, caller)


@router.put("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: UUID,
    body: ApplicationStatusUpdate,
    caller: Caller = Depends(get_current_caller),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """
    Review an application (approve, accept, reject, confirm, under_review)

    **Auth**: Charity owning the opportunity, or moderator
    """
    return await lifecycle.update_application_status(application_id, body.status, caller, body.notes)


@router.post("/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw_application(
    application_id: UUID,
    body: WithdrawRequest,
    caller: Caller = Depends(get_current_caller),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.withdraw_application(application_id, caller, body.reason)


@router.post("/{application_id}/request-info", response_model=ApplicationResponse)
async def request_additional_info(
    application_id: UUID,
    body: AdditionalInfoRequest,
    caller: Caller = Depends(get_current_caller),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.request_additional_info(application_id, body.fields, caller, body.message)


@router.post("/{application_id}/provide-info", response_model=ApplicationResponse)
async def provide_additional_info(
    application_id: UUID,
    body: AdditionalInfoProvide,
    caller: Caller = Depends(get_current_caller),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.provide_additional_info(application_id, body.info, caller)


@router.post("/{application_id}/vetting", response_model=ApplicationResponse)
async def complete_vetting(
    application_id: UUID,
    body: VettingRequest,
    caller: Caller = Depends(get_current_caller),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """
    Record vetting and route the application

    Flagging sends it to moderator review; otherwise a background-check
    requirement parks it, else it goes back to under_review.
    """
    return await lifecycle.complete_vetting(
        application_id,
        caller,
        score=body.score,
        notes=body.notes,
        flag_for_moderation=body.flag_for_moderation,
        flag_reason=body.flag_reason,
        requires_background_check=body.requires_background_check,
    )


@router.post("/{application_id}/confirm", response_model=ApplicationResponse)
async def confirm_participation(
    application_id: UUID,
    body: ConfirmParticipationRequest,
    caller: Caller = Depends(get_current_caller),
    lifecycle: ApplicationLifecycle = Depends(get_lifecycle),
):
    """
    Confirm participation in an approved application

    **Auth**: The applying volunteer
    """
    return await lifecycle.confirm_participation(application_id, body.committed_hours, caller)
