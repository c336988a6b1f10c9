"""
Volunteers API
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from volunteer_hub.api.deps import get_current_caller, get_db, get_notifier, require_role
from volunteer_hub.core.security import Caller
from volunteer_hub.schemas.attendance import RatingSummaryResponse
from volunteer_hub.schemas.volunteer import VolunteerResponse
from volunteer_hub.services.notification_service import NotificationDispatcher
from volunteer_hub.services.rating_service import RatingService
from volunteer_hub.services.volunteer_service import VolunteerService
from volunteer_hub.utils.constants import Role

router = APIRouter()


@router.get("/me", response_model=VolunteerResponse)
async def my_profile(
    caller: Caller = Depends(require_role(Role.VOLUNTEER.value)),
    db=Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Current volunteer's profile, including approval status and totals."""
    return await VolunteerService(db, notifier).get_my_profile(caller)


@router.get("/{volunteer_id}/rating", response_model=RatingSummaryResponse)
async def volunteer_rating(
    volunteer_id: UUID,
    caller: Caller = Depends(get_current_caller),
    db=Depends(get_db),
):
    return await RatingService(db).calculate_volunteer_average_rating(volunteer_id)
