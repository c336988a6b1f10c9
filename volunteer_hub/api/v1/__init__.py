"""API v1 routes."""

from fastapi import APIRouter

from volunteer_hub.api.v1.endpoints import (
    applications,
    attendance,
    charity_matches,
    moderator,
    opportunities,
    volunteers,
)

api_router = APIRouter()

# Include all route modules
api_router.include_router(applications.router, prefix="/applications", tags=["Applications"])
api_router.include_router(charity_matches.router, prefix="/charity/matches", tags=["Charity Matches"])
api_router.include_router(opportunities.router, prefix="/opportunities", tags=["Opportunities"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(moderator.router, prefix="/moderator", tags=["Moderator"])
api_router.include_router(volunteers.router, prefix="/volunteers", tags=["Volunteers"])
