"""
Suggestion Service
System-generated volunteer proposals and the charity accept/decline workflow.

A suggestion is an ordinary Application row with is_system_matched=True in
status "pending". Accepting moves it into the normal lifecycle
(under_review); declining rejects it.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.config import settings
from volunteer_hub.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from volunteer_hub.core.security import Caller
from volunteer_hub.crud import crud_application, crud_charity, crud_opportunity
from volunteer_hub.crud.crud_application import ApplicationQuery, SuggestedMatchQuery
from volunteer_hub.models.application import Application
from volunteer_hub.models.opportunity import Opportunity
from volunteer_hub.services import notification_service as notices
from volunteer_hub.services.match_scorer import MatchScore, score_match
from volunteer_hub.services.matching_service import MatchingService, RankedMatch
from volunteer_hub.services.notification_service import NotificationDispatcher
from volunteer_hub.utils.constants import ApplicationStatus, SuggestionDecision
from volunteer_hub.utils.helpers import utcnow

logger = structlog.get_logger(__name__)

RECENT_APPLICATIONS_SHOWN = 5


@dataclass
class SystemMatch:
    application: Application
    match: RankedMatch


@dataclass
class MatchDetails:
    application: Application
    score: MatchScore
    recent_applications: List[Application] = field(default_factory=list)


@dataclass
class OpportunityNeed:
    opportunity: Opportunity
    pending_suggestions: int
    spots_remaining: int


def suggestion_message(match: RankedMatch) -> str:
    return (
        f"System-suggested match based on {match.score.band.lower()} compatibility "
        f"({match.score.value}% match)."
    )


class SuggestionService:
    """Creates and reviews system-suggested matches."""

    def __init__(self, db: AsyncSession, notifier: NotificationDispatcher):
        self.db = db
        self.notifier = notifier

    async def _charity_for(self, user_id: UUID):
        charity = await crud_charity.get_by_user(self.db, user_id)
        if charity is None:
            raise NotFoundError("Charity profile not found")
        return charity

    async def create_system_matches(
        self,
        opportunity_id: UUID,
        max_matches: int = settings.SYSTEM_MATCH_DEFAULT_MAX,
        caller: Optional[Caller] = None,
        today: Optional[date] = None,
    ) -> List[SystemMatch]:
        """
        Propose strong matches for an opportunity as pending applications.

        Volunteers that already have an application for the opportunity, in
        any status and from any source, are skipped. If another request
        inserts one of the same pairs first, the whole batch is rolled back and
        a ConflictError is raised.
        """
        results = await MatchingService(self.db).find_matches(
            opportunity_id,
            limit=max_matches,
            min_score=settings.SYSTEM_MATCH_MIN_SCORE,
            today=today,
        )
        opportunity = results.opportunity

        if caller is not None and not caller.is_moderator and opportunity.owner_user_id != caller.user_id:
            raise ForbiddenError("Not authorized to generate matches for this opportunity")

        if not results.matches:
            return []

        already_applied = await crud_application.existing_volunteer_ids(
            self.db, opportunity.id, [m.volunteer.id for m in results.matches]
        )
        fresh = [m for m in results.matches if m.volunteer.id not in already_applied]
        if not fresh:
            return []

        created = [
            SystemMatch(
                application=Application(
                    opportunity_id=opportunity.id,
                    volunteer_id=match.volunteer.id,
                    status=ApplicationStatus.PENDING.value,
                    is_system_matched=True,
                    match_score=match.score.value,
                    application_message=suggestion_message(match),
                ),
                match=match,
            )
            for match in fresh
        ]
        await crud_application.add_all(self.db, [c.application for c in created])
        await self.db.commit()

        logger.info(
            "system_matches_created",
            opportunity_id=str(opportunity.id),
            created=len(created),
            skipped_existing=len(already_applied),
        )

        await self.notifier.dispatch(
            notices.volunteer_match_suggestion(opportunity.owner_user_id, opportunity.id, c.match.volunteer.id)
            for c in created
        )
        return created

    async def get_suggested_matches_for_review(
        self, charity_user_id: UUID, opportunity_id: Optional[UUID] = None
    ) -> List[Application]:
        """Pending suggestions on the caller's opportunities, best score first, then newest."""
        charity = await self._charity_for(charity_user_id)
        query = SuggestedMatchQuery(charity_id=charity.id, opportunity_id=opportunity_id)
        return await crud_application.list_applications(self.db, query.to_query())

    async def review_suggested_match(
        self,
        application_id: UUID,
        charity_user_id: UUID,
        decision: str,
        notes: Optional[str] = None,
    ) -> Application:
        """accept -> under_review, decline -> rejected; the volunteer is notified once."""
        decisions = {
            SuggestionDecision.ACCEPT.value: ApplicationStatus.UNDER_REVIEW.value,
            SuggestionDecision.DECLINE.value: ApplicationStatus.REJECTED.value,
        }
        if decision not in decisions:
            raise ValidationError('Invalid decision. Must be "accept" or "decline"')

        application = await crud_application.get(self.db, application_id)
        if application is None:
            raise NotFoundError("Application not found")
        if application.opportunity.owner_user_id != charity_user_id:
            raise ForbiddenError("Not authorized to review this match")
        if not application.is_system_matched:
            raise ConflictError("This application is not a system-suggested match")
        if application.status != ApplicationStatus.PENDING.value:
            raise ConflictError(f"Suggested match was already reviewed (status: {application.status})")

        application.status = decisions[decision]
        application.review_notes = notes
        application.reviewed_by = charity_user_id
        application.reviewed_at = utcnow()
        await self.db.commit()

        logger.info(
            "suggested_match_reviewed",
            application_id=str(application.id),
            decision=decision,
        )
        await self.notifier.notify(
            notices.application_update(application.volunteer.user_id, application.id, application.status)
        )
        return application

    async def get_match_details(
        self, application_id: UUID, charity_user_id: UUID, today: Optional[date] = None
    ) -> MatchDetails:
        """Live score breakdown for a suggestion plus the volunteer's latest applications."""
        application = await crud_application.get(self.db, application_id)
        if application is None:
            raise NotFoundError("Application not found")
        if application.opportunity.owner_user_id != charity_user_id:
            raise ForbiddenError("Not authorized to view this match")

        recent = await crud_application.list_applications(
            self.db,
            ApplicationQuery(volunteer_id=application.volunteer_id, limit=RECENT_APPLICATIONS_SHOWN),
        )
        return MatchDetails(
            application=application,
            score=score_match(application.volunteer, application.opportunity, today),
            recent_applications=recent,
        )

    async def get_opportunities_needing_matches(self, charity_user_id: UUID) -> List[OpportunityNeed]:
        """Published opportunities of the caller that still have places to fill."""
        charity = await self._charity_for(charity_user_id)
        opportunities = await crud_opportunity.list_open_for_charity(self.db, charity.id)
        pending = await crud_application.pending_suggestion_counts(self.db, [o.id for o in opportunities])

        return [
            OpportunityNeed(
                opportunity=opportunity,
                pending_suggestions=pending.get(opportunity.id, 0),
                spots_remaining=max(opportunity.number_of_volunteers - opportunity.volunteers_confirmed, 0),
            )
            for opportunity in opportunities
        ]
