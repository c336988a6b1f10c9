"""
Application Lifecycle
Every change to an application's status goes through this module.

Statuses:
    pending -> under_review / approved / accepted / rejected / confirmed
    additional_info_requested -> under_review (volunteer provides info)
    moderator_review, background_check_required (set by vetting)
    rejected, withdrawn, confirmed are terminal

Who may fire which trigger, on whose application, from which statuses, is
declared once in TRANSITIONS and enforced by check_transition(). Each
operation validates its input, loads, checks the transition and only then
mutates; it commits once and dispatches notifications after the commit.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.config import settings
from volunteer_hub.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from volunteer_hub.core.security import Caller
from volunteer_hub.crud import crud_application, crud_charity, crud_opportunity, crud_volunteer
from volunteer_hub.crud.crud_application import ApplicationQuery
from volunteer_hub.models.application import Application
from volunteer_hub.services import notification_service as notices
from volunteer_hub.services.notification_service import NotificationDispatcher
from volunteer_hub.utils.constants import (
    MAX_VETTING_SCORE,
    MIN_VETTING_SCORE,
    REVIEWABLE_TARGET_STATUSES,
    TERMINAL_APPLICATION_STATUSES,
    ApplicationStatus,
    ApprovalStatus,
    ModeratorDecision,
    OpportunityStatus,
    Role,
)
from volunteer_hub.utils.helpers import utcnow

logger = structlog.get_logger(__name__)


class Trigger(str, Enum):
    CREATE = "create"
    UPDATE_STATUS = "update_status"
    WITHDRAW = "withdraw"
    REQUEST_INFO = "request_additional_info"
    PROVIDE_INFO = "provide_additional_info"
    COMPLETE_VETTING = "complete_vetting"
    MODERATOR_REVIEW = "moderator_review"
    CONFIRM = "confirm_participation"


class Owner(str, Enum):
    """Whose resource the caller must own."""
    NONE = "none"
    APPLICATION = "application"  # the applying volunteer
    OPPORTUNITY = "opportunity"  # the charity that posted the opportunity


@dataclass(frozen=True)
class TransitionRule:
    roles: FrozenSet[str]
    owner: Owner
    # None means any current status not listed in blocked_from
    allowed_from: Optional[FrozenSet[str]] = None
    blocked_from: FrozenSet[str] = frozenset()
    moderator_bypasses_ownership: bool = False


_VOLUNTEER = frozenset({Role.VOLUNTEER.value})
_CHARITY = frozenset({Role.CHARITY.value})
_MODERATOR = frozenset({Role.MODERATOR.value})

TRANSITIONS: Dict[Trigger, TransitionRule] = {
    Trigger.CREATE: TransitionRule(roles=_VOLUNTEER, owner=Owner.NONE),
    Trigger.UPDATE_STATUS: TransitionRule(
        roles=_CHARITY | _MODERATOR,
        owner=Owner.OPPORTUNITY,
        blocked_from=TERMINAL_APPLICATION_STATUSES,
        moderator_bypasses_ownership=True,
    ),
    Trigger.WITHDRAW: TransitionRule(
        roles=_VOLUNTEER,
        owner=Owner.APPLICATION,
        blocked_from=frozenset({ApplicationStatus.WITHDRAWN.value, ApplicationStatus.REJECTED.value}),
    ),
    Trigger.REQUEST_INFO: TransitionRule(
        roles=_CHARITY,
        owner=Owner.OPPORTUNITY,
        blocked_from=TERMINAL_APPLICATION_STATUSES,
    ),
    Trigger.PROVIDE_INFO: TransitionRule(
        roles=_VOLUNTEER,
        owner=Owner.APPLICATION,
        allowed_from=frozenset({ApplicationStatus.ADDITIONAL_INFO_REQUESTED.value}),
    ),
    Trigger.COMPLETE_VETTING: TransitionRule(
        roles=_CHARITY,
        owner=Owner.OPPORTUNITY,
        blocked_from=TERMINAL_APPLICATION_STATUSES,
    ),
    Trigger.MODERATOR_REVIEW: TransitionRule(roles=_MODERATOR, owner=Owner.NONE),
    Trigger.CONFIRM: TransitionRule(
        roles=_VOLUNTEER,
        owner=Owner.APPLICATION,
        allowed_from=frozenset({ApplicationStatus.APPROVED.value}),
    ),
}


def owns(application: Application, caller: Caller, owner: Owner) -> bool:
    if owner == Owner.NONE:
        return True
    if owner == Owner.APPLICATION:
        return application.volunteer is not None and application.volunteer.user_id == caller.user_id
    return application.opportunity is not None and application.opportunity.owner_user_id == caller.user_id


def check_transition(trigger: Trigger, application: Optional[Application], caller: Caller) -> TransitionRule:
    """
    Raise unless `caller` may fire `trigger` on `application` in its current status.

    Role and ownership failures are ForbiddenError; a disallowed current
    status is ConflictError.
    """
    rule = TRANSITIONS[trigger]

    if caller.role not in rule.roles:
        raise ForbiddenError(f"Role '{caller.role}' cannot perform {trigger.value}")

    if application is None:
        return rule

    bypass = rule.moderator_bypasses_ownership and caller.is_moderator
    if not bypass and not owns(application, caller, rule.owner):
        raise ForbiddenError(f"Not authorized to {trigger.value.replace('_', ' ')} on this application")

    status = application.status
    if rule.allowed_from is not None and status not in rule.allowed_from:
        raise ConflictError(f"Cannot {trigger.value.replace('_', ' ')} while application is {status}")
    if status in rule.blocked_from:
        raise ConflictError(f"Cannot {trigger.value.replace('_', ' ')} while application is {status}")

    return rule


class ApplicationLifecycle:
    """State machine for volunteer applications."""

    def __init__(self, db: AsyncSession, notifier: NotificationDispatcher):
        self.db = db
        self.notifier = notifier

    async def _load(self, application_id: UUID) -> Application:
        application = await crud_application.get(self.db, application_id)
        if application is None:
            raise NotFoundError("Application not found")
        return application

    async def _enter_status(self, application: Application, status: str) -> None:
        """Set status; entering confirmed bumps the opportunity counter atomically."""
        entering_confirmed = (
            status == ApplicationStatus.CONFIRMED.value
            and application.status != ApplicationStatus.CONFIRMED.value
        )
        application.status = status
        if entering_confirmed:
            application.confirmed_at = utcnow()
            await crud_opportunity.increment_confirmed(self.db, application.opportunity)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_application(
        self, opportunity_id: UUID, caller: Caller, message: Optional[str] = None
    ) -> Application:
        check_transition(Trigger.CREATE, None, caller)

        volunteer = await crud_volunteer.get_by_user(self.db, caller.user_id)
        if volunteer is None:
            raise NotFoundError("Volunteer profile not found")
        if volunteer.approval_status != ApprovalStatus.APPROVED.value:
            raise ForbiddenError("Volunteer profile must be approved before applying")

        opportunity = await crud_opportunity.get(self.db, opportunity_id)
        if opportunity is None:
            raise NotFoundError("Opportunity not found")
        if opportunity.canonical_status != OpportunityStatus.PUBLISHED:
            raise ConflictError("Opportunity is not accepting applications")
        if opportunity.application_deadline is not None and opportunity.application_deadline < utcnow():
            raise ConflictError("Application deadline has passed")

        if await crud_application.get_for_pair(self.db, opportunity.id, volunteer.id) is not None:
            raise ConflictError("You have already applied to this opportunity")

        application = Application(
            opportunity_id=opportunity.id,
            volunteer_id=volunteer.id,
            status=ApplicationStatus.PENDING.value,
            application_message=message,
        )
        # The unique constraint settles races the lookup above cannot see
        await crud_application.add_all(self.db, [application])
        await self.db.commit()

        logger.info(
            "application_created",
            application_id=str(application.id),
            opportunity_id=str(opportunity.id),
            volunteer_id=str(volunteer.id),
        )
        await self.notifier.notify(notices.application_received(opportunity.owner_user_id, application.id))
        return application

    # ------------------------------------------------------------------
    # Charity / moderator review
    # ------------------------------------------------------------------

    async def update_application_status(
        self,
        application_id: UUID,
        new_status: str,
        caller: Caller,
        notes: Optional[str] = None,
    ) -> Application:
        if new_status not in REVIEWABLE_TARGET_STATUSES:
            raise ValidationError(
                f"Invalid status '{new_status}'. Must be one of: {', '.join(sorted(REVIEWABLE_TARGET_STATUSES))}"
            )

        application = await self._load(application_id)
        check_transition(Trigger.UPDATE_STATUS, application, caller)

        if (
            new_status in (ApplicationStatus.APPROVED.value, ApplicationStatus.CONFIRMED.value)
            and application.opportunity.canonical_status == OpportunityStatus.SUSPENDED
            and not caller.is_moderator
        ):
            raise ConflictError("Opportunity is suspended; only a moderator can approve or confirm volunteers")

        previous = application.status
        await self._enter_status(application, new_status)
        application.review_notes = notes
        application.reviewed_by = caller.user_id
        application.reviewed_at = utcnow()
        await self.db.commit()

        logger.info(
            "application_status_updated",
            application_id=str(application.id),
            previous=previous,
            status=new_status,
            actor_role=caller.role,
        )
        await self.notifier.notify(
            notices.application_update(application.volunteer.user_id, application.id, new_status)
        )
        return application

    async def request_additional_info(
        self,
        application_id: UUID,
        fields: List[str],
        caller: Caller,
        message: Optional[str] = None,
    ) -> Application:
        requested = [f.strip() for f in (fields or []) if isinstance(f, str) and f.strip()]
        if not requested:
            raise ValidationError("At least one requested field is required")

        application = await self._load(application_id)
        check_transition(Trigger.REQUEST_INFO, application, caller)

        application.status = ApplicationStatus.ADDITIONAL_INFO_REQUESTED.value
        application.additional_info_requested = {
            "fields": requested,
            "message": message,
            "requested_by": str(caller.user_id),
        }
        application.additional_info_requested_at = utcnow()
        await self.db.commit()

        logger.info("additional_info_requested", application_id=str(application.id), fields=requested)

        volunteer_user = application.volunteer.user
        await self.notifier.notify(
            notices.additional_info_requested(volunteer_user.id, application.id, message)
        )
        await self.notifier.email_additional_info_request(
            to=volunteer_user.email,
            volunteer_name=volunteer_user.first_name,
            opportunity_title=application.opportunity.title,
            fields=requested,
            message=message,
            application_id=application.id,
        )
        return application

    async def complete_vetting(
        self,
        application_id: UUID,
        caller: Caller,
        score: Optional[int] = None,
        notes: Optional[str] = None,
        flag_for_moderation: bool = False,
        flag_reason: Optional[str] = None,
        requires_background_check: bool = False,
    ) -> Application:
        """
        Record the charity's vetting and route the application.

        Routing priority: moderation flag, then background check, else back
        to under_review. Score and notes are stored in every case.
        """
        if score is not None and not MIN_VETTING_SCORE <= score <= MAX_VETTING_SCORE:
            raise ValidationError(
                f"Vetting score must be between {MIN_VETTING_SCORE} and {MAX_VETTING_SCORE}"
            )

        application = await self._load(application_id)
        check_transition(Trigger.COMPLETE_VETTING, application, caller)

        if flag_for_moderation:
            next_status = ApplicationStatus.MODERATOR_REVIEW.value
        elif requires_background_check:
            next_status = ApplicationStatus.BACKGROUND_CHECK_REQUIRED.value
        else:
            next_status = ApplicationStatus.UNDER_REVIEW.value

        application.vetting_score = score
        application.vetting_notes = notes
        application.status = next_status
        if flag_for_moderation:
            application.flagged_for_moderation = True
            application.flagged_reason = flag_reason
        application.reviewed_by = caller.user_id
        application.reviewed_at = utcnow()
        await self.db.commit()

        logger.info(
            "vetting_completed",
            application_id=str(application.id),
            status=next_status,
            score=score,
        )

        if flag_for_moderation:
            await self.notifier.notify_moderators_flagged(
                application.id, flag_reason, application.opportunity.title
            )
        elif requires_background_check:
            await self.notifier.notify(
                notices.background_check_required(application.volunteer.user_id, application.id)
            )
        return application

    async def moderator_review(
        self,
        application_id: UUID,
        decision: str,
        caller: Caller,
        notes: Optional[str] = None,
        override_status: Optional[str] = None,
    ) -> Application:
        """
        Adjudicate an application as a moderator.

        Resulting status is `override_status` when given, otherwise
        under_review for an approved review and rejected for anything else.
        The moderation flag is cleared either way.
        """
        decisions = {d.value for d in ModeratorDecision}
        if decision not in decisions:
            raise ValidationError(f"Invalid decision. Must be one of: {', '.join(sorted(decisions))}")
        if override_status is not None and override_status not in {s.value for s in ApplicationStatus}:
            raise ValidationError(f"Invalid override status '{override_status}'")

        application = await self._load(application_id)
        check_transition(Trigger.MODERATOR_REVIEW, application, caller)

        if override_status is not None:
            next_status = override_status
        elif decision == ModeratorDecision.APPROVED.value:
            next_status = ApplicationStatus.UNDER_REVIEW.value
        else:
            next_status = ApplicationStatus.REJECTED.value

        application.moderator_review_status = decision
        application.moderator_notes = notes
        application.moderator_reviewed_by = caller.user_id
        application.moderator_reviewed_at = utcnow()
        application.flagged_for_moderation = False
        await self._enter_status(application, next_status)
        await self.db.commit()

        logger.info(
            "moderator_review_completed",
            application_id=str(application.id),
            decision=decision,
            status=next_status,
        )
        await self.notifier.dispatch([
            notices.moderator_review_complete(application.opportunity.owner_user_id, application.id, decision),
            notices.application_update(application.volunteer.user_id, application.id, next_status),
        ])
        return application

    # ------------------------------------------------------------------
    # Volunteer actions
    # ------------------------------------------------------------------

    async def withdraw_application(
        self, application_id: UUID, caller: Caller, reason: Optional[str] = None
    ) -> Application:
        application = await self._load(application_id)
        check_transition(Trigger.WITHDRAW, application, caller)

        application.status = ApplicationStatus.WITHDRAWN.value
        application.withdrawn_reason = reason
        application.withdrawn_at = utcnow()
        await self.db.commit()

        logger.info("application_withdrawn", application_id=str(application.id))
        return application

    async def provide_additional_info(
        self, application_id: UUID, info: Dict[str, Any], caller: Caller
    ) -> Application:
        if not info or not isinstance(info, dict):
            raise ValidationError("Additional information is required")

        application = await self._load(application_id)
        check_transition(Trigger.PROVIDE_INFO, application, caller)

        application.status = ApplicationStatus.UNDER_REVIEW.value
        application.additional_info_provided = info
        application.additional_info_provided_at = utcnow()
        await self.db.commit()

        logger.info("additional_info_provided", application_id=str(application.id))
        await self.notifier.notify(
            notices.additional_info_provided(application.opportunity.owner_user_id, application.id)
        )
        return application

    async def confirm_participation(
        self, application_id: UUID, committed_hours: Optional[int], caller: Caller
    ) -> Application:
        if (
            committed_hours is None
            or isinstance(committed_hours, bool)
            or not settings.MIN_COMMITTED_HOURS <= committed_hours <= settings.MAX_COMMITTED_HOURS
        ):
            raise ValidationError(
                f"Committed hours must be between {settings.MIN_COMMITTED_HOURS} "
                f"and {settings.MAX_COMMITTED_HOURS}"
            )

        application = await self._load(application_id)
        check_transition(Trigger.CONFIRM, application, caller)

        if application.opportunity.canonical_status == OpportunityStatus.SUSPENDED:
            raise ConflictError("Opportunity is suspended")

        await self._enter_status(application, ApplicationStatus.CONFIRMED.value)
        application.hours_committed = committed_hours
        await self.db.commit()

        logger.info(
            "participation_confirmed",
            application_id=str(application.id),
            opportunity_id=str(application.opportunity_id),
            committed_hours=committed_hours,
        )
        await self.notifier.notify(
            notices.volunteer_confirmed(application.opportunity.owner_user_id, application.id, committed_hours)
        )
        return application

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_application(self, application_id: UUID, caller: Caller) -> Application:
        application = await self._load(application_id)
        if not (
            caller.is_moderator
            or owns(application, caller, Owner.APPLICATION)
            or owns(application, caller, Owner.OPPORTUNITY)
        ):
            raise ForbiddenError("Not authorized to view this application")
        return application

    async def list_applications_for_caller(
        self, caller: Caller, status: Optional[str] = None
    ) -> List[Application]:
        """Volunteers see their own applications, charities those on their opportunities."""
        statuses = (status,) if status else ()

        if caller.is_volunteer:
            volunteer = await crud_volunteer.get_by_user(self.db, caller.user_id)
            if volunteer is None:
                raise NotFoundError("Volunteer profile not found")
            query = ApplicationQuery(volunteer_id=volunteer.id, statuses=statuses)
        elif caller.is_charity:
            charity = await crud_charity.get_by_user(self.db, caller.user_id)
            if charity is None:
                raise NotFoundError("Charity profile not found")
            query = ApplicationQuery(charity_id=charity.id, statuses=statuses)
        elif caller.is_moderator:
            query = ApplicationQuery(statuses=statuses)
        else:
            raise ForbiddenError(f"Role '{caller.role}' cannot list applications")

        return await crud_application.list_applications(self.db, query)

    async def list_moderator_queue(
        self, caller: Caller, flagged_reason: Optional[str] = None
    ) -> List[Application]:
        if not caller.is_moderator:
            raise ForbiddenError("Moderator access required")
        return await crud_application.list_applications(
            self.db, ApplicationQuery(needs_moderation=True, flagged_reason=flagged_reason)
        )
