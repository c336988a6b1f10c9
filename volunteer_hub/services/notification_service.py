"""
Notification Service
In-app notifications, moderation alerts and best-effort e-mail.

Dispatch happens after the triggering transaction has committed and uses its
own session, so a failure here is logged and never reaches the caller or
undoes the change that produced the notice.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_hub.crud import crud_user
from volunteer_hub.models.notification import Notification
from volunteer_hub.utils.constants import NotificationType, Role

logger = structlog.get_logger(__name__)


@dataclass
class Notice:
    """A notification waiting to be written."""
    user_id: UUID
    type: str
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    action_url: Optional[str] = None


_STATUS_TITLES = {
    "approved": "Application Approved",
    "accepted": "Application Accepted",
    "rejected": "Application Status Update",
    "confirmed": "Volunteering Confirmed",
    "under_review": "Application Under Review",
}

_STATUS_MESSAGES = {
    "approved": "Your application has been approved!",
    "accepted": "Your application has been accepted!",
    "rejected": "Your application status has been updated.",
    "confirmed": "You have been confirmed for this volunteering opportunity.",
    "under_review": "Your application is currently under review.",
}

_REVIEW_MESSAGES = {
    "approved": "The moderator review has been completed and approved.",
    "rejected": "The moderator review has been completed and the application has been rejected.",
    "escalated": "The application has been escalated for further review.",
}


def application_received(charity_user_id: UUID, application_id: UUID) -> Notice:
    return Notice(
        user_id=charity_user_id,
        type=NotificationType.APPLICATION_RECEIVED.value,
        title="New Volunteer Application",
        message="You have received a new volunteer application for your opportunity.",
        data={"application_id": str(application_id)},
        action_url=f"/applications/{application_id}",
    )


def application_update(volunteer_user_id: UUID, application_id: UUID, status: str) -> Notice:
    return Notice(
        user_id=volunteer_user_id,
        type=NotificationType.APPLICATION_UPDATE.value,
        title=_STATUS_TITLES.get(status, "Application Update"),
        message=_STATUS_MESSAGES.get(status, "Your application status has been updated."),
        data={"application_id": str(application_id), "status": status},
        action_url=f"/applications/{application_id}",
    )


def additional_info_requested(volunteer_user_id: UUID, application_id: UUID, message: Optional[str]) -> Notice:
    text = "A charity has requested additional information for your application"
    return Notice(
        user_id=volunteer_user_id,
        type=NotificationType.ADDITIONAL_INFO_REQUESTED.value,
        title="Additional Information Requested",
        message=f"{text}: {message}" if message else f"{text}.",
        data={"application_id": str(application_id)},
        action_url=f"/applications/{application_id}/provide-info",
    )


def additional_info_provided(charity_user_id: UUID, application_id: UUID) -> Notice:
    return Notice(
        user_id=charity_user_id,
        type=NotificationType.ADDITIONAL_INFO_PROVIDED.value,
        title="Additional Information Received",
        message="A volunteer has provided the additional information you requested.",
        data={"application_id": str(application_id)},
        action_url=f"/applications/{application_id}",
    )


def background_check_required(volunteer_user_id: UUID, application_id: UUID) -> Notice:
    return Notice(
        user_id=volunteer_user_id,
        type=NotificationType.BACKGROUND_CHECK_REQUIRED.value,
        title="Background Check Required",
        message="A background check is required to proceed with your application.",
        data={"application_id": str(application_id)},
        action_url=f"/volunteer/background-check/{application_id}",
    )


def application_flagged(moderator_user_id: UUID, application_id: UUID, reason: Optional[str]) -> Notice:
    return Notice(
        user_id=moderator_user_id,
        type=NotificationType.APPLICATION_FLAGGED.value,
        title="Application Flagged for Review",
        message=f"An application has been flagged for moderation review. Reason: {reason or 'not given'}",
        data={"application_id": str(application_id), "reason": reason},
        action_url=f"/moderator/applications/{application_id}",
    )


def moderator_review_complete(charity_user_id: UUID, application_id: UUID, review_status: str) -> Notice:
    return Notice(
        user_id=charity_user_id,
        type=NotificationType.MODERATOR_REVIEW_COMPLETE.value,
        title="Moderator Review Complete",
        message=_REVIEW_MESSAGES.get(review_status, "The moderator review has been completed."),
        data={"application_id": str(application_id), "review_status": review_status},
        action_url=f"/applications/{application_id}",
    )


def volunteer_match_suggestion(charity_user_id: UUID, opportunity_id: UUID, volunteer_id: UUID) -> Notice:
    return Notice(
        user_id=charity_user_id,
        type=NotificationType.VOLUNTEER_MATCH_SUGGESTION.value,
        title="New Volunteer Match Suggestion",
        message="We found a volunteer who might be a good fit for your opportunity.",
        data={"opportunity_id": str(opportunity_id), "volunteer_id": str(volunteer_id)},
        action_url=f"/charity/matches/{opportunity_id}",
    )


def volunteer_confirmed(charity_user_id: UUID, application_id: UUID, committed_hours: int) -> Notice:
    return Notice(
        user_id=charity_user_id,
        type=NotificationType.VOLUNTEER_CONFIRMED.value,
        title="Volunteer Confirmed Participation",
        message=(
            "A volunteer has confirmed their participation and committed "
            f"{committed_hours} hours to your opportunity."
        ),
        data={"application_id": str(application_id), "committed_hours": committed_hours},
        action_url=f"/applications/{application_id}",
    )


def volunteer_verified(volunteer_user_id: UUID) -> Notice:
    return Notice(
        user_id=volunteer_user_id,
        type=NotificationType.VOLUNTEER_VERIFIED.value,
        title="Profile Approved",
        message="Your volunteer profile has been approved. You can now apply to opportunities.",
        action_url="/opportunities",
    )


def volunteer_rejected(volunteer_user_id: UUID, notes: str) -> Notice:
    return Notice(
        user_id=volunteer_user_id,
        type=NotificationType.VOLUNTEER_REJECTED.value,
        title="Profile Not Approved",
        message=f"Your volunteer profile was not approved. Notes: {notes}",
        data={"notes": notes},
        action_url="/volunteer/profile",
    )


def opportunity_suspended(charity_user_id: UUID, opportunity_id: UUID, title: str, reason: str) -> Notice:
    return Notice(
        user_id=charity_user_id,
        type=NotificationType.OPPORTUNITY_SUSPENDED.value,
        title="Opportunity Suspended",
        message=f'Your opportunity "{title}" has been suspended. Reason: {reason}',
        data={"opportunity_id": str(opportunity_id), "reason": reason},
        action_url=f"/charity/opportunities/{opportunity_id}",
    )


def opportunity_resumed(
    charity_user_id: UUID, opportunity_id: UUID, title: str, status: str, notes: Optional[str] = None
) -> Notice:
    message = f'Your opportunity "{title}" has been resumed and is now {status}.'
    return Notice(
        user_id=charity_user_id,
        type=NotificationType.OPPORTUNITY_RESUMED.value,
        title="Opportunity Resumed",
        message=f"{message} Notes: {notes}" if notes else message,
        data={"opportunity_id": str(opportunity_id), "notes": notes},
        action_url=f"/charity/opportunities/{opportunity_id}",
    )


class NotificationDispatcher:
    """
    Fire-and-forget delivery of notices.

    No public method raises: every failure is logged with the notice type and
    target so it can be replayed by hand if needed.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        email_service=None,
        slack_notifier=None,
    ):
        self.session_factory = session_factory
        self.email_service = email_service
        self.slack_notifier = slack_notifier

    async def dispatch(self, notices: Iterable[Notice]) -> int:
        """Persist notices in one short transaction. Returns how many were written."""
        notices = list(notices)
        if not notices:
            return 0

        try:
            async with self.session_factory() as session:
                session.add_all([
                    Notification(
                        user_id=n.user_id,
                        type=n.type,
                        title=n.title,
                        message=n.message,
                        data=n.data,
                        action_url=n.action_url,
                    )
                    for n in notices
                ])
                await session.commit()
        except Exception:
            logger.exception(
                "notification_dispatch_failed",
                count=len(notices),
                types=sorted({n.type for n in notices}),
            )
            return 0

        logger.info("notifications_dispatched", count=len(notices))
        return len(notices)

    async def notify(self, notice: Notice) -> bool:
        return await self.dispatch([notice]) == 1

    async def notify_moderators_flagged(
        self,
        application_id: UUID,
        reason: Optional[str],
        opportunity_title: Optional[str] = None,
    ) -> int:
        """In-app notice to every active moderator plus a Slack alert."""
        sent = 0
        try:
            async with self.session_factory() as session:
                moderator_ids: List[UUID] = await crud_user.active_user_ids_with_role(
                    session, Role.MODERATOR.value
                )
        except Exception:
            logger.exception("moderator_lookup_failed", application_id=str(application_id))
            moderator_ids = []

        if moderator_ids:
            sent = await self.dispatch(
                [application_flagged(moderator_id, application_id, reason) for moderator_id in moderator_ids]
            )

        if self.slack_notifier is not None:
            try:
                await self.slack_notifier.send_moderation_alert(str(application_id), reason, opportunity_title)
            except Exception:
                logger.exception("moderation_alert_failed", application_id=str(application_id))

        return sent

    async def email_additional_info_request(
        self,
        to: Optional[str],
        volunteer_name: str,
        opportunity_title: str,
        fields: List[str],
        message: Optional[str],
        application_id: UUID,
    ) -> bool:
        if self.email_service is None or not to:
            return False
        try:
            return await self.email_service.send_additional_info_request(
                to=to,
                volunteer_name=volunteer_name,
                opportunity_title=opportunity_title,
                fields=fields,
                message=message,
                application_id=str(application_id),
            )
        except Exception:
            logger.exception("additional_info_email_failed", application_id=str(application_id))
            return False
