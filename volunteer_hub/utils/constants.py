"""Common constants and status vocabularies."""

from enum import Enum


class Role(str, Enum):
    """Caller roles."""

    VOLUNTEER = "volunteer"
    CHARITY = "charity"
    MODERATOR = "moderator"


class ApplicationStatus(str, Enum):
    """Application lifecycle states."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    CONFIRMED = "confirmed"
    ADDITIONAL_INFO_REQUESTED = "additional_info_requested"
    MODERATOR_REVIEW = "moderator_review"
    BACKGROUND_CHECK_REQUIRED = "background_check_required"


# Sets below hold raw column values
TERMINAL_APPLICATION_STATUSES = frozenset(
    {
        ApplicationStatus.REJECTED.value,
        ApplicationStatus.WITHDRAWN.value,
        ApplicationStatus.CONFIRMED.value,
    }
)

# Statuses a charity (or moderator) may set through a plain status update
REVIEWABLE_TARGET_STATUSES = frozenset(
    {
        ApplicationStatus.UNDER_REVIEW.value,
        ApplicationStatus.APPROVED.value,
        ApplicationStatus.ACCEPTED.value,
        ApplicationStatus.REJECTED.value,
        ApplicationStatus.CONFIRMED.value,
    }
)


class OpportunityStatus(str, Enum):
    """Canonical opportunity statuses."""

    DRAFT = "draft"
    PUBLISHED = "published"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


# Values written by older clients, mapped onto the canonical set
LEGACY_OPPORTUNITY_STATUSES = {
    "active": OpportunityStatus.PUBLISHED,
    "suspend": OpportunityStatus.SUSPENDED,
}


def normalize_opportunity_status(value: str) -> OpportunityStatus:
    """Map a stored opportunity status onto the canonical vocabulary."""
    if value in LEGACY_OPPORTUNITY_STATUSES:
        return LEGACY_OPPORTUNITY_STATUSES[value]
    return OpportunityStatus(value)


class LocationType(str, Enum):
    IN_PERSON = "in-person"
    VIRTUAL = "virtual"
    HYBRID = "hybrid"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


# Attendance statuses that count as a completed opportunity
COMPLETED_ATTENDANCE_STATUSES = (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value)


class ModeratorDecision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    ESCALATED = "escalated"


class SuggestionDecision(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"


class NotificationType(str, Enum):
    """In-app notification kinds."""

    APPLICATION_RECEIVED = "application_received"
    APPLICATION_UPDATE = "application_update"
    ADDITIONAL_INFO_REQUESTED = "additional_info_requested"
    ADDITIONAL_INFO_PROVIDED = "additional_info_provided"
    BACKGROUND_CHECK_REQUIRED = "background_check_required"
    APPLICATION_FLAGGED = "application_flagged"
    MODERATOR_REVIEW_COMPLETE = "moderator_review_complete"
    VOLUNTEER_MATCH_SUGGESTION = "volunteer_match_suggestion"
    VOLUNTEER_CONFIRMED = "volunteer_confirmed"
    VOLUNTEER_VERIFIED = "volunteer_verified"
    VOLUNTEER_REJECTED = "volunteer_rejected"
    OPPORTUNITY_SUSPENDED = "opportunity_suspended"
    OPPORTUNITY_RESUMED = "opportunity_resumed"


# Rating bounds for both directions of attendance feedback
MIN_RATING = 1
MAX_RATING = 5

# Vetting score bounds
MIN_VETTING_SCORE = 1
MAX_VETTING_SCORE = 10
