"""Application model."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from volunteer_hub.db.base import Base, JSONType


class Application(Base):
    """Volunteer application to an opportunity."""

    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("opportunity_id", "volunteer_id", name="unique_opportunity_volunteer_application"),
    )

    opportunity_id = Column(Uuid(as_uuid=True), ForeignKey("opportunities.id"), nullable=False, index=True)
    volunteer_id = Column(Uuid(as_uuid=True), ForeignKey("volunteers.id"), nullable=False, index=True)

    # Status tracking, see ApplicationStatus
    status = Column(String(40), default="pending", nullable=False, index=True)
    application_message = Column(Text)

    # Charity review
    review_notes = Column(Text)
    reviewed_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    # Additional information round-trip
    additional_info_requested = Column(JSONType, nullable=True)  # {"fields": [...], "message": ..., "requested_by": ...}
    additional_info_requested_at = Column(DateTime, nullable=True)
    additional_info_provided = Column(JSONType, nullable=True)
    additional_info_provided_at = Column(DateTime, nullable=True)

    # Vetting
    vetting_score = Column(Integer, nullable=True)  # 1-10
    vetting_notes = Column(Text)
    flagged_for_moderation = Column(Boolean, default=False, nullable=False)
    flagged_reason = Column(Text)

    # Moderator review
    moderator_review_status = Column(String(20), nullable=True)  # approved, rejected, escalated
    moderator_notes = Column(Text)
    moderator_reviewed_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    moderator_reviewed_at = Column(DateTime, nullable=True)

    # Matching
    is_system_matched = Column(Boolean, default=False, nullable=False)
    match_score = Column(Float, nullable=True)  # 0 - 100

    # Withdrawal / confirmation
    withdrawn_reason = Column(Text)
    withdrawn_at = Column(DateTime, nullable=True)
    confirmed_at = Column(DateTime, nullable=True)
    hours_committed = Column(Integer, default=0)
    hours_worked = Column(Integer, default=0)

    # Relationships
    volunteer = relationship("Volunteer", back_populates="applications", lazy="joined")
    opportunity = relationship("Opportunity", back_populates="applications", lazy="joined")

    def __repr__(self):
        return f"<Application {self.volunteer_id} -> {self.opportunity_id} ({self.status})>"
