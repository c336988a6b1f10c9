"""Opportunity model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from volunteer_hub.db.base import Base, JSONType
from volunteer_hub.utils.constants import OpportunityStatus, normalize_opportunity_status


class Opportunity(Base):
    """Volunteering opportunity posted by a charity."""

    __tablename__ = "opportunities"

    charity_id = Column(Uuid(as_uuid=True), ForeignKey("charities.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100), nullable=True)  # Education, Environment, Healthcare, ...
    required_skills = Column(JSONType, default=list)

    # Capacity. volunteers_confirmed only moves through crud_opportunity.increment_confirmed
    number_of_volunteers = Column(Integer, default=1, nullable=False)
    volunteers_confirmed = Column(Integer, default=0, nullable=False)

    # Location
    location_type = Column(String(20), default="in-person", nullable=False)  # in-person, virtual, hybrid
    city = Column(String(100))
    state = Column(String(100))
    country = Column(String(100))

    # Schedule
    status = Column(String(20), default="draft", nullable=False, index=True)
    application_deadline = Column(DateTime, nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)

    # Moderation. previous_status is what resume restores
    suspended_at = Column(DateTime, nullable=True)
    suspended_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    suspension_reason = Column(Text, nullable=True)
    previous_status = Column(String(20), nullable=True)
    resumed_at = Column(DateTime, nullable=True)
    resumed_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Stats
    views = Column(Integer, default=0, nullable=False)

    # Relationships
    charity = relationship("Charity", back_populates="opportunities", lazy="joined")
    applications = relationship("Application", back_populates="opportunity")

    @property
    def canonical_status(self) -> OpportunityStatus:
        return normalize_opportunity_status(self.status)

    @property
    def owner_user_id(self):
        """User id of the charity account that owns this opportunity."""
        return self.charity.user_id if self.charity else None

    def __repr__(self):
        return f"<Opportunity {self.title} ({self.status})>"
