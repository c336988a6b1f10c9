"""Attendance model."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from volunteer_hub.db.base import Base


class Attendance(Base):
    """Post-event participation record for one volunteer on one opportunity."""

    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("opportunity_id", "volunteer_id", name="attendance_opportunity_volunteer_unique"),
    )

    opportunity_id = Column(Uuid(as_uuid=True), ForeignKey("opportunities.id"), nullable=False, index=True)
    volunteer_id = Column(Uuid(as_uuid=True), ForeignKey("volunteers.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False)  # present, absent, late, excused
    hours_worked = Column(Float, nullable=True)
    check_in_time = Column(DateTime, nullable=True)
    check_out_time = Column(DateTime, nullable=True)
    notes = Column(Text)
    recorded_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Two-way feedback
    charity_feedback = Column(Text)
    charity_rating = Column(Integer, nullable=True)  # charity -> volunteer, 1-5
    volunteer_feedback = Column(Text)
    volunteer_rating = Column(Integer, nullable=True)  # volunteer -> charity, 1-5

    # Relationships
    volunteer = relationship("Volunteer", back_populates="attendance_records", lazy="joined")
    opportunity = relationship("Opportunity", lazy="joined")

    def __repr__(self):
        return f"<Attendance {self.volunteer_id} @ {self.opportunity_id} ({self.status})>"
