"""Volunteer model."""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from volunteer_hub.db.base import Base, JSONType


class Volunteer(Base):
    """Volunteer profile model."""

    __tablename__ = "volunteers"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    bio = Column(Text)

    # JSON fields
    skills = Column(JSONType, default=list)  # ["Teaching", "Cooking", ...]
    interests = Column(JSONType, default=list)  # ["Education", "Environment", ...]
    experience = Column(JSONType, default=list)  # ["...", {"role": "Tutor", "organization": "X", "description": "..."}]
    availability = Column(JSONType, default=dict)  # {"days": ["monday"], "times": ["morning"], "frequency": "weekly"}

    # Location
    city = Column(String(100))
    state = Column(String(100))
    country = Column(String(100))
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Moderation
    approval_status = Column(String(20), default="pending", nullable=False, index=True)  # pending, approved, rejected
    approval_date = Column(DateTime, nullable=True)
    approved_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    approval_notes = Column(Text, nullable=True)

    # Derived from attendance history, never written directly by request handlers
    rating = Column(Float, default=0.0)
    total_hours_volunteered = Column(Integer, default=0, nullable=False)
    total_opportunities_completed = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id], lazy="joined")
    applications = relationship("Application", back_populates="volunteer")
    attendance_records = relationship("Attendance", back_populates="volunteer")

    def __repr__(self):
        return f"<Volunteer {self.id} ({self.approval_status})>"
