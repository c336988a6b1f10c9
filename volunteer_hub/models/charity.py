"""Charity model."""

from sqlalchemy import Boolean, Column, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from volunteer_hub.db.base import Base


class Charity(Base):
    """Charity organization profile."""

    __tablename__ = "charities"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    organization_name = Column(String(255), nullable=False)
    contact_email = Column(String(255))
    verification_status = Column(String(20), default="pending")  # pending, approved, rejected
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    user = relationship("User", lazy="joined")
    opportunities = relationship("Opportunity", back_populates="charity")

    def __repr__(self):
        return f"<Charity {self.organization_name}>"
