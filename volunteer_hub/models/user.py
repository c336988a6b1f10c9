"""User model."""

from sqlalchemy import Boolean, Column, String

from volunteer_hub.db.base import Base


class User(Base):
    """Account that owns a volunteer, charity or moderator identity."""

    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(String(20), nullable=False, default="volunteer")  # volunteer, charity, moderator
    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
