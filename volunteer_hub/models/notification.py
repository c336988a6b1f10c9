"""In-app notification model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, Uuid

from volunteer_hub.db.base import Base, JSONType


class Notification(Base):
    """Notification shown to a user in the dashboard."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_user_read", "user_id", "is_read"),
    )

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSONType, default=dict)
    action_url = Column(String(500), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Notification {self.type} -> {self.user_id}>"
