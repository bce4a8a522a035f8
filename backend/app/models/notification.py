"""
In-app notification. Written as a side effect of application and RSVP
changes; a failed insert never fails the change that triggered it.
"""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Index, Integer, String, Text, Uuid

from app.db.base import Base, TimestampMixin


class Notification(Base, TimestampMixin):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Uuid, nullable=False)  # recipient
    actor_id = Column(Uuid, nullable=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    extra = Column("metadata", JSON, nullable=True)
    related_gig_id = Column(Integer, ForeignKey("gigs.id", ondelete="SET NULL"), nullable=True)
    related_application_id = Column(Integer, ForeignKey("applications.id", ondelete="SET NULL"), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_notifications_user_read_created", "user_id", "is_read", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user={self.user_id}, type={self.type}, read={self.is_read})>"
