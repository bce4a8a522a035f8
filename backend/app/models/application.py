"""
Application model: a user's request to work on a gig.

Key design decisions:
- Unique constraint on (gig_id, applicant_user_id): one application per pair
- Status is restricted at the DB level; transitions are guarded in the service
- Withdrawal is a physical delete, allowed only while pending
"""

from sqlalchemy import (
    JSON, CheckConstraint, Column, ForeignKey, Integer, String, Text,
    UniqueConstraint, Uuid,
)

from app.db.base import Base, TimestampMixin
from app.models.enums import ApplicationStatus, check_in


class Application(Base, TimestampMixin):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    gig_id = Column(Integer, ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False, index=True)
    applicant_user_id = Column(Uuid, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ApplicationStatus.PENDING.value)
    cover_letter = Column(Text, nullable=True)
    portfolio_links = Column(JSON, nullable=True)
    resume_url = Column(String(1000), nullable=True)

    __table_args__ = (
        UniqueConstraint("gig_id", "applicant_user_id", name="uq_gig_applicant"),
        CheckConstraint(check_in("status", ApplicationStatus), name="check_application_status"),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, gig={self.gig_id}, status={self.status})>"
