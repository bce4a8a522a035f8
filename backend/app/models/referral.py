"""
Referral model: one user pointing another at an opportunity.

Key design decisions:
- context_type/context_id name what the referral is about ("general" when
  nothing specific, otherwise e.g. "gig" and the gig's id)
- Self-referrals are rejected in the service and at the DB level
"""

from sqlalchemy import CheckConstraint, Column, Index, Integer, String, Text, Uuid

from app.db.base import Base, TimestampMixin
from app.models.enums import ReferralStatus, check_in


class Referral(Base, TimestampMixin):
    __tablename__ = "referrals"

    id = Column(Integer, primary_key=True, index=True)
    referrer_user_id = Column(Uuid, nullable=False, index=True)
    referred_user_id = Column(Uuid, nullable=False, index=True)
    context_type = Column(String(50), nullable=False, default="general")
    context_id = Column(String(100), nullable=True)
    message = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ReferralStatus.PENDING.value)

    __table_args__ = (
        CheckConstraint(check_in("status", ReferralStatus), name="check_referral_status"),
        CheckConstraint("referrer_user_id <> referred_user_id", name="check_referral_not_self"),
        Index("ix_referrals_context", "context_type", "context_id"),
    )

    def __repr__(self) -> str:
        return f"<Referral(id={self.id}, from={self.referrer_user_id}, to={self.referred_user_id})>"
