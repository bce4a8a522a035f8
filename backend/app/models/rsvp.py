"""
RSVP model: a user's reservation of spots at a What's On event.

Key design decisions:
- Cancelling is a status change, never a delete
- At most one RSVP row per (event, user); a cancelled one is re-activated
  on the next RSVP instead of inserting a duplicate
- Ticket and reference numbers are unique across all events
"""

from sqlalchemy import (
    CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin
from app.models.enums import PaymentStatus, RSVPStatus, check_in


class RSVP(Base, TimestampMixin):
    __tablename__ = "whatson_rsvps"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("whatson_events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, nullable=False, index=True)
    number_of_spots = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default=RSVPStatus.CONFIRMED.value)
    payment_status = Column(String(10), nullable=False, default=PaymentStatus.NOT_APPLICABLE.value)
    ticket_number = Column(String(32), unique=True, nullable=False)
    reference_number = Column(String(32), unique=True, nullable=False)

    dates = relationship(
        "RSVPDate", cascade="all, delete-orphan", passive_deletes=True, lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_rsvp_event_user"),
        CheckConstraint("number_of_spots > 0", name="check_rsvp_spots_positive"),
        CheckConstraint(check_in("status", RSVPStatus), name="check_rsvp_status"),
        CheckConstraint(check_in("payment_status", PaymentStatus), name="check_rsvp_payment_status"),
    )

    def __repr__(self) -> str:
        return f"<RSVP(id={self.id}, event={self.event_id}, status={self.status}, spots={self.number_of_spots})>"


class RSVPDate(Base):
    __tablename__ = "whatson_rsvp_dates"

    id = Column(Integer, primary_key=True)
    rsvp_id = Column(Integer, ForeignKey("whatson_rsvps.id", ondelete="CASCADE"), nullable=False, index=True)
    schedule_id = Column(Integer, ForeignKey("whatson_schedule.id", ondelete="CASCADE"), nullable=False)

    slot = relationship("ScheduleSlot", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("rsvp_id", "schedule_id", name="uq_rsvp_schedule"),
    )
