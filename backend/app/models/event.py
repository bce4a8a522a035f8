"""
What's On event model with schedule slots, tags and RSVP capacity settings.

Key design decisions:
- `total_spots` is NULL when `is_unlimited_spots` is set
- Spots booked are never stored; they are summed from confirmed RSVPs
- `version` is bumped by every RSVP create/cancel and by every update that
  touches the RSVP rules, so concurrent capacity checks on the same event
  serialise through a compare-and-swap
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer,
    Numeric, String, Text, Time, Uuid,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin
from app.models.enums import EventStatus, check_in


class WhatsOnEvent(Base, TimestampMixin):
    __tablename__ = "whatson_events"

    id = Column(Integer, primary_key=True, index=True)
    created_by = Column(Uuid, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    slug = Column(String(220), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False)
    location = Column(String(255), nullable=True)
    is_online = Column(Boolean, nullable=False, default=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    price_amount = Column(Numeric(12, 2), nullable=False, default=0)
    price_currency = Column(String(3), nullable=False, default="AED")
    rsvp_deadline = Column(DateTime(timezone=True), nullable=True)
    max_spots_per_person = Column(Integer, nullable=False, default=1)
    total_spots = Column(Integer, nullable=True)
    is_unlimited_spots = Column(Boolean, nullable=False, default=False)
    terms_conditions = Column(Text, nullable=True)
    thumbnail_url = Column(String(1000), nullable=True)
    hero_image_url = Column(String(1000), nullable=True)
    status = Column(String(20), nullable=False, default=EventStatus.DRAFT.value)

    # Optimistic concurrency counter for capacity accounting
    version = Column(Integer, nullable=False, default=1)

    schedule = relationship(
        "ScheduleSlot", cascade="all, delete-orphan", passive_deletes=True,
        lazy="selectin", order_by="ScheduleSlot.sort_order",
    )
    tags = relationship(
        "EventTag", cascade="all, delete-orphan", passive_deletes=True,
        lazy="selectin", order_by="EventTag.id",
    )

    __table_args__ = (
        CheckConstraint(check_in("status", EventStatus), name="check_event_status"),
        CheckConstraint("max_spots_per_person > 0", name="check_max_spots_positive"),
        CheckConstraint(
            "is_unlimited_spots OR (total_spots IS NOT NULL AND total_spots > 0)",
            name="check_total_spots_when_limited",
        ),
        Index("ix_whatson_events_status_created", "status", "created_at"),
    )

    @property
    def tag_names(self) -> list[str]:
        return [t.tag_name for t in self.tags]

    def __repr__(self) -> str:
        return f"<WhatsOnEvent(id={self.id}, slug={self.slug}, status={self.status})>"


class ScheduleSlot(Base):
    __tablename__ = "whatson_schedule"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("whatson_events.id", ondelete="CASCADE"), nullable=False, index=True)
    event_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    timezone = Column(String(50), nullable=False, default="GST")
    sort_order = Column(Integer, nullable=False, default=0)

    @property
    def label(self) -> str:
        """'2026-03-14 18:00-21:00 GST', the format used in exports."""
        return (
            f"{self.event_date.isoformat()} "
            f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')} "
            f"{self.timezone}"
        )


class EventTag(Base):
    __tablename__ = "whatson_tags"

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey("whatson_events.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_name = Column(String(50), nullable=False, index=True)
