"""
Gig model: a work posting that other users apply to.

Key design decisions:
- `slug` is unique and derived from the title for public URLs
- Locations and date windows are child rows, loaded eagerly with the gig
- Applications reference the gig with ON DELETE CASCADE
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer,
    Numeric, String, Text, Uuid,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin
from app.models.enums import GigStatus, check_in


class Gig(Base, TimestampMixin):
    __tablename__ = "gigs"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    qualifying_criteria = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(3), nullable=True)
    request_quote = Column(Boolean, nullable=False, default=False)
    crew_count = Column(Integer, nullable=False, default=1)
    role = Column(String(100), nullable=True)
    type = Column(String(100), nullable=True)
    department = Column(String(100), nullable=True)
    company = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=GigStatus.ACTIVE.value)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Uuid, nullable=False, index=True)

    locations = relationship(
        "GigLocation", cascade="all, delete-orphan", passive_deletes=True,
        lazy="selectin", order_by="GigLocation.id",
    )
    date_windows = relationship(
        "GigDateWindow", cascade="all, delete-orphan", passive_deletes=True,
        lazy="selectin", order_by="GigDateWindow.id",
    )

    __table_args__ = (
        CheckConstraint(check_in("status", GigStatus), name="check_gig_status"),
        CheckConstraint("crew_count > 0", name="check_gig_crew_count_positive"),
        # Public listing: active gigs ordered by recency
        Index("ix_gigs_status_created", "status", "created_at"),
    )

    @property
    def location_names(self) -> list[str]:
        return [loc.location_name for loc in self.locations]

    def __repr__(self) -> str:
        return f"<Gig(id={self.id}, slug={self.slug}, status={self.status})>"


class GigLocation(Base):
    __tablename__ = "gig_locations"

    id = Column(Integer, primary_key=True)
    gig_id = Column(Integer, ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False, index=True)
    location_name = Column(String(255), nullable=False)


class GigDateWindow(Base):
    __tablename__ = "gig_date_windows"

    id = Column(Integer, primary_key=True)
    gig_id = Column(Integer, ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(50), nullable=False)  # e.g. "March 2026"
    range = Column(String(100), nullable=False)  # e.g. "12-15"
