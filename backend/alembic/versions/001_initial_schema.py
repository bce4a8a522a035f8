"""Initial schema: profiles, gigs, applications, What's On events, RSVPs, notifications.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Profiles keyed by the identity provider's user id
    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("firstname", sa.String(100), nullable=True),
        sa.Column("surname", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("profile_photo_url", sa.String(1000), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_user_profiles_email", "user_profiles", ["email"])

    # Gigs and their child rows
    op.create_table(
        "gigs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(120), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("qualifying_criteria", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=True),
        sa.Column("request_quote", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("crew_count", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("role", sa.String(100), nullable=True),
        sa.Column("type", sa.String(100), nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'closed', 'expired')", name="check_gig_status"),
        sa.CheckConstraint("crew_count > 0", name="check_gig_crew_count_positive"),
    )
    op.create_index("ix_gigs_id", "gigs", ["id"])
    op.create_index("ix_gigs_slug", "gigs", ["slug"], unique=True)
    op.create_index("ix_gigs_created_by", "gigs", ["created_by"])
    # Public listing: WHERE status = 'active' ORDER BY created_at DESC
    op.create_index("ix_gigs_status_created", "gigs", ["status", "created_at"])

    op.create_table(
        "gig_locations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("gig_id", sa.Integer(), sa.ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("location_name", sa.String(255), nullable=False),
    )
    op.create_index("ix_gig_locations_gig_id", "gig_locations", ["gig_id"])

    op.create_table(
        "gig_date_windows",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("gig_id", sa.Integer(), sa.ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("label", sa.String(50), nullable=False),
        sa.Column("range", sa.String(100), nullable=False),
    )
    op.create_index("ix_gig_date_windows_gig_id", "gig_date_windows", ["gig_id"])

    # Applications: one per (gig, applicant)
    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("gig_id", sa.Integer(), sa.ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("applicant_user_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("cover_letter", sa.Text(), nullable=True),
        sa.Column("portfolio_links", sa.JSON(), nullable=True),
        sa.Column("resume_url", sa.String(1000), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("gig_id", "applicant_user_id", name="uq_gig_applicant"),
        sa.CheckConstraint(
            "status IN ('pending', 'shortlisted', 'confirmed', 'released')",
            name="check_application_status",
        ),
    )
    op.create_index("ix_applications_id", "applications", ["id"])
    op.create_index("ix_applications_gig_id", "applications", ["gig_id"])
    op.create_index("ix_applications_applicant_user_id", "applications", ["applicant_user_id"])

    # What's On events. `version` is the optimistic lock for RSVP capacity.
    op.create_table(
        "whatson_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(220), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("is_online", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("price_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("price_currency", sa.String(3), nullable=False, server_default=sa.text("'AED'")),
        sa.Column("rsvp_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_spots_per_person", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("total_spots", sa.Integer(), nullable=True),
        sa.Column("is_unlimited_spots", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("terms_conditions", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.String(1000), nullable=True),
        sa.Column("hero_image_url", sa.String(1000), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("status IN ('draft', 'published', 'cancelled')", name="check_event_status"),
        sa.CheckConstraint("max_spots_per_person > 0", name="check_max_spots_positive"),
        sa.CheckConstraint(
            "is_unlimited_spots OR (total_spots IS NOT NULL AND total_spots > 0)",
            name="check_total_spots_when_limited",
        ),
    )
    op.create_index("ix_whatson_events_id", "whatson_events", ["id"])
    op.create_index("ix_whatson_events_slug", "whatson_events", ["slug"], unique=True)
    op.create_index("ix_whatson_events_created_by", "whatson_events", ["created_by"])
    op.create_index("ix_whatson_events_status_created", "whatson_events", ["status", "created_at"])

    op.create_table(
        "whatson_schedule",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("whatson_events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("timezone", sa.String(50), nullable=False, server_default=sa.text("'GST'")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_index("ix_whatson_schedule_id", "whatson_schedule", ["id"])
    op.create_index("ix_whatson_schedule_event_id", "whatson_schedule", ["event_id"])

    op.create_table(
        "whatson_tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("whatson_events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tag_name", sa.String(50), nullable=False),
    )
    op.create_index("ix_whatson_tags_event_id", "whatson_tags", ["event_id"])
    op.create_index("ix_whatson_tags_tag_name", "whatson_tags", ["tag_name"])

    # RSVPs: one row per (event, user); cancelling is a status change
    op.create_table(
        "whatson_rsvps",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("whatson_events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("number_of_spots", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("payment_status", sa.String(10), nullable=False, server_default=sa.text("'n/a'")),
        sa.Column("ticket_number", sa.String(32), nullable=False),
        sa.Column("reference_number", sa.String(32), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("event_id", "user_id", name="uq_rsvp_event_user"),
        sa.UniqueConstraint("ticket_number", name="uq_rsvp_ticket_number"),
        sa.UniqueConstraint("reference_number", name="uq_rsvp_reference_number"),
        sa.CheckConstraint("number_of_spots > 0", name="check_rsvp_spots_positive"),
        sa.CheckConstraint("status IN ('confirmed', 'cancelled', 'waitlist')", name="check_rsvp_status"),
        sa.CheckConstraint("payment_status IN ('unpaid', 'paid', 'n/a')", name="check_rsvp_payment_status"),
    )
    op.create_index("ix_whatson_rsvps_id", "whatson_rsvps", ["id"])
    op.create_index("ix_whatson_rsvps_event_id", "whatson_rsvps", ["event_id"])
    op.create_index("ix_whatson_rsvps_user_id", "whatson_rsvps", ["user_id"])

    op.create_table(
        "whatson_rsvp_dates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("rsvp_id", sa.Integer(), sa.ForeignKey("whatson_rsvps.id", ondelete="CASCADE"), nullable=False),
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("whatson_schedule.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("rsvp_id", "schedule_id", name="uq_rsvp_schedule"),
    )
    op.create_index("ix_whatson_rsvp_dates_rsvp_id", "whatson_rsvp_dates", ["rsvp_id"])

    # Notifications
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("related_gig_id", sa.Integer(), sa.ForeignKey("gigs.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "related_application_id", sa.Integer(),
            sa.ForeignKey("applications.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    # Inbox: WHERE user_id = ? [AND is_read = false] ORDER BY created_at DESC
    op.create_index("ix_notifications_user_read_created", "notifications", ["user_id", "is_read", "created_at"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("whatson_rsvp_dates")
    op.drop_table("whatson_rsvps")
    op.drop_table("whatson_tags")
    op.drop_table("whatson_schedule")
    op.drop_table("whatson_events")
    op.drop_table("applications")
    op.drop_table("gig_date_windows")
    op.drop_table("gig_locations")
    op.drop_table("gigs")
    op.drop_table("user_profiles")
