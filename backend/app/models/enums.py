from enum import Enum


class GigStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    EXPIRED = "expired"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    SHORTLISTED = "shortlisted"
    CONFIRMED = "confirmed"
    RELEASED = "released"


class EventStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"


class RSVPStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    WAITLIST = "waitlist"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    NOT_APPLICABLE = "n/a"


class ReferralStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class NotificationType(str, Enum):
    APPLICATION_RECEIVED = "application_received"
    STATUS_CHANGED = "status_changed"
    RSVP_RECEIVED = "rsvp_received"
    RSVP_CANCELLED = "rsvp_cancelled"
    REFERRAL_RECEIVED = "referral_received"


def values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


def check_in(column: str, enum_cls) -> str:
    """SQL for a CHECK constraint restricting a column to an enum's values."""
    quoted = ", ".join(f"'{v}'" for v in values(enum_cls))
    return f"{column} IN ({quoted})"
