"""
CSV export of an event's RSVPs for the event creator.
"""

import csv
import io
import re
from datetime import date
from typing import Iterable, Optional, Sequence

from app.models.rsvp import RSVP
from app.models.user_profile import UserProfile
from app.services.helpers import as_utc, utcnow

EXPORT_HEADERS = (
    "Name",
    "Email",
    "Ticket Number",
    "Reference",
    "Spots Booked",
    "Payment Status",
    "Status",
    "Selected Dates",
    "RSVP Date",
)

FILENAME_TITLE_MAX_LENGTH = 50


def to_csv(headers: Sequence[str], rows: Iterable[Sequence]) -> str:
    """
    Cells containing a comma, quote or newline are quote-wrapped with
    quotes doubled; csv.reader gives back the exact strings.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if cell is None else str(cell) for cell in row])
    return buffer.getvalue()


def sanitize_filename(title: str) -> str:
    name = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return name[:FILENAME_TITLE_MAX_LENGTH] or "event"


def export_filename(title: str, today: Optional[date] = None) -> str:
    today = today or utcnow().date()
    return f"{sanitize_filename(title)}-rsvps-{today.isoformat()}.csv"


def _attendee_name(profile: Optional[UserProfile]) -> str:
    if profile is None:
        return "N/A"
    full = " ".join(p for p in (profile.firstname, profile.surname) if p)
    return profile.name or full or "N/A"


def rsvp_row(rsvp: RSVP, profile: Optional[UserProfile]) -> list:
    slots = sorted((d.slot for d in rsvp.dates if d.slot is not None), key=lambda s: (s.sort_order, s.id))
    created = as_utc(rsvp.created_at)
    return [
        _attendee_name(profile),
        profile.email if profile and profile.email else "N/A",
        rsvp.ticket_number,
        rsvp.reference_number,
        rsvp.number_of_spots,
        rsvp.payment_status,
        rsvp.status,
        "; ".join(slot.label for slot in slots),
        created.date().isoformat() if created else "",
    ]


def build_rsvp_export(rows: Iterable[tuple[RSVP, Optional[UserProfile]]]) -> str:
    return to_csv(EXPORT_HEADERS, (rsvp_row(rsvp, profile) for rsvp, profile in rows))
