"""
Ticket and reference numbers for RSVPs.

    TKT-3F9A1C-7B        random, 8 hex chars
    REF-20260314-A41F0C  RSVP day + 6 hex chars

Both are unique across all RSVPs. Codes are drawn from `secrets` and checked
against the table; a clash just draws again.
"""

import secrets
from datetime import date
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.rsvp import RSVP
from app.services.helpers import utcnow
from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def generate_ticket_number() -> str:
    random_hex = secrets.token_hex(4).upper()
    return f"TKT-{random_hex[:6]}-{random_hex[6:8]}"


def generate_reference_number(today: Optional[date] = None) -> str:
    today = today or utcnow().date()
    return f"REF-{today:%Y%m%d}-{secrets.token_hex(3).upper()}"


async def allocate_identifiers(db: AsyncSession) -> tuple[str, str]:
    """Return an unused (ticket_number, reference_number) pair."""
    for attempt in range(1, settings.IDENTIFIER_ALLOCATION_ATTEMPTS + 1):
        ticket_number = generate_ticket_number()
        reference_number = generate_reference_number()
        taken = await db.execute(
            select(RSVP.id).where(
                or_(RSVP.ticket_number == ticket_number, RSVP.reference_number == reference_number)
            )
        )
        if not taken.first():
            return ticket_number, reference_number
        logger.warning("ticket_number_collision", attempt=attempt)

    logger.error("ticket_allocation_exhausted", attempts=settings.IDENTIFIER_ALLOCATION_ATTEMPTS)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to generate ticket/reference numbers",
    )
