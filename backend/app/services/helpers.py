"""
Small helpers shared by the marketplace services.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

SLUG_MAX_LENGTH = 50


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to UTC; naive datetimes (SQLite, naive client input) are taken as UTC."""
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_past(value: Optional[datetime]) -> bool:
    return value is not None and as_utc(value) < utcnow()


def slugify(title: str) -> str:
    slug = title.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:SLUG_MAX_LENGTH].rstrip("-") or "untitled"


async def unique_slug(db: AsyncSession, model, title: str) -> str:
    """Slug from title, suffixed -1, -2, ... until unused in model's table."""
    base = slugify(title)
    slug, counter = base, 1
    while (await db.execute(select(model.id).where(model.slug == slug))).first():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def format_budget_label(amount, currency: Optional[str], request_quote: bool) -> str:
    if request_quote:
        return "Request Quote"
    if not amount or not currency:
        return "Budget TBD"
    value = Decimal(str(amount))
    formatted = f"{value:,.0f}" if value == value.to_integral_value() else f"{value:,.2f}"
    return f"{currency} {formatted}"
