"""
What's On event service: create, feed, detail and creator updates.

Spots booked and RSVP counts are never stored on the event; every read
sums confirmed RSVPs so the numbers cannot drift from the RSVP rows.
"""

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.enums import EventStatus, RSVPStatus
from app.models.event import EventTag, ScheduleSlot, WhatsOnEvent
from app.models.rsvp import RSVP
from app.models.user_profile import UserProfile
from app.schemas.common import Pagination
from app.schemas.event import (
    CreatorSummary, EventCreate, EventListData, EventResponse, EventUpdate, ScheduleSlotIn,
    ScheduleSlotOut,
)
from app.services.helpers import as_utc, unique_slug, utcnow
from app.services.profile_service import get_profiles
from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

# Fields an update may explicitly clear
NULLABLE_FIELDS = {"location", "rsvp_deadline", "total_spots", "terms_conditions", "thumbnail_url", "hero_image_url"}

# Fields an RSVP check reads; changing one claims the event version
RSVP_RULE_FIELDS = {"status", "rsvp_deadline", "total_spots", "is_unlimited_spots", "max_spots_per_person"}

SORTABLE_COLUMNS = {
    "created_at": WhatsOnEvent.created_at,
    "title": WhatsOnEvent.title,
    "rsvp_deadline": WhatsOnEvent.rsvp_deadline,
}


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def validate_event_fields(
    title: str,
    description: str,
    is_online: bool,
    location: Optional[str],
    is_unlimited_spots: bool,
    total_spots: Optional[int],
    schedule: list,
) -> None:
    """Form-level rules shared by create and update; first failure wins."""
    if not 3 <= len((title or "").strip()) <= 200:
        raise _bad_request("Title must be between 3 and 200 characters")
    if not (description or "").strip() or len(description) > 10000:
        raise _bad_request("Description is required and must be less than 10000 characters")
    if not is_online and not (location or "").strip():
        raise _bad_request("Location is required for in-person events")
    if not is_unlimited_spots and (total_spots is None or total_spots < 1):
        raise _bad_request("Total spots must be at least 1 if not unlimited")
    if not schedule:
        raise _bad_request("At least one schedule slot is required")


def _schedule_rows(slots: list[ScheduleSlotIn]) -> list[ScheduleSlot]:
    return [
        ScheduleSlot(
            event_date=slot.event_date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            timezone=slot.timezone or settings.DEFAULT_TIMEZONE,
            sort_order=index,
        )
        for index, slot in enumerate(slots)
    ]


def _tag_rows(tags: list[str]) -> list[EventTag]:
    names = dict.fromkeys(t.strip() for t in tags if t and t.strip())
    return [EventTag(tag_name=name) for name in names]


def to_response(
    event: WhatsOnEvent,
    creator: Optional[UserProfile] = None,
    rsvp_count: int = 0,
    spots_booked: int = 0,
) -> EventResponse:
    if event.is_unlimited_spots:
        spots_available = None
        fully_booked = False
    else:
        spots_available = max(0, (event.total_spots or 0) - spots_booked)
        fully_booked = spots_available == 0

    return EventResponse(
        id=event.id,
        created_by=event.created_by,
        title=event.title,
        slug=event.slug,
        description=event.description,
        location=event.location,
        is_online=event.is_online,
        is_paid=event.is_paid,
        price_amount=float(event.price_amount or 0),
        price_currency=event.price_currency,
        rsvp_deadline=as_utc(event.rsvp_deadline),
        max_spots_per_person=event.max_spots_per_person,
        total_spots=event.total_spots,
        is_unlimited_spots=event.is_unlimited_spots,
        terms_conditions=event.terms_conditions,
        thumbnail_url=event.thumbnail_url,
        hero_image_url=event.hero_image_url,
        status=event.status,
        created_at=as_utc(event.created_at),
        updated_at=as_utc(event.updated_at),
        schedule=[ScheduleSlotOut.model_validate(s) for s in event.schedule],
        tags=event.tag_names,
        creator=(
            CreatorSummary(name=creator.display_name, profile_photo_url=creator.profile_photo_url)
            if creator else None
        ),
        rsvp_count=rsvp_count,
        spots_booked=spots_booked,
        spots_available=spots_available,
        is_fully_booked=fully_booked,
    )


async def rsvp_totals(db: AsyncSession, event_ids: list[int]) -> dict[int, tuple[int, int]]:
    """event_id -> (confirmed RSVPs, confirmed spots)."""
    if not event_ids:
        return {}
    result = await db.execute(
        select(RSVP.event_id, func.count(RSVP.id), func.coalesce(func.sum(RSVP.number_of_spots), 0))
        .where(RSVP.event_id.in_(event_ids), RSVP.status == RSVPStatus.CONFIRMED.value)
        .group_by(RSVP.event_id)
    )
    return {event_id: (count, int(spots)) for event_id, count, spots in result.all()}


async def _enrich(db: AsyncSession, events: list[WhatsOnEvent]) -> list[EventResponse]:
    creators = await get_profiles(db, (e.created_by for e in events))
    totals = await rsvp_totals(db, [e.id for e in events])
    return [
        to_response(e, creators.get(e.created_by), *totals.get(e.id, (0, 0)))
        for e in events
    ]


async def get_event_model(db: AsyncSession, event_id: int) -> WhatsOnEvent:
    event = await db.get(WhatsOnEvent, event_id)
    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


async def create_event(db: AsyncSession, data: EventCreate, user_id: uuid.UUID) -> EventResponse:
    """Create an event with its schedule and tags in one transaction."""
    validate_event_fields(
        data.title, data.description, data.is_online, data.location,
        data.is_unlimited_spots, data.total_spots, data.schedule,
    )

    event = WhatsOnEvent(
        created_by=user_id,
        title=data.title.strip(),
        slug=await unique_slug(db, WhatsOnEvent, data.title),
        description=data.description,
        location=data.location,
        is_online=data.is_online,
        is_paid=data.is_paid,
        price_amount=data.price_amount if data.is_paid else 0,
        price_currency=data.price_currency or settings.DEFAULT_CURRENCY,
        rsvp_deadline=as_utc(data.rsvp_deadline),
        max_spots_per_person=data.max_spots_per_person,
        total_spots=None if data.is_unlimited_spots else data.total_spots,
        is_unlimited_spots=data.is_unlimited_spots,
        terms_conditions=data.terms_conditions,
        thumbnail_url=data.thumbnail_url,
        hero_image_url=data.hero_image_url,
        status=data.status.value,
        version=1,
        schedule=_schedule_rows(data.schedule),
        tags=_tag_rows(data.tags),
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    logger.info(
        "event_created",
        event_id=event.id,
        slug=event.slug,
        status=event.status,
        spots=event.total_spots,
        slots=len(event.schedule),
    )
    return (await _enrich(db, [event]))[0]


async def list_events(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    event_status: EventStatus = EventStatus.PUBLISHED,
    keyword: Optional[str] = None,
    is_paid: Optional[bool] = None,
    is_online: Optional[bool] = None,
    location: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    tags: Optional[list[str]] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> EventListData:
    """
    Public feed. Drafts never appear here; creators see them under
    list_my_events. Date and tag filters match when any schedule slot or
    any tag matches.
    """
    if event_status == EventStatus.DRAFT:
        raise _bad_request("Draft events are not listed publicly")

    query = select(WhatsOnEvent).where(WhatsOnEvent.status == event_status.value)

    if keyword:
        pattern = f"%{keyword}%"
        query = query.where(or_(WhatsOnEvent.title.ilike(pattern), WhatsOnEvent.description.ilike(pattern)))
    if is_paid is not None:
        query = query.where(WhatsOnEvent.is_paid.is_(is_paid))
    if is_online is not None:
        query = query.where(WhatsOnEvent.is_online.is_(is_online))
    if location:
        query = query.where(WhatsOnEvent.location.ilike(f"%{location}%"))
    if date_from or date_to:
        slot_match = [ScheduleSlot.event_id == WhatsOnEvent.id]
        if date_from:
            slot_match.append(ScheduleSlot.event_date >= date_from)
        if date_to:
            slot_match.append(ScheduleSlot.event_date <= date_to)
        query = query.where(exists().where(*slot_match))
    if tags:
        query = query.where(
            exists().where(EventTag.event_id == WhatsOnEvent.id, EventTag.tag_name.in_(tags))
        )

    column = SORTABLE_COLUMNS.get(sort_by, WhatsOnEvent.created_at)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(ordering, WhatsOnEvent.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    events = list(result.scalars().all())

    return EventListData(
        events=await _enrich(db, events),
        pagination=Pagination.build(page, limit, total),
    )


async def get_event(db: AsyncSession, event_id: int, viewer_id: Optional[uuid.UUID] = None) -> EventResponse:
    """Drafts are visible to their creator only; everyone else gets 404."""
    event = await get_event_model(db, event_id)
    if event.status == EventStatus.DRAFT.value and event.created_by != viewer_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return (await _enrich(db, [event]))[0]


async def list_my_events(
    db: AsyncSession,
    user_id: uuid.UUID,
    event_status: Optional[EventStatus] = None,
    page: int = 1,
    limit: int = 20,
) -> EventListData:
    query = select(WhatsOnEvent).where(WhatsOnEvent.created_by == user_id)
    if event_status:
        query = query.where(WhatsOnEvent.status == event_status.value)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(WhatsOnEvent.created_at.desc(), WhatsOnEvent.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    events = list(result.scalars().all())

    return EventListData(
        events=await _enrich(db, events),
        pagination=Pagination.build(page, limit, total),
    )


async def update_event(
    db: AsyncSession,
    event_id: int,
    data: EventUpdate,
    user_id: uuid.UUID,
) -> EventResponse:
    event = await get_event_model(db, event_id)
    if event.created_by != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the event creator can update this event",
        )
    # Read before the booked recount below
    seen_version = event.version

    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True, exclude={"schedule", "tags"}).items()
        if value is not None or field in NULLABLE_FIELDS
    }

    # Validate the event as it will look after the update
    merged = {
        field: changes.get(field, getattr(event, field))
        for field in ("title", "description", "is_online", "location", "is_unlimited_spots", "total_spots")
    }
    validate_event_fields(
        schedule=data.schedule if data.schedule is not None else event.schedule,
        **merged,
    )

    if not merged["is_unlimited_spots"]:
        booked = (await rsvp_totals(db, [event.id])).get(event.id, (0, 0))[1]
        if merged["total_spots"] < booked:
            raise _bad_request(f"Total spots cannot be less than spots already booked ({booked})")

    if data.schedule is not None or RSVP_RULE_FIELDS & changes.keys():
        # Same compare-and-swap as an RSVP: an RSVP that checked the old rules
        # loses its claim and re-checks, and one that landed since our recount
        # makes this update lose instead
        claimed = await db.execute(
            update(WhatsOnEvent)
            .where(WhatsOnEvent.id == event.id, WhatsOnEvent.version == seen_version)
            .values(version=WhatsOnEvent.version + 1)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            logger.info("event_update_conflict", event_id=event.id, seen_version=seen_version)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Event was changed by another request. Please try again.",
            )

    for field, value in changes.items():
        if field == "status":
            value = EventStatus(value).value
        elif field == "rsvp_deadline":
            value = as_utc(value)
        elif field == "title":
            value = value.strip()
        setattr(event, field, value)
    if event.is_unlimited_spots:
        event.total_spots = None

    if data.schedule is not None:
        event.schedule = _schedule_rows(data.schedule)
    if data.tags is not None:
        event.tags = _tag_rows(data.tags)

    event.updated_at = utcnow()
    await db.flush()
    await db.refresh(event)

    logger.info("event_updated", event_id=event.id, fields=sorted(changes))
    return (await _enrich(db, [event]))[0]
