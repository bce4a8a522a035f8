"""
RSVP service with concurrency-safe capacity accounting.

CONCURRENCY STRATEGY: Optimistic Locking with Retry
====================================================

Problem:
  Spots booked are summed from confirmed RSVPs, never stored. Two users
  RSVP to the last spots at once: both sum, both see room, both insert.
  Result: Overbooking.

Solution:
  Every RSVP create and cancel bumps `whatson_events.version`, and so does
  an event update that changes the rules checked below.

  1. Read the event and remember its version
  2. Run the ordered checks, including the capacity recount
  3. UPDATE whatson_events SET version = version + 1
     WHERE id = :event_id AND version = :seen_version
  4. If rows_affected == 0, another RSVP landed in between -> roll back,
     re-read and re-check, up to CAPACITY_RETRY_ATTEMPTS times
  5. Insert (or re-activate) the RSVP in the same transaction

  The winning UPDATE holds the event row lock until the request commits, so
  a concurrent writer either sees its RSVP in the recount or loses the
  compare-and-swap. Unlimited events go through the same path; the version
  bump is cheap and keeps one code path.
"""

import time
import uuid
from typing import Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.enums import EventStatus, NotificationType, PaymentStatus, RSVPStatus
from app.models.event import WhatsOnEvent
from app.models.rsvp import RSVP, RSVPDate
from app.schemas.common import Pagination
from app.schemas.rsvp import (
    AttendeeSummary, MyRSVPItem, MyRSVPsData, RSVPCreate, RSVPEventSummary, RSVPListData,
    RSVPListItem, RSVPResponse, RSVPSummary, SelectedDate,
)
from app.services.event_service import get_event_model
from app.services.helpers import as_utc, is_past, utcnow
from app.services.notification_service import notify
from app.services.profile_service import get_profile, get_profiles
from app.services.ticketing import allocate_identifiers
from app.core.config import get_settings
from app.core.metrics import capacity_retries, record_rsvp_attempt, rsvp_cancellations, rsvp_latency
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def selected_dates(rsvp: RSVP) -> list[SelectedDate]:
    slots = sorted((d.slot for d in rsvp.dates if d.slot is not None), key=lambda s: (s.sort_order, s.id))
    return [
        SelectedDate(
            schedule_id=s.id,
            event_date=s.event_date,
            start_time=s.start_time,
            end_time=s.end_time,
            timezone=s.timezone,
        )
        for s in slots
    ]


def _response_fields(rsvp: RSVP) -> dict:
    return dict(
        id=rsvp.id,
        event_id=rsvp.event_id,
        user_id=rsvp.user_id,
        number_of_spots=rsvp.number_of_spots,
        status=rsvp.status,
        payment_status=rsvp.payment_status,
        ticket_number=rsvp.ticket_number,
        reference_number=rsvp.reference_number,
        created_at=as_utc(rsvp.created_at),
        updated_at=as_utc(rsvp.updated_at),
        selected_dates=selected_dates(rsvp),
    )


def to_response(rsvp: RSVP) -> RSVPResponse:
    return RSVPResponse(**_response_fields(rsvp))


async def count_booked_spots(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(RSVP.number_of_spots), 0)).where(
            RSVP.event_id == event_id,
            RSVP.status == RSVPStatus.CONFIRMED.value,
        )
    )
    return int(result.scalar() or 0)


async def _check_rsvp(
    db: AsyncSession,
    event: WhatsOnEvent,
    data: RSVPCreate,
    user_id: uuid.UUID,
    existing: Optional[RSVP],
) -> list[int]:
    """
    Ordered checks; the first failure wins:
    published -> not creator -> deadline -> no confirmed RSVP ->
    spots in range -> capacity -> schedule ids.
    Returns the de-duplicated schedule ids.
    """
    if event.status != EventStatus.PUBLISHED.value:
        raise _bad_request("Cannot RSVP to non-published events")
    if event.created_by == user_id:
        raise _bad_request("Cannot RSVP to your own event")
    if is_past(event.rsvp_deadline):
        raise _bad_request("RSVP deadline has passed")
    if existing is not None and existing.status == RSVPStatus.CONFIRMED.value:
        raise _bad_request("You have already RSVP'd to this event")

    spots = data.number_of_spots
    if spots < 1:
        raise _bad_request("Number of spots must be at least 1")
    if spots > event.max_spots_per_person:
        raise _bad_request(f"Cannot book more than {event.max_spots_per_person} spots per person")

    if not event.is_unlimited_spots:
        available = max(0, (event.total_spots or 0) - await count_booked_spots(db, event.id))
        if spots > available:
            logger.info("rsvp_rejected_capacity", event_id=event.id, requested=spots, available=available)
            raise _bad_request(f"Only {available} spots available")

    if not data.schedule_ids:
        raise _bad_request("At least one date must be selected")
    schedule_ids = list(dict.fromkeys(data.schedule_ids))
    valid_ids = {slot.id for slot in event.schedule}
    if not set(schedule_ids) <= valid_ids:
        raise _bad_request("Invalid schedule IDs")

    return schedule_ids


async def _find_rsvp(db: AsyncSession, event_id: int, user_id: uuid.UUID) -> Optional[RSVP]:
    result = await db.execute(
        select(RSVP).where(RSVP.event_id == event_id, RSVP.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_rsvp(
    db: AsyncSession,
    event_id: int,
    data: RSVPCreate,
    user_id: uuid.UUID,
) -> RSVPResponse:
    start = time.perf_counter()
    try:
        rsvp = await _create_rsvp(db, event_id, data, user_id)
    except HTTPException as e:
        record_rsvp_attempt("conflict" if e.status_code == status.HTTP_409_CONFLICT else "rejected")
        raise
    except Exception:
        record_rsvp_attempt("error")
        raise
    record_rsvp_attempt("created")
    rsvp_latency.observe(time.perf_counter() - start)
    return rsvp


async def _create_rsvp(
    db: AsyncSession,
    event_id: int,
    data: RSVPCreate,
    user_id: uuid.UUID,
) -> RSVPResponse:
    for attempt in range(1, settings.CAPACITY_RETRY_ATTEMPTS + 1):
        # Step 1: Read current event state
        event = await get_event_model(db, event_id)
        seen_version = event.version

        # Step 2: Ordered checks against the current state
        existing = await _find_rsvp(db, event.id, user_id)
        schedule_ids = await _check_rsvp(db, event, data, user_id, existing)

        # Step 3: Claim the event version
        claimed = await db.execute(
            update(WhatsOnEvent)
            .where(WhatsOnEvent.id == event.id, WhatsOnEvent.version == seen_version)
            .values(version=WhatsOnEvent.version + 1)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            logger.info("rsvp_retry", event_id=event.id, attempt=attempt, reason="version_conflict")
            capacity_retries.inc()
            # Drop cached state so the next read gets fresh data
            await db.rollback()
            continue

        # Step 4: Insert, or re-activate a cancelled RSVP
        ticket_number, reference_number = await allocate_identifiers(db)
        payment_status = PaymentStatus.UNPAID if event.is_paid else PaymentStatus.NOT_APPLICABLE
        slots = {slot.id: slot for slot in event.schedule}
        new_dates = [RSVPDate(schedule_id=sid, slot=slots[sid]) for sid in schedule_ids]

        if existing is None:
            rsvp = RSVP(
                event_id=event.id,
                user_id=user_id,
                number_of_spots=data.number_of_spots,
                status=RSVPStatus.CONFIRMED.value,
                payment_status=payment_status.value,
                ticket_number=ticket_number,
                reference_number=reference_number,
                dates=new_dates,
            )
            db.add(rsvp)
        else:
            rsvp = existing
            # Old date rows go first so re-selected slots don't hit uq_rsvp_schedule
            rsvp.dates = []
            await db.flush()
            rsvp.number_of_spots = data.number_of_spots
            rsvp.status = RSVPStatus.CONFIRMED.value
            rsvp.payment_status = payment_status.value
            rsvp.ticket_number = ticket_number
            rsvp.reference_number = reference_number
            rsvp.dates = new_dates
            rsvp.updated_at = utcnow()

        await db.flush()
        await db.refresh(rsvp, attribute_names=["created_at", "updated_at"])

        logger.info(
            "rsvp_created",
            rsvp_id=rsvp.id,
            event_id=event.id,
            user_id=str(user_id),
            spots=rsvp.number_of_spots,
            reactivated=existing is not None,
            attempt=attempt,
        )

        attendee = await get_profile(db, user_id)
        name = attendee.display_name if attendee else "Someone"
        await notify(
            db,
            user_id=event.created_by,
            actor_id=user_id,
            type=NotificationType.RSVP_RECEIVED,
            title="New RSVP Received",
            message=f'{name} RSVP\'d to your event "{event.title}" ({rsvp.number_of_spots} spot(s))',
            metadata={
                "event_id": event.id,
                "event_title": event.title,
                "rsvp_id": rsvp.id,
                "number_of_spots": rsvp.number_of_spots,
            },
        )
        return to_response(rsvp)

    logger.warning("rsvp_failed_contention", event_id=event_id, attempts=settings.CAPACITY_RETRY_ATTEMPTS)
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="RSVP failed due to high demand. Please try again.",
    )


async def cancel_rsvp(db: AsyncSession, event_id: int, user_id: uuid.UUID) -> RSVPResponse:
    """Soft-cancel the caller's RSVP; the spots return to the pool."""
    rsvp = await _find_rsvp(db, event_id, user_id)
    if not rsvp:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="RSVP not found",
        )
    if rsvp.status == RSVPStatus.CANCELLED.value:
        raise _bad_request("RSVP already cancelled")

    await db.execute(
        update(WhatsOnEvent)
        .where(WhatsOnEvent.id == event_id)
        .values(version=WhatsOnEvent.version + 1)
        .execution_options(synchronize_session=False)
    )

    rsvp.status = RSVPStatus.CANCELLED.value
    rsvp.updated_at = utcnow()
    await db.flush()
    await db.refresh(rsvp, attribute_names=["status", "updated_at"])
    rsvp_cancellations.inc()

    logger.info("rsvp_cancelled", rsvp_id=rsvp.id, event_id=event_id, user_id=str(user_id))

    event = await db.get(WhatsOnEvent, event_id)
    if event is not None:
        attendee = await get_profile(db, user_id)
        name = attendee.display_name if attendee else "Someone"
        await notify(
            db,
            user_id=event.created_by,
            actor_id=user_id,
            type=NotificationType.RSVP_CANCELLED,
            title="RSVP Cancelled",
            message=f'{name} cancelled their RSVP to "{event.title}"',
            metadata={"event_id": event.id, "event_title": event.title, "rsvp_id": rsvp.id},
        )
    return to_response(rsvp)


async def _get_owned_event(db: AsyncSession, event_id: int, user_id: uuid.UUID, detail: str) -> WhatsOnEvent:
    event = await get_event_model(db, event_id)
    if event.created_by != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    return event


async def summarize_rsvps(db: AsyncSession, event_id: int) -> RSVPSummary:
    """Counts over every RSVP of the event, independent of paging and filters."""
    is_confirmed = RSVP.status == RSVPStatus.CONFIRMED.value
    result = await db.execute(
        select(
            func.count(RSVP.id),
            func.sum(case((is_confirmed, 1), else_=0)),
            func.sum(case((RSVP.status == RSVPStatus.CANCELLED.value, 1), else_=0)),
            func.sum(case((RSVP.status == RSVPStatus.WAITLIST.value, 1), else_=0)),
            func.sum(case((RSVP.payment_status == PaymentStatus.PAID.value, 1), else_=0)),
            func.sum(case((RSVP.payment_status == PaymentStatus.UNPAID.value, 1), else_=0)),
            func.sum(case((is_confirmed, RSVP.number_of_spots), else_=0)),
        ).where(RSVP.event_id == event_id)
    )
    total, confirmed, cancelled, waitlist, paid, unpaid, spots = result.one()
    return RSVPSummary(
        total_rsvps=total or 0,
        confirmed=confirmed or 0,
        cancelled=cancelled or 0,
        waitlist=waitlist or 0,
        paid=paid or 0,
        unpaid=unpaid or 0,
        total_spots_booked=spots or 0,
    )


async def list_event_rsvps(
    db: AsyncSession,
    event_id: int,
    user_id: uuid.UUID,
    page: int = 1,
    limit: int = 20,
    status_filter: Optional[str] = None,
    payment_status: Optional[str] = None,
) -> RSVPListData:
    event = await _get_owned_event(db, event_id, user_id, "Only event creator can view RSVPs")

    query = select(RSVP).where(RSVP.event_id == event.id)
    if status_filter:
        query = query.where(RSVP.status == status_filter)
    if payment_status:
        query = query.where(RSVP.payment_status == payment_status)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(RSVP.created_at.desc(), RSVP.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rsvps = list(result.scalars().all())
    profiles = await get_profiles(db, (r.user_id for r in rsvps))

    items = []
    for r in rsvps:
        profile = profiles.get(r.user_id)
        attendee = AttendeeSummary(
            id=r.user_id,
            name=profile.display_name if profile else None,
            email=profile.email if profile else None,
            profile_photo_url=profile.profile_photo_url if profile else None,
        )
        items.append(RSVPListItem(**_response_fields(r), attendee=attendee))

    return RSVPListData(
        rsvps=items,
        summary=await summarize_rsvps(db, event.id),
        pagination=Pagination.build(page, limit, total),
    )


async def get_export_rows(db: AsyncSession, event_id: int, user_id: uuid.UUID):
    """All RSVPs of the event with attendee profiles, newest first."""
    event = await _get_owned_event(db, event_id, user_id, "Only event creator can export RSVPs")
    result = await db.execute(
        select(RSVP).where(RSVP.event_id == event.id).order_by(RSVP.created_at.desc(), RSVP.id.desc())
    )
    rsvps = list(result.scalars().all())
    profiles = await get_profiles(db, (r.user_id for r in rsvps))
    return event, [(r, profiles.get(r.user_id)) for r in rsvps]


async def list_my_rsvps(
    db: AsyncSession,
    user_id: uuid.UUID,
    status_filter: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> MyRSVPsData:
    query = select(RSVP).where(RSVP.user_id == user_id)
    if status_filter:
        query = query.where(RSVP.status == status_filter)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(RSVP.created_at.desc(), RSVP.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rsvps = list(result.scalars().all())

    events = {}
    event_ids = list({r.event_id for r in rsvps})
    if event_ids:
        rows = await db.execute(select(WhatsOnEvent).where(WhatsOnEvent.id.in_(event_ids)))
        events = {e.id: e for e in rows.scalars().all()}

    items = []
    for r in rsvps:
        event = events.get(r.event_id)
        summary = None
        if event is not None:
            summary = RSVPEventSummary(
                id=event.id,
                title=event.title,
                slug=event.slug,
                location=event.location,
                is_online=event.is_online,
                is_paid=event.is_paid,
                price_amount=float(event.price_amount or 0),
                price_currency=event.price_currency,
                thumbnail_url=event.thumbnail_url,
                status=event.status,
            )
        items.append(MyRSVPItem(**_response_fields(r), event=summary))

    return MyRSVPsData(rsvps=items, pagination=Pagination.build(page, limit, total))
