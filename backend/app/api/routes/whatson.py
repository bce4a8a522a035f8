"""
What's On event endpoints with Redis caching on the public feed.
"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.enums import EventStatus
from app.schemas.common import Envelope
from app.schemas.event import EventCreate, EventListData, EventResponse, EventUpdate
from app.schemas.rsvp import MyRSVPsData
from app.services import event_service, rsvp_service
from app.services.cache_service import get_cached_feed, invalidate_feed_cache, set_cached_feed
from app.core.security import CurrentUser, get_current_user, get_optional_user
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/whatson", tags=["What's On"])


@router.post("", response_model=Envelope[EventResponse], status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create an event with its schedule and tags. Status defaults to draft."""
    event = await event_service.create_event(db, event_data, user.id)
    # Invalidate after commit so the feed cannot be re-cached from the old rows
    await db.commit()
    await invalidate_feed_cache()
    return Envelope(message="Event created successfully", data=event)


@router.get("", response_model=Envelope[EventListData])
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    event_status: EventStatus = Query(EventStatus.PUBLISHED, alias="status"),
    keyword: Optional[str] = Query(None, max_length=200),
    is_paid: Optional[bool] = None,
    is_online: Optional[bool] = None,
    location: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    tags: Optional[str] = Query(None, description="Comma-separated; matches any"),
    sort_by: Literal["created_at", "title", "rsvp_deadline"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: AsyncSession = Depends(get_db),
):
    """
    Public feed with RSVP counts and remaining spots.
    Results are cached in Redis for REDIS_CACHE_TTL seconds.
    Cache is invalidated when events change or RSVPs are made or cancelled.
    """
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    params = {
        "page": page,
        "limit": limit,
        "status": event_status.value,
        "keyword": keyword,
        "is_paid": is_paid,
        "is_online": is_online,
        "location": location,
        "date_from": date_from,
        "date_to": date_to,
        "tags": tag_list,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }

    # Try cache first
    cached = await get_cached_feed(params)
    if cached:
        logger.info("whatson_feed_cache_hit", page=page)
        cached["cached"] = True
        return Envelope(message="Events retrieved successfully", data=EventListData(**cached))

    # Cache miss - query database
    data = await event_service.list_events(
        db,
        page=page,
        limit=limit,
        event_status=event_status,
        keyword=keyword,
        is_paid=is_paid,
        is_online=is_online,
        location=location,
        date_from=date_from,
        date_to=date_to,
        tags=tag_list,
        sort_by=sort_by,
        sort_order=sort_order,
    )

    # Store in cache for next request
    await set_cached_feed(params, data.model_dump(mode="json"))

    return Envelope(message="Events retrieved successfully", data=data)


# Declared before /{event_id} so these paths are not parsed as ids
@router.get("/my", response_model=Envelope[EventListData])
async def list_my_events_endpoint(
    event_status: Optional[EventStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's own events in any status, drafts included."""
    data = await event_service.list_my_events(db, user.id, event_status, page, limit)
    return Envelope(message="Events retrieved successfully", data=data)


@router.get("/rsvps/my", response_model=Envelope[MyRSVPsData])
async def list_my_rsvps_endpoint(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await rsvp_service.list_my_rsvps(db, user.id, status_filter, page, limit)
    return Envelope(message="RSVPs retrieved successfully", data=data)


@router.get("/{event_id}", response_model=Envelope[EventResponse])
async def get_event_endpoint(
    event_id: int,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a single event. Not cached (needs real-time spot counts)."""
    event = await event_service.get_event(db, event_id, user.id if user else None)
    return Envelope(message="Event retrieved successfully", data=event)


@router.patch("/{event_id}", response_model=Envelope[EventResponse])
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update an event; cancelling is `status=cancelled`."""
    event = await event_service.update_event(db, event_id, event_data, user.id)
    await db.commit()
    await invalidate_feed_cache()
    return Envelope(message="Event updated successfully", data=event)
