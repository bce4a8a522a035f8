"""
RSVP endpoints with concurrency-safe capacity accounting.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import Envelope
from app.schemas.rsvp import RSVPCreate, RSVPListData, RSVPResponse
from app.services import rsvp_service
from app.services.cache_service import invalidate_feed_cache
from app.services.export_service import build_rsvp_export, export_filename
from app.core.security import CurrentUser, get_current_user
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/whatson/{event_id}/rsvp", tags=["RSVPs"])


@router.post("", response_model=Envelope[RSVPResponse], status_code=status.HTTP_201_CREATED)
async def create_rsvp_endpoint(
    event_id: int,
    rsvp_data: RSVPCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    RSVP to a published event.

    Capacity is re-checked under an optimistic lock on the event. If the RSVP
    keeps losing to simultaneous RSVPs, it gives up after
    CAPACITY_RETRY_ATTEMPTS with a 409.
    """
    rsvp = await rsvp_service.create_rsvp(db, event_id, rsvp_data, user.id)
    # Commit before invalidating, or a feed read in between re-caches the old spot counts
    await db.commit()
    await invalidate_feed_cache()
    return Envelope(message="RSVP created successfully", data=rsvp)


@router.delete("", response_model=Envelope[RSVPResponse])
async def cancel_rsvp_endpoint(
    event_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel the caller's RSVP and release the spots."""
    rsvp = await rsvp_service.cancel_rsvp(db, event_id, user.id)
    await db.commit()
    await invalidate_feed_cache()
    return Envelope(message="RSVP cancelled successfully", data=rsvp)


@router.get("/list", response_model=Envelope[RSVPListData])
async def list_rsvps_endpoint(
    event_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    payment_status: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Event creator only. The summary covers every RSVP, not just this page."""
    data = await rsvp_service.list_event_rsvps(
        db, event_id, user.id, page, limit, status_filter, payment_status
    )
    return Envelope(message="RSVPs retrieved successfully", data=data)


@router.get("/export", response_class=Response)
async def export_rsvps_endpoint(
    event_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Event creator only. Every RSVP of the event as a CSV attachment."""
    event, rows = await rsvp_service.get_export_rows(db, event_id, user.id)
    content = build_rsvp_export(rows)
    filename = export_filename(event.title)

    logger.info("rsvps_exported", event_id=event.id, rows=len(rows))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
