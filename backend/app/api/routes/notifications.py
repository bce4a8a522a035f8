"""
In-app notification endpoints for the authenticated user.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import Envelope
from app.schemas.notification import MarkAllReadResult, NotificationListData, NotificationRead
from app.services import notification_service
from app.core.security import CurrentUser, get_current_user

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=Envelope[NotificationListData])
async def list_notifications_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest first, with the total unread count regardless of filters."""
    data = await notification_service.list_notifications(db, user.id, page, limit, unread_only)
    return Envelope(message="Notifications retrieved successfully", data=data)


# Declared before /{notification_id}/read
@router.patch("/mark-all-read", response_model=Envelope[MarkAllReadResult])
async def mark_all_read_endpoint(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await notification_service.mark_all_read(db, user.id)
    return Envelope(message="All notifications marked as read", data=MarkAllReadResult(updated_count=updated))


@router.patch("/{notification_id}/read", response_model=Envelope[NotificationRead])
async def mark_read_endpoint(
    notification_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await notification_service.mark_read(db, user.id, notification_id)
    return Envelope(message="Notification marked as read", data=data)
