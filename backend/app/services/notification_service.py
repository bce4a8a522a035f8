"""
In-app notifications.

Writes are best-effort side effects: `notify` runs the insert inside a
SAVEPOINT so a failure rolls back only the notification and the caller's
transaction carries on. Failures are logged and counted, never raised.
"""

import math
import uuid
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.enums import NotificationType
from app.models.notification import Notification
from app.schemas.notification import (
    ActorSummary, NotificationListData, NotificationPagination, NotificationRead, NotificationResponse,
)
from app.services.helpers import as_utc, utcnow
from app.services.profile_service import get_profiles
from app.core.metrics import record_notification_failure
from app.core.logging import get_logger

logger = get_logger(__name__)


async def notify(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    type: NotificationType,
    title: str,
    message: str,
    actor_id: Optional[uuid.UUID] = None,
    metadata: Optional[dict[str, Any]] = None,
    related_gig_id: Optional[int] = None,
    related_application_id: Optional[int] = None,
) -> Optional[Notification]:
    notification = Notification(
        user_id=user_id,
        actor_id=actor_id,
        type=type.value,
        title=title,
        message=message,
        extra=metadata,
        related_gig_id=related_gig_id,
        related_application_id=related_application_id,
        is_read=False,
    )
    try:
        async with db.begin_nested():
            db.add(notification)
            await db.flush()
    except SQLAlchemyError as e:
        logger.error(
            "notification_failed",
            type=type.value,
            recipient=str(user_id),
            error=str(e),
        )
        record_notification_failure(type.value)
        return None

    logger.debug("notification_created", type=type.value, recipient=str(user_id))
    return notification


def _to_response(n: Notification, actor: Optional[ActorSummary]) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        type=n.type,
        title=n.title,
        message=n.message,
        is_read=n.is_read,
        metadata=n.extra,
        related_gig_id=n.related_gig_id,
        related_application_id=n.related_application_id,
        actor=actor,
        created_at=as_utc(n.created_at),
        updated_at=as_utc(n.updated_at),
    )


async def list_notifications(
    db: AsyncSession,
    user_id: uuid.UUID,
    page: int = 1,
    limit: int = 20,
    unread_only: bool = False,
) -> NotificationListData:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    notifications = list(result.scalars().all())

    actors = await get_profiles(db, (n.actor_id for n in notifications if n.actor_id))

    unread_count = (
        await db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
    ).scalar() or 0

    items = []
    for n in notifications:
        profile = actors.get(n.actor_id) if n.actor_id else None
        actor = (
            ActorSummary(id=profile.user_id, name=profile.display_name, avatar=profile.profile_photo_url)
            if profile else None
        )
        items.append(_to_response(n, actor))

    total_pages = math.ceil(total / limit) if limit else 0
    return NotificationListData(
        notifications=items,
        pagination=NotificationPagination(
            current_page=page,
            total_pages=total_pages,
            total_notifications=total,
            limit=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
        unread_count=unread_count,
    )


async def mark_read(db: AsyncSession, user_id: uuid.UUID, notification_id: int) -> NotificationRead:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found or unauthorized",
        )

    notification.is_read = True
    notification.updated_at = utcnow()
    await db.flush()
    await db.refresh(notification)

    return NotificationRead(
        id=notification.id,
        is_read=notification.is_read,
        updated_at=as_utc(notification.updated_at),
    )


async def mark_all_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    logger.info("notifications_marked_read", user_id=str(user_id), count=result.rowcount)
    return result.rowcount
