"""
Referrals between users. Creating one notifies the referred user; as with
every notification, a failed insert does not undo the referral.
"""

import uuid
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.enums import NotificationType, ReferralStatus
from app.models.referral import Referral
from app.models.user_profile import UserProfile
from app.schemas.notification import ActorSummary
from app.schemas.referral import ReferralCreate, ReferralListItem, ReferralResponse
from app.services.helpers import as_utc
from app.services.notification_service import notify
from app.services.profile_service import get_profiles
from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONTEXT = "general"
DEFAULT_MESSAGE = "You have been referred for an opportunity"


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _party(profile: Optional[UserProfile]) -> Optional[ActorSummary]:
    if profile is None:
        return None
    return ActorSummary(id=profile.user_id, name=profile.display_name, avatar=profile.profile_photo_url)


async def create_referral(db: AsyncSession, data: ReferralCreate, user_id: uuid.UUID) -> ReferralResponse:
    if data.referred_user_id is None:
        raise _bad_request("Referred user ID is required")
    if data.referred_user_id == user_id:
        raise _bad_request("You cannot refer yourself")

    referral = Referral(
        referrer_user_id=user_id,
        referred_user_id=data.referred_user_id,
        context_type=data.context_type or DEFAULT_CONTEXT,
        context_id=data.context_id,
        message=data.message,
        status=ReferralStatus.PENDING.value,
    )
    db.add(referral)
    await db.flush()
    await db.refresh(referral)

    logger.info(
        "referral_created",
        referral_id=referral.id,
        referrer=str(user_id),
        referred=str(referral.referred_user_id),
        context_type=referral.context_type,
    )

    await notify(
        db,
        user_id=referral.referred_user_id,
        actor_id=user_id,
        type=NotificationType.REFERRAL_RECEIVED,
        title="New Referral",
        message=referral.message or DEFAULT_MESSAGE,
        metadata={
            "referral_id": referral.id,
            "context_type": referral.context_type,
            "context_id": referral.context_id,
        },
    )

    return ReferralResponse(
        id=referral.id,
        referrer_user_id=referral.referrer_user_id,
        referred_user_id=referral.referred_user_id,
        context_type=referral.context_type,
        context_id=referral.context_id,
        message=referral.message,
        status=referral.status,
        created_at=as_utc(referral.created_at),
    )


async def list_referrals(db: AsyncSession, user_id: uuid.UUID) -> list[ReferralListItem]:
    """Referrals the user sent or received, newest first."""
    result = await db.execute(
        select(Referral)
        .where(or_(Referral.referrer_user_id == user_id, Referral.referred_user_id == user_id))
        .order_by(Referral.created_at.desc(), Referral.id.desc())
    )
    referrals = list(result.scalars().all())

    profiles = await get_profiles(
        db, (uid for r in referrals for uid in (r.referrer_user_id, r.referred_user_id))
    )
    return [
        ReferralListItem(
            id=r.id,
            referrer=_party(profiles.get(r.referrer_user_id)),
            referred=_party(profiles.get(r.referred_user_id)),
            context_type=r.context_type,
            context_id=r.context_id,
            message=r.message,
            status=r.status,
            created_at=as_utc(r.created_at),
        )
        for r in referrals
    ]
