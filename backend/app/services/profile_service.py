"""
Marketplace profile lookups and the completeness gate used before posting
or applying to gigs.
"""

import uuid
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.user_profile import UserProfile
from app.schemas.profile import ProfileStatus, ProfileUpdate
from app.core.logging import get_logger

logger = get_logger(__name__)


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> Optional[UserProfile]:
    return await db.get(UserProfile, user_id)


async def get_profiles(db: AsyncSession, user_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, UserProfile]:
    """Batch lookup keyed by user id; missing profiles are simply absent."""
    ids = set(user_ids)
    if not ids:
        return {}
    result = await db.execute(select(UserProfile).where(UserProfile.user_id.in_(ids)))
    return {p.user_id: p for p in result.scalars().all()}


async def get_profile_status(db: AsyncSession, user_id: uuid.UUID) -> ProfileStatus:
    profile = await get_profile(db, user_id)
    if profile is None:
        return ProfileStatus(is_complete=False, completion_percentage=0)
    return ProfileStatus(
        is_complete=profile.is_complete,
        completion_percentage=profile.completion_percentage,
    )


async def ensure_profile_complete(db: AsyncSession, user_id: uuid.UUID, action: str) -> UserProfile:
    """Fails closed: no profile counts as incomplete."""
    profile = await get_profile(db, user_id)
    if profile is None or not profile.is_complete:
        logger.info("profile_incomplete", user_id=str(user_id), action=action)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Please complete your profile before {action}",
        )
    return profile


async def upsert_profile(db: AsyncSession, user_id: uuid.UUID, data: ProfileUpdate) -> UserProfile:
    profile = await get_profile(db, user_id)
    created = profile is None
    if created:
        profile = UserProfile(user_id=user_id)
        db.add(profile)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)

    await db.flush()
    await db.refresh(profile)

    logger.info(
        "profile_created" if created else "profile_updated",
        user_id=str(user_id),
        complete=profile.is_complete,
    )
    return profile
