"""
Marketplace profile endpoints for the authenticated user.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import Envelope
from app.schemas.profile import ProfileResponse, ProfileStatus, ProfileUpdate
from app.services.profile_service import get_profile, get_profile_status, upsert_profile
from app.core.security import CurrentUser, get_current_user

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=Envelope[ProfileResponse])
async def get_my_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await get_profile(db, user.id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return Envelope(message="Profile retrieved successfully", data=ProfileResponse.model_validate(profile))


@router.put("", response_model=Envelope[ProfileResponse])
async def update_my_profile(
    profile_data: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create the caller's profile on first use, otherwise update the given fields."""
    profile = await upsert_profile(db, user.id, profile_data)
    return Envelope(message="Profile saved successfully", data=ProfileResponse.model_validate(profile))


@router.get("/check", response_model=Envelope[ProfileStatus])
async def check_my_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Whether the caller may post or apply to gigs yet."""
    profile_status = await get_profile_status(db, user.id)
    return Envelope(message="Profile status retrieved successfully", data=profile_status)
