"""
Referral endpoints for the authenticated user.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import Envelope
from app.schemas.referral import ReferralCreate, ReferralListItem, ReferralResponse
from app.services import referral_service
from app.core.security import CurrentUser, get_current_user

router = APIRouter(prefix="/referrals", tags=["Referrals"])


@router.get("", response_model=Envelope[list[ReferralListItem]])
async def list_referrals_endpoint(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Sent and received, newest first."""
    referrals = await referral_service.list_referrals(db, user.id)
    return Envelope(message="Referrals retrieved successfully", data=referrals)


@router.post("", response_model=Envelope[ReferralResponse], status_code=status.HTTP_201_CREATED)
async def create_referral_endpoint(
    referral_data: ReferralCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    referral = await referral_service.create_referral(db, referral_data, user.id)
    return Envelope(message="Referral created successfully", data=referral)
