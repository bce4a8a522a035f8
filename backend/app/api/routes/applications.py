"""
Applicant-side application endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.application import ApplicationDetail, MyApplicationsData
from app.schemas.common import Envelope
from app.services import application_service
from app.core.security import CurrentUser, get_current_user

router = APIRouter(prefix="/applications", tags=["Applications"])


# Declared before /{application_id} so "my" is not parsed as an id
@router.get("/my", response_model=Envelope[MyApplicationsData])
async def list_my_applications_endpoint(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await application_service.list_my_applications(db, user.id, status_filter, page, limit)
    return Envelope(message="Applications retrieved successfully", data=data)


@router.get("/{application_id}", response_model=Envelope[ApplicationDetail])
async def get_application_endpoint(
    application_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Applicant or gig creator only. Contact details are shown to the creator alone."""
    detail = await application_service.get_application(db, application_id, user.id)
    return Envelope(message="Application retrieved successfully", data=detail)


@router.delete("/{application_id}", response_model=Envelope[None])
async def withdraw_application_endpoint(
    application_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw a pending application."""
    await application_service.withdraw_application(db, application_id, user.id)
    return Envelope(message="Application withdrawn successfully")
