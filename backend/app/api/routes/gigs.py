"""
Gig endpoints, including applying to a gig and the creator's review of
its applications.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.application import (
    ApplicationCreate, ApplicationStatusChanged, ApplicationStatusUpdate, ApplicationSubmitted,
    GigApplicationsData,
)
from app.schemas.common import Envelope
from app.schemas.gig import GigCreate, GigListData, GigResponse, GigUpdate
from app.services import application_service, gig_service
from app.core.security import CurrentUser, get_current_user, get_optional_user

router = APIRouter(prefix="/gigs", tags=["Gigs"])


def _resolve_created_by(created_by: Optional[str], user: Optional[CurrentUser]) -> Optional[uuid.UUID]:
    if not created_by:
        return None
    if created_by == "me":
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return user.id
    try:
        return uuid.UUID(created_by)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="created_by must be a user id or 'me'",
        )


@router.post("", response_model=Envelope[GigResponse], status_code=status.HTTP_201_CREATED)
async def create_gig_endpoint(
    gig_data: GigCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Post a gig. The caller's profile must be complete."""
    gig = await gig_service.create_gig(db, gig_data, user.id)
    return Envelope(message="Gig created successfully", data=gig)


@router.get("", response_model=Envelope[GigListData])
async def list_gigs_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=200),
    role: Optional[str] = None,
    type: Optional[str] = None,
    created_by: Optional[str] = None,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Open gigs, newest first. `created_by=me` lists the caller's own open gigs."""
    data = await gig_service.list_gigs(
        db,
        page=page,
        limit=limit,
        search=search,
        role=role,
        gig_type=type,
        created_by=_resolve_created_by(created_by, user),
    )
    return Envelope(message="Gigs retrieved successfully", data=data)


@router.get("/slug/{slug}", response_model=Envelope[GigResponse])
async def get_gig_by_slug_endpoint(slug: str, db: AsyncSession = Depends(get_db)):
    gig = await gig_service.get_gig_by_slug(db, slug)
    return Envelope(message="Gig retrieved successfully", data=gig)


@router.get("/{gig_id}", response_model=Envelope[GigResponse])
async def get_gig_endpoint(gig_id: int, db: AsyncSession = Depends(get_db)):
    gig = await gig_service.get_gig(db, gig_id)
    return Envelope(message="Gig retrieved successfully", data=gig)


@router.patch("/{gig_id}", response_model=Envelope[GigResponse])
async def update_gig_endpoint(
    gig_id: int,
    gig_data: GigUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    gig = await gig_service.update_gig(db, gig_id, gig_data, user.id)
    return Envelope(message="Gig updated successfully", data=gig)


@router.delete("/{gig_id}", response_model=Envelope[None])
async def delete_gig_endpoint(
    gig_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a gig and all of its applications."""
    await gig_service.delete_gig(db, gig_id, user.id)
    return Envelope(message="Gig deleted successfully")


@router.post(
    "/{gig_id}/apply",
    response_model=Envelope[ApplicationSubmitted],
    status_code=status.HTTP_201_CREATED,
)
async def apply_to_gig_endpoint(
    gig_id: int,
    application_data: Optional[ApplicationCreate] = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Apply to a gig. Rejected when the profile is incomplete, the gig is
    the caller's own, closed or expired, or the caller already applied.
    """
    application = await application_service.submit_application(
        db, gig_id, application_data or ApplicationCreate(), user.id
    )
    return Envelope(message="Application submitted successfully", data=application)


@router.get("/{gig_id}/applications", response_model=Envelope[GigApplicationsData])
async def list_gig_applications_endpoint(
    gig_id: int,
    status_filter: Optional[str] = Query(None, alias="status"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """All applications to the caller's gig, with per-status stats."""
    data = await application_service.list_for_gig(db, gig_id, user.id, status_filter)
    return Envelope(message="Applications retrieved successfully", data=data)


@router.patch(
    "/{gig_id}/applications/{application_id}/status",
    response_model=Envelope[ApplicationStatusChanged],
)
async def update_application_status_endpoint(
    gig_id: int,
    application_id: int,
    status_data: ApplicationStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await application_service.change_status(
        db, gig_id, application_id, status_data.status, user.id
    )
    return Envelope(message="Application status updated successfully", data=result)
