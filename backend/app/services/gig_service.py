"""
Gig postings: create, public listing, creator-only update and delete.
"""

import uuid
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.application import Application
from app.models.enums import GigStatus
from app.models.gig import Gig, GigDateWindow, GigLocation
from app.models.user_profile import UserProfile
from app.schemas.common import Pagination
from app.schemas.gig import DateWindow, GigCreate, GigListData, GigResponse, GigUpdate, PostedBy
from app.services.helpers import as_utc, format_budget_label, unique_slug, utcnow
from app.services.profile_service import ensure_profile_complete, get_profiles
from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


# Fields an update may explicitly clear
NULLABLE_FIELDS = {
    "qualifying_criteria", "amount", "currency", "role", "type", "department", "company", "expiry_date",
}


def posted_by(profile: Optional[UserProfile]) -> PostedBy:
    if profile is None:
        return PostedBy(name="Unknown")
    return PostedBy(name=profile.display_name, avatar=profile.profile_photo_url)


def to_response(gig: Gig, profile: Optional[UserProfile], application_count: int = 0) -> GigResponse:
    return GigResponse(
        id=gig.id,
        slug=gig.slug,
        title=gig.title,
        description=gig.description,
        qualifying_criteria=gig.qualifying_criteria,
        amount=float(gig.amount) if gig.amount is not None else None,
        currency=gig.currency,
        request_quote=gig.request_quote,
        budget_label=format_budget_label(gig.amount, gig.currency, gig.request_quote),
        crew_count=gig.crew_count,
        role=gig.role,
        type=gig.type,
        department=gig.department,
        company=gig.company,
        status=gig.status,
        expiry_date=as_utc(gig.expiry_date),
        created_by=gig.created_by,
        created_at=as_utc(gig.created_at),
        locations=gig.location_names,
        date_windows=[DateWindow(label=w.label, range=w.range) for w in gig.date_windows],
        posted_by=posted_by(profile),
        application_count=application_count,
    )


async def application_counts(db: AsyncSession, gig_ids: list[int]) -> dict[int, int]:
    if not gig_ids:
        return {}
    result = await db.execute(
        select(Application.gig_id, func.count(Application.id))
        .where(Application.gig_id.in_(gig_ids))
        .group_by(Application.gig_id)
    )
    return {gig_id: count for gig_id, count in result.all()}


async def get_gig_model(db: AsyncSession, gig_id: int) -> Gig:
    gig = await db.get(Gig, gig_id)
    if not gig:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Gig not found",
        )
    return gig


async def _get_owned_gig(db: AsyncSession, gig_id: int, user_id: uuid.UUID, action: str) -> Gig:
    gig = await get_gig_model(db, gig_id)
    if gig.created_by != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only the gig creator can {action} this gig",
        )
    return gig


async def _response_for(db: AsyncSession, gig: Gig) -> GigResponse:
    profiles = await get_profiles(db, [gig.created_by])
    counts = await application_counts(db, [gig.id])
    return to_response(gig, profiles.get(gig.created_by), counts.get(gig.id, 0))


async def create_gig(db: AsyncSession, data: GigCreate, user_id: uuid.UUID) -> GigResponse:
    """Create a gig together with its locations and date windows."""
    await ensure_profile_complete(db, user_id, "creating gigs")

    if not data.title.strip() or not data.description.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title and description are required",
        )

    gig = Gig(
        slug=await unique_slug(db, Gig, data.title),
        title=data.title.strip(),
        description=data.description,
        qualifying_criteria=data.qualifying_criteria,
        amount=data.amount,
        currency=data.currency or settings.DEFAULT_CURRENCY,
        request_quote=data.request_quote,
        crew_count=data.crew_count,
        role=data.role,
        type=data.type,
        department=data.department,
        company=data.company,
        status=data.status.value,
        expiry_date=as_utc(data.expiry_date),
        created_by=user_id,
        locations=[GigLocation(location_name=name) for name in data.locations],
        date_windows=[GigDateWindow(label=w.label, range=w.range) for w in data.date_windows],
    )
    db.add(gig)
    await db.flush()
    await db.refresh(gig)

    logger.info("gig_created", gig_id=gig.id, slug=gig.slug, created_by=str(user_id))
    return await _response_for(db, gig)


async def list_gigs(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    role: Optional[str] = None,
    gig_type: Optional[str] = None,
    created_by: Optional[uuid.UUID] = None,
) -> GigListData:
    """
    Public listing of open gigs, newest first.
    Open means status active and expiry date unset or in the future.
    Uses the ix_gigs_status_created index.
    """
    query = select(Gig).where(
        Gig.status == GigStatus.ACTIVE.value,
        or_(Gig.expiry_date.is_(None), Gig.expiry_date > utcnow()),
    )
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Gig.title.ilike(pattern), Gig.description.ilike(pattern)))
    if role:
        query = query.where(Gig.role == role)
    if gig_type:
        query = query.where(Gig.type == gig_type)
    if created_by:
        query = query.where(Gig.created_by == created_by)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(Gig.created_at.desc(), Gig.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    gigs = list(result.scalars().all())

    profiles = await get_profiles(db, (g.created_by for g in gigs))
    counts = await application_counts(db, [g.id for g in gigs])

    return GigListData(
        gigs=[to_response(g, profiles.get(g.created_by), counts.get(g.id, 0)) for g in gigs],
        pagination=Pagination.build(page, limit, total),
    )


async def get_gig(db: AsyncSession, gig_id: int) -> GigResponse:
    gig = await get_gig_model(db, gig_id)
    return await _response_for(db, gig)


async def get_gig_by_slug(db: AsyncSession, slug: str) -> GigResponse:
    result = await db.execute(select(Gig).where(Gig.slug == slug))
    gig = result.scalar_one_or_none()
    if not gig:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Gig not found",
        )
    return await _response_for(db, gig)


async def update_gig(db: AsyncSession, gig_id: int, data: GigUpdate, user_id: uuid.UUID) -> GigResponse:
    gig = await _get_owned_gig(db, gig_id, user_id, "update")

    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True, exclude={"locations", "date_windows"}).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    for field, value in changes.items():
        if field == "status":
            value = GigStatus(value).value
        if field == "expiry_date":
            value = as_utc(value)
        setattr(gig, field, value)

    # Children are replaced wholesale; delete-orphan removes the old rows
    if data.locations is not None:
        gig.locations = [GigLocation(location_name=name) for name in data.locations]
    if data.date_windows is not None:
        gig.date_windows = [GigDateWindow(label=w.label, range=w.range) for w in data.date_windows]

    gig.updated_at = utcnow()
    await db.flush()
    await db.refresh(gig)

    logger.info("gig_updated", gig_id=gig.id, fields=sorted(changes))
    return await _response_for(db, gig)


async def delete_gig(db: AsyncSession, gig_id: int, user_id: uuid.UUID) -> None:
    gig = await _get_owned_gig(db, gig_id, user_id, "delete")

    deleted = await db.execute(delete(Application).where(Application.gig_id == gig.id))
    await db.delete(gig)
    await db.flush()

    logger.info("gig_deleted", gig_id=gig_id, applications_deleted=deleted.rowcount)
