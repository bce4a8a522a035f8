"""
Gig applications: submit, review, withdraw and the read views for
applicants and gig creators.

STATUS WORKFLOW
===============

    pending ──> shortlisted ──> confirmed ──> released
       │             │                          ^
       │             └──────────────────────────┤
       └──> confirmed / released ───────────────┘

released is terminal. Re-sending the current status is accepted and does
nothing, so retried requests from the client are harmless. Anything else
outside ALLOWED_TRANSITIONS is rejected with 400.

Only the gig creator moves an application; only the applicant withdraws it,
and only while it is still pending.
"""

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.application import Application
from app.models.enums import ApplicationStatus, GigStatus, NotificationType, values
from app.models.gig import Gig
from app.models.user_profile import UserProfile
from app.schemas.application import (
    ApplicantSummary, ApplicationCreate, ApplicationDetail, ApplicationPermissions,
    ApplicationStats, ApplicationStatusChanged, ApplicationSubmitted, GigApplicationItem,
    GigApplicationsData, GigSummary, MyApplicationItem, MyApplicationsData,
)
from app.schemas.common import Pagination
from app.services.gig_service import application_counts, get_gig_model, posted_by
from app.services.helpers import as_utc, format_budget_label, is_past, utcnow
from app.services.notification_service import notify
from app.services.profile_service import ensure_profile_complete, get_profiles
from app.core.metrics import record_application_submission, record_transition
from app.core.logging import get_logger

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[ApplicationStatus, frozenset] = {
    ApplicationStatus.PENDING: frozenset({
        ApplicationStatus.SHORTLISTED, ApplicationStatus.CONFIRMED, ApplicationStatus.RELEASED,
    }),
    ApplicationStatus.SHORTLISTED: frozenset({ApplicationStatus.CONFIRMED, ApplicationStatus.RELEASED}),
    ApplicationStatus.CONFIRMED: frozenset({ApplicationStatus.RELEASED}),
    ApplicationStatus.RELEASED: frozenset(),
}

STATUS_MESSAGES = {
    ApplicationStatus.SHORTLISTED: "Great news! Your application has been shortlisted.",
    ApplicationStatus.CONFIRMED: "Congratulations! Your application has been confirmed.",
    ApplicationStatus.RELEASED: "Your application status has been updated to released.",
}


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def parse_status(value: Optional[str]) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status. Must be one of: {', '.join(values(ApplicationStatus))}",
        )


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Application not found",
    )


def _applicant_summary(
    user_id: uuid.UUID,
    profile: Optional[UserProfile],
    include_contact: bool = True,
) -> ApplicantSummary:
    if profile is None:
        return ApplicantSummary(id=user_id, name="Unknown", location="Not specified")
    return ApplicantSummary(
        id=user_id,
        name=profile.display_name,
        profile_photo=profile.profile_photo_url,
        bio=profile.bio,
        location=profile.location_label,
        email=profile.email if include_contact else None,
        phone=profile.phone if include_contact else None,
    )


def _gig_summary(gig: Gig, creator: Optional[UserProfile], total_applications: int) -> GigSummary:
    return GigSummary(
        id=gig.id,
        slug=gig.slug,
        title=gig.title,
        description=gig.description,
        company=gig.company,
        budget_label=format_budget_label(gig.amount, gig.currency, gig.request_quote),
        role=gig.role,
        type=gig.type,
        department=gig.department,
        status=gig.status,
        expiry_date=as_utc(gig.expiry_date),
        posted_on=as_utc(gig.created_at),
        locations=gig.location_names,
        posted_by=posted_by(creator),
        total_applications=total_applications,
    )


async def _stats(db: AsyncSession, *criteria) -> ApplicationStats:
    """Counts per status over every application matching criteria."""
    result = await db.execute(
        select(Application.status, func.count(Application.id))
        .where(*criteria)
        .group_by(Application.status)
    )
    stats = ApplicationStats()
    for app_status, count in result.all():
        setattr(stats, app_status, count)
        stats.total += count
    return stats


async def submit_application(
    db: AsyncSession,
    gig_id: int,
    data: ApplicationCreate,
    user_id: uuid.UUID,
) -> ApplicationSubmitted:
    try:
        application = await _submit(db, gig_id, data, user_id)
    except HTTPException:
        record_application_submission(submitted=False)
        raise
    record_application_submission(submitted=True)
    return application


async def _submit(
    db: AsyncSession,
    gig_id: int,
    data: ApplicationCreate,
    user_id: uuid.UUID,
) -> ApplicationSubmitted:
    """
    Checks run in a fixed order so each rejection has one stable message:
    profile complete -> gig exists -> not own gig -> gig active ->
    not expired -> not already applied.
    """
    profile = await ensure_profile_complete(db, user_id, "applying to gigs")
    gig = await get_gig_model(db, gig_id)

    if gig.created_by == user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot apply to your own gig",
        )
    if gig.status != GigStatus.ACTIVE.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This gig is no longer accepting applications",
        )
    if is_past(gig.expiry_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This gig has expired",
        )

    already_applied = HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="You have already applied to this gig",
    )
    existing = await db.execute(
        select(Application.id).where(
            Application.gig_id == gig.id,
            Application.applicant_user_id == user_id,
        )
    )
    if existing.first():
        raise already_applied

    application = Application(
        gig_id=gig.id,
        applicant_user_id=user_id,
        status=ApplicationStatus.PENDING.value,
        cover_letter=data.cover_letter,
        portfolio_links=data.portfolio_links,
        resume_url=data.resume_url,
    )
    # Two concurrent submits both pass the check above; the unique
    # constraint settles it and the loser gets the same 400.
    try:
        async with db.begin_nested():
            db.add(application)
            await db.flush()
    except IntegrityError:
        logger.info("application_duplicate_race", gig_id=gig.id, user_id=str(user_id))
        raise already_applied
    await db.refresh(application)

    logger.info("application_submitted", application_id=application.id, gig_id=gig.id, user_id=str(user_id))

    await notify(
        db,
        user_id=gig.created_by,
        actor_id=user_id,
        type=NotificationType.APPLICATION_RECEIVED,
        title="New Application Received",
        message=f'{profile.display_name} has applied to your gig "{gig.title}"',
        metadata={
            "gig_id": gig.id,
            "gig_title": gig.title,
            "application_id": application.id,
            "applicant_name": profile.display_name,
        },
        related_gig_id=gig.id,
        related_application_id=application.id,
    )

    return ApplicationSubmitted(
        id=application.id,
        gig_id=application.gig_id,
        status=application.status,
        applied_at=as_utc(application.created_at),
    )


async def change_status(
    db: AsyncSession,
    gig_id: int,
    application_id: int,
    new_status: Optional[str],
    user_id: uuid.UUID,
) -> ApplicationStatusChanged:
    target = parse_status(new_status)
    gig = await get_gig_model(db, gig_id)

    if gig.created_by != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the gig creator can update application status",
        )

    application = await db.get(Application, application_id)
    if not application or application.gig_id != gig.id:
        raise _not_found()

    current = ApplicationStatus(application.status)
    if not can_transition(current, target):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot change application status from {current.value} to {target.value}",
        )

    if current == target:
        logger.debug("application_status_unchanged", application_id=application.id, status=current.value)
    else:
        application.status = target.value
        application.updated_at = utcnow()
        await db.flush()
        await db.refresh(application)
        record_transition(current.value, target.value)

        logger.info(
            "application_status_changed",
            application_id=application.id,
            gig_id=gig.id,
            from_status=current.value,
            to_status=target.value,
        )

        await notify(
            db,
            user_id=application.applicant_user_id,
            actor_id=user_id,
            type=NotificationType.STATUS_CHANGED,
            title="Application Status Updated",
            message=f'{STATUS_MESSAGES[target]} - "{gig.title}"',
            metadata={
                "gig_id": gig.id,
                "gig_title": gig.title,
                "application_id": application.id,
                "old_status": current.value,
                "new_status": target.value,
            },
            related_gig_id=gig.id,
            related_application_id=application.id,
        )

    return ApplicationStatusChanged(
        id=application.id,
        gig_id=application.gig_id,
        status=application.status,
        previous_status=current.value,
        updated_at=as_utc(application.updated_at),
    )


async def withdraw_application(db: AsyncSession, application_id: int, user_id: uuid.UUID) -> None:
    application = await db.get(Application, application_id)
    if not application:
        raise _not_found()
    if application.applicant_user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only withdraw your own applications",
        )
    if application.status != ApplicationStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot withdraw application with status: {application.status}",
        )

    await db.delete(application)
    await db.flush()
    logger.info("application_withdrawn", application_id=application_id, user_id=str(user_id))


async def list_for_gig(
    db: AsyncSession,
    gig_id: int,
    user_id: uuid.UUID,
    status_filter: Optional[str] = None,
) -> GigApplicationsData:
    gig = await get_gig_model(db, gig_id)
    if gig.created_by != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the gig creator can view applications",
        )

    query = select(Application).where(Application.gig_id == gig.id)
    if status_filter:
        query = query.where(Application.status == parse_status(status_filter).value)
    result = await db.execute(query.order_by(Application.created_at.desc(), Application.id.desc()))
    applications = list(result.scalars().all())

    profiles = await get_profiles(db, (a.applicant_user_id for a in applications))

    items = [
        GigApplicationItem(
            id=a.id,
            gig_id=a.gig_id,
            status=a.status,
            cover_letter=a.cover_letter,
            portfolio_links=a.portfolio_links,
            resume_url=a.resume_url,
            applied_at=as_utc(a.created_at),
            updated_at=as_utc(a.updated_at),
            applicant=_applicant_summary(a.applicant_user_id, profiles.get(a.applicant_user_id)),
        )
        for a in applications
    ]
    return GigApplicationsData(
        applications=items,
        stats=await _stats(db, Application.gig_id == gig.id),
        gig_title=gig.title,
    )


async def list_my_applications(
    db: AsyncSession,
    user_id: uuid.UUID,
    status_filter: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> MyApplicationsData:
    query = select(Application).where(Application.applicant_user_id == user_id)
    if status_filter:
        query = query.where(Application.status == parse_status(status_filter).value)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(Application.created_at.desc(), Application.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    applications = list(result.scalars().all())

    gig_ids = list({a.gig_id for a in applications})
    gigs = {}
    if gig_ids:
        gig_rows = await db.execute(select(Gig).where(Gig.id.in_(gig_ids)))
        gigs = {g.id: g for g in gig_rows.scalars().all()}
    creators = await get_profiles(db, (g.created_by for g in gigs.values()))
    counts = await application_counts(db, gig_ids)

    items = []
    for a in applications:
        gig = gigs.get(a.gig_id)
        if gig is None:
            continue
        items.append(
            MyApplicationItem(
                id=a.id,
                status=a.status,
                cover_letter=a.cover_letter,
                portfolio_links=a.portfolio_links,
                resume_url=a.resume_url,
                applied_at=as_utc(a.created_at),
                updated_at=as_utc(a.updated_at),
                gig=_gig_summary(gig, creators.get(gig.created_by), counts.get(gig.id, 0)),
            )
        )

    return MyApplicationsData(
        applications=items,
        stats=await _stats(db, Application.applicant_user_id == user_id),
        pagination=Pagination.build(page, limit, total),
    )


async def get_application(db: AsyncSession, application_id: int, user_id: uuid.UUID) -> ApplicationDetail:
    """
    Visible to the applicant and the gig creator only. The applicant's
    email and phone are shown to the gig creator alone.
    """
    application = await db.get(Application, application_id)
    if not application:
        raise _not_found()
    gig = await get_gig_model(db, application.gig_id)

    is_creator = gig.created_by == user_id
    is_applicant = application.applicant_user_id == user_id
    if not (is_creator or is_applicant):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to view this application",
        )

    profiles = await get_profiles(db, [application.applicant_user_id, gig.created_by])
    counts = await application_counts(db, [gig.id])

    return ApplicationDetail(
        id=application.id,
        status=application.status,
        cover_letter=application.cover_letter,
        portfolio_links=application.portfolio_links,
        resume_url=application.resume_url,
        applied_at=as_utc(application.created_at),
        updated_at=as_utc(application.updated_at),
        applicant=_applicant_summary(
            application.applicant_user_id,
            profiles.get(application.applicant_user_id),
            include_contact=is_creator,
        ),
        gig=_gig_summary(gig, profiles.get(gig.created_by), counts.get(gig.id, 0)),
        permissions=ApplicationPermissions(
            can_update_status=is_creator,
            can_withdraw=is_applicant and application.status == ApplicationStatus.PENDING.value,
        ),
    )
