"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import applications, gigs, notifications, profile, referrals, rsvps, whatson

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(profile.router)
api_router.include_router(gigs.router)
api_router.include_router(applications.router)
api_router.include_router(whatson.router)
api_router.include_router(rsvps.router)
api_router.include_router(notifications.router)
api_router.include_router(referrals.router)
