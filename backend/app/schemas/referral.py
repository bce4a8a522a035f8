"""
Pydantic schemas for referrals.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.notification import ActorSummary


class ReferralCreate(BaseModel):
    # Presence is checked in the service so the message names the field
    referred_user_id: Optional[uuid.UUID] = Field(None, alias="referredUserId")
    context_type: Optional[str] = Field(None, alias="contextType", max_length=50)
    context_id: Optional[str] = Field(None, alias="contextId", max_length=100)
    message: Optional[str] = Field(None, max_length=2000)

    model_config = {"populate_by_name": True}


class ReferralResponse(BaseModel):
    id: int
    referrer_user_id: uuid.UUID
    referred_user_id: uuid.UUID
    context_type: str
    context_id: Optional[str] = None
    message: Optional[str] = None
    status: str
    created_at: datetime


class ReferralListItem(BaseModel):
    id: int
    referrer: Optional[ActorSummary] = None
    referred: Optional[ActorSummary] = None
    context_type: str
    context_id: Optional[str] = None
    message: Optional[str] = None
    status: str
    created_at: datetime
