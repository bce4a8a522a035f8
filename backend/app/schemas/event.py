"""
Pydantic schemas for What's On events.

Business-rule checks (title length, location for in-person events, spots)
are done in the service so the messages match the client's form errors.
"""

import uuid
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field

from app.models.enums import EventStatus
from app.schemas.common import Pagination


class ScheduleSlotIn(BaseModel):
    event_date: date
    start_time: time
    end_time: time
    timezone: Optional[str] = Field(None, max_length=50)


class ScheduleSlotOut(BaseModel):
    id: int
    event_date: date
    start_time: time
    end_time: time
    timezone: str
    sort_order: int

    model_config = {"from_attributes": True}


class EventCreate(BaseModel):
    title: str = ""
    description: str = ""
    location: Optional[str] = None
    is_online: bool = False
    is_paid: bool = False
    price_amount: float = Field(0, ge=0)
    price_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    rsvp_deadline: Optional[datetime] = None
    max_spots_per_person: int = Field(1, ge=1)
    total_spots: Optional[int] = None
    is_unlimited_spots: bool = False
    terms_conditions: Optional[str] = None
    thumbnail_url: Optional[str] = Field(None, max_length=1000)
    hero_image_url: Optional[str] = Field(None, max_length=1000)
    status: EventStatus = EventStatus.DRAFT
    schedule: list[ScheduleSlotIn] = []
    tags: list[str] = []


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    is_online: Optional[bool] = None
    is_paid: Optional[bool] = None
    price_amount: Optional[float] = Field(None, ge=0)
    price_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    rsvp_deadline: Optional[datetime] = None
    max_spots_per_person: Optional[int] = Field(None, ge=1)
    total_spots: Optional[int] = None
    is_unlimited_spots: Optional[bool] = None
    terms_conditions: Optional[str] = None
    thumbnail_url: Optional[str] = Field(None, max_length=1000)
    hero_image_url: Optional[str] = Field(None, max_length=1000)
    status: Optional[EventStatus] = None
    schedule: Optional[list[ScheduleSlotIn]] = None
    tags: Optional[list[str]] = None


class CreatorSummary(BaseModel):
    name: str
    profile_photo_url: Optional[str] = None


class EventResponse(BaseModel):
    id: int
    created_by: uuid.UUID
    title: str
    slug: str
    description: str
    location: Optional[str]
    is_online: bool
    is_paid: bool
    price_amount: float
    price_currency: str
    rsvp_deadline: Optional[datetime]
    max_spots_per_person: int
    total_spots: Optional[int]
    is_unlimited_spots: bool
    terms_conditions: Optional[str]
    thumbnail_url: Optional[str]
    hero_image_url: Optional[str]
    status: str
    created_at: datetime
    updated_at: datetime
    schedule: list[ScheduleSlotOut]
    tags: list[str]
    creator: Optional[CreatorSummary] = None
    rsvp_count: int = 0
    spots_booked: int = 0
    # None means unlimited
    spots_available: Optional[int] = None
    is_fully_booked: bool = False


class EventListData(BaseModel):
    events: list[EventResponse]
    pagination: Pagination
    cached: bool = False
