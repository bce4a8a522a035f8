"""
Pydantic schemas for RSVPs, creator RSVP views and attendee RSVP views.
"""

import uuid
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel

from app.schemas.common import Pagination


class RSVPCreate(BaseModel):
    # Range is checked in the service so the message matches the client
    number_of_spots: int = 1
    schedule_ids: list[int] = []


class SelectedDate(BaseModel):
    schedule_id: int
    event_date: date
    start_time: time
    end_time: time
    timezone: str


class RSVPResponse(BaseModel):
    id: int
    event_id: int
    user_id: uuid.UUID
    number_of_spots: int
    status: str
    payment_status: str
    ticket_number: str
    reference_number: str
    created_at: datetime
    updated_at: datetime
    selected_dates: list[SelectedDate] = []


class AttendeeSummary(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: Optional[str] = None
    profile_photo_url: Optional[str] = None


class RSVPListItem(RSVPResponse):
    attendee: Optional[AttendeeSummary] = None


class RSVPSummary(BaseModel):
    total_rsvps: int = 0
    confirmed: int = 0
    cancelled: int = 0
    waitlist: int = 0
    paid: int = 0
    unpaid: int = 0
    total_spots_booked: int = 0


class RSVPListData(BaseModel):
    rsvps: list[RSVPListItem]
    summary: RSVPSummary
    pagination: Pagination


class RSVPEventSummary(BaseModel):
    id: int
    title: str
    slug: str
    location: Optional[str]
    is_online: bool
    is_paid: bool
    price_amount: float
    price_currency: str
    thumbnail_url: Optional[str]
    status: str


class MyRSVPItem(RSVPResponse):
    event: Optional[RSVPEventSummary] = None


class MyRSVPsData(BaseModel):
    rsvps: list[MyRSVPItem]
    pagination: Pagination
