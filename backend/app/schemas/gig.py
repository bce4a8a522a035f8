"""
Pydantic schemas for gig postings.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.enums import GigStatus
from app.schemas.common import Pagination


class DateWindow(BaseModel):
    label: str = Field(..., min_length=1, max_length=50)
    range: str = Field(..., min_length=1, max_length=100)


class GigCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    qualifying_criteria: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    request_quote: bool = False
    crew_count: int = Field(1, gt=0)
    role: Optional[str] = Field(None, max_length=100)
    type: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=255)
    expiry_date: Optional[datetime] = None
    status: GigStatus = GigStatus.ACTIVE
    locations: list[str] = []
    date_windows: list[DateWindow] = []


class GigUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    qualifying_criteria: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    request_quote: Optional[bool] = None
    crew_count: Optional[int] = Field(None, gt=0)
    role: Optional[str] = Field(None, max_length=100)
    type: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=255)
    expiry_date: Optional[datetime] = None
    status: Optional[GigStatus] = None
    locations: Optional[list[str]] = None
    date_windows: Optional[list[DateWindow]] = None


class PostedBy(BaseModel):
    name: str
    avatar: Optional[str] = None


class GigResponse(BaseModel):
    id: int
    slug: str
    title: str
    description: str
    qualifying_criteria: Optional[str]
    amount: Optional[float]
    currency: Optional[str]
    request_quote: bool
    budget_label: str
    crew_count: int
    role: Optional[str]
    type: Optional[str]
    department: Optional[str]
    company: Optional[str]
    status: str
    expiry_date: Optional[datetime]
    created_by: uuid.UUID
    created_at: datetime
    locations: list[str]
    date_windows: list[DateWindow]
    posted_by: PostedBy
    application_count: int = 0


class GigListData(BaseModel):
    gigs: list[GigResponse]
    pagination: Pagination
