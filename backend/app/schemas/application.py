"""
Pydantic schemas for gig applications.

Request bodies accept both snake_case and the camelCase keys used by the
web client (coverLetter, portfolioLinks, resumeUrl).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.common import Pagination
from app.schemas.gig import PostedBy


class ApplicationCreate(BaseModel):
    cover_letter: Optional[str] = Field(None, alias="coverLetter", max_length=5000)
    portfolio_links: Optional[list[str]] = Field(None, alias="portfolioLinks", max_length=20)
    resume_url: Optional[str] = Field(None, alias="resumeUrl", max_length=1000)

    model_config = {"populate_by_name": True}


class ApplicationStatusUpdate(BaseModel):
    # Checked in the service so the error names the allowed values
    status: Optional[str] = None


class ApplicationSubmitted(BaseModel):
    id: int
    gig_id: int
    status: str
    applied_at: datetime


class ApplicationStatusChanged(BaseModel):
    id: int
    gig_id: int
    status: str
    previous_status: str
    updated_at: datetime


class ApplicationStats(BaseModel):
    total: int = 0
    pending: int = 0
    shortlisted: int = 0
    confirmed: int = 0
    released: int = 0


class ApplicantSummary(BaseModel):
    id: uuid.UUID
    name: str
    profile_photo: Optional[str] = None
    bio: Optional[str] = None
    location: str
    email: Optional[str] = None
    phone: Optional[str] = None


class GigApplicationItem(BaseModel):
    id: int
    gig_id: int
    status: str
    cover_letter: Optional[str]
    portfolio_links: Optional[list[str]]
    resume_url: Optional[str]
    applied_at: datetime
    updated_at: datetime
    applicant: ApplicantSummary


class GigApplicationsData(BaseModel):
    applications: list[GigApplicationItem]
    stats: ApplicationStats
    gig_title: str


class GigSummary(BaseModel):
    id: int
    slug: str
    title: str
    description: str
    company: Optional[str]
    budget_label: str
    role: Optional[str]
    type: Optional[str]
    department: Optional[str]
    status: str
    expiry_date: Optional[datetime]
    posted_on: datetime
    locations: list[str]
    posted_by: PostedBy
    total_applications: int = 0


class MyApplicationItem(BaseModel):
    id: int
    status: str
    cover_letter: Optional[str]
    portfolio_links: Optional[list[str]]
    resume_url: Optional[str]
    applied_at: datetime
    updated_at: datetime
    gig: GigSummary


class MyApplicationsData(BaseModel):
    applications: list[MyApplicationItem]
    stats: ApplicationStats
    pagination: Pagination


class ApplicationPermissions(BaseModel):
    can_update_status: bool
    can_withdraw: bool


class ApplicationDetail(BaseModel):
    id: int
    status: str
    cover_letter: Optional[str]
    portfolio_links: Optional[list[str]]
    resume_url: Optional[str]
    applied_at: datetime
    updated_at: datetime
    applicant: ApplicantSummary
    gig: GigSummary
    permissions: ApplicationPermissions
