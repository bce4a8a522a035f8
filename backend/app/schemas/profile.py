"""
Pydantic schemas for marketplace profiles.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    firstname: Optional[str] = Field(None, max_length=100)
    surname: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50, pattern=r"^\+?[0-9 ()-]{6,50}$")
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=2000)
    profile_photo_url: Optional[str] = Field(None, max_length=1000)


class ProfileResponse(BaseModel):
    user_id: uuid.UUID
    name: Optional[str]
    firstname: Optional[str]
    surname: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    country: Optional[str]
    city: Optional[str]
    bio: Optional[str]
    profile_photo_url: Optional[str]
    is_complete: bool
    completion_percentage: int

    model_config = {"from_attributes": True}


class ProfileStatus(BaseModel):
    is_complete: bool
    completion_percentage: int
