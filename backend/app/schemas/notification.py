"""
Pydantic schemas for in-app notifications.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class ActorSummary(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    avatar: Optional[str] = None


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    is_read: bool
    metadata: Optional[dict[str, Any]] = None
    related_gig_id: Optional[int] = None
    related_application_id: Optional[int] = None
    actor: Optional[ActorSummary] = None
    created_at: datetime
    updated_at: datetime


class NotificationPagination(BaseModel):
    current_page: int
    total_pages: int
    total_notifications: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class NotificationListData(BaseModel):
    notifications: list[NotificationResponse]
    pagination: NotificationPagination
    unread_count: int


class NotificationRead(BaseModel):
    id: int
    is_read: bool
    updated_at: datetime


class MarkAllReadResult(BaseModel):
    updated_count: int
