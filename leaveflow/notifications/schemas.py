"""Notification Pydantic schemas for request / response validation."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from leaveflow.common.constants import NotificationType
from leaveflow.common.pagination import PaginationMeta


# ── Responses ───────────────────────────────────────────────────────

class NotificationResponse(BaseModel):
    """Single notification in API responses."""

    id: uuid.UUID
    recipient_id: str
    type: NotificationType
    title: str
    message: str
    action_url: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListMeta(PaginationMeta):
    """Extends standard pagination meta with badge counts."""

    unread: int
    new_since_last_viewed: int


class NotificationListResponse(BaseModel):
    data: list[NotificationResponse]
    meta: NotificationListMeta


# ── Last-viewed marker ──────────────────────────────────────────────

class LastViewedBody(BaseModel):
    viewed_at: Optional[datetime] = None


class LastViewedResponse(BaseModel):
    user_id: str
    kind: str
    viewed_at: Optional[datetime] = None
