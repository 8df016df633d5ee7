"""Notification endpoints — list, mark read and last-viewed markers."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.common.constants import NotificationType
from leaveflow.common.pagination import PaginationParams
from leaveflow.core_hr.service import RosterService
from leaveflow.database import get_db
from leaveflow.notifications.schemas import (
    LastViewedBody,
    LastViewedResponse,
    NotificationListResponse,
    NotificationResponse,
)
from leaveflow.notifications.service import NotificationService

router = APIRouter(prefix="", tags=["notifications"])


# ── GET / — list a user's notifications ─────────────────────────────

@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    user_id: str = Query(..., description="Recipient employee id"),
    is_read: Optional[bool] = Query(default=None, description="Filter by read status"),
    type: Optional[NotificationType] = Query(
        default=None, alias="type", description="Filter by notification type"
    ),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """List notifications for a user (paginated), with badge counts."""
    await RosterService.get_employee(db, user_id)
    return await NotificationService.get_notifications(
        db,
        employee_id=user_id,
        pagination=pagination,
        is_read=is_read,
        notification_type=type,
    )


# ── PUT /read-all — bulk mark a user's notifications as read ────────
# NOTE: registered before /{notification_id}/read.

@router.put("/read-all")
async def mark_all_read(
    user_id: str = Query(..., description="Recipient employee id"),
    db: AsyncSession = Depends(get_db),
):
    """Mark every unread notification of *user_id* as read."""
    await RosterService.get_employee(db, user_id)
    count = await NotificationService.mark_all_read(db, user_id)
    return {"message": "All notifications marked as read", "data": {"count": count}}


# ── PUT /{notification_id}/read — mark single as read ───────────────

@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    user_id: str = Query(..., description="Recipient employee id"),
    db: AsyncSession = Depends(get_db),
):
    """Mark a single notification as read."""
    return await NotificationService.mark_read(db, notification_id, user_id)


# ── GET /last-viewed/{user_id}/{kind} ───────────────────────────────

@router.get("/last-viewed/{user_id}/{kind}", response_model=LastViewedResponse)
async def get_last_viewed(
    user_id: str,
    kind: str,
    db: AsyncSession = Depends(get_db),
):
    viewed_at = await NotificationService.get_last_viewed(db, user_id, kind)
    return LastViewedResponse(user_id=user_id, kind=kind, viewed_at=viewed_at)


# ── PUT /last-viewed/{user_id}/{kind} ───────────────────────────────

@router.put("/last-viewed/{user_id}/{kind}", response_model=LastViewedResponse)
async def set_last_viewed(
    user_id: str,
    kind: str,
    body: Optional[LastViewedBody] = None,
    db: AsyncSession = Depends(get_db),
):
    """Record that *user_id* opened view *kind* (defaults to now)."""
    await RosterService.get_employee(db, user_id)
    viewed_at = await NotificationService.set_last_viewed(
        db, user_id, kind, body.viewed_at if body else None,
    )
    return LastViewedResponse(user_id=user_id, kind=kind, viewed_at=viewed_at)
