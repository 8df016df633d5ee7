"""Notification service — in-app notifications, last-viewed markers and
cross-module dispatchers for the request workflow."""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.common.constants import (
    LEVEL_APPROVER_ROLE,
    ApprovalLevel,
    EmployeeStatus,
    NotificationType,
)
from leaveflow.common.exceptions import ForbiddenException, NotFoundException
from leaveflow.common.pagination import PaginationParams
from leaveflow.core_hr.models import Employee
from leaveflow.notifications.models import LastViewedMarker, Notification
from leaveflow.notifications.schemas import (
    NotificationListMeta,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)

NOTIFICATIONS_VIEW = "notifications"


# ── Core service ────────────────────────────────────────────────────


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        recipient_id: str,
        type: NotificationType = NotificationType.info,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> Notification:
        """Create a new notification and flush to DB."""
        notification = Notification(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            action_url=action_url,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        db.add(notification)
        await db.flush()
        return notification

    @staticmethod
    async def get_notifications(
        db: AsyncSession,
        employee_id: str,
        pagination: PaginationParams,
        *,
        is_read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
    ) -> NotificationListResponse:
        """Return paginated notifications for an employee, newest first."""
        query = (
            select(Notification)
            .where(Notification.recipient_id == employee_id)
            .order_by(Notification.created_at.desc())
        )

        if is_read is not None:
            query = query.where(Notification.is_read == is_read)
        if notification_type is not None:
            query = query.where(Notification.type == notification_type)

        count_q = query.with_only_columns(
            func.count(), maintain_column_froms=True,
        ).order_by(None)
        total: int = (await db.execute(count_q)).scalar_one()

        rows = (
            await db.execute(
                query.offset(pagination.offset).limit(pagination.page_size)
            )
        ).scalars().all()

        total_pages = math.ceil(total / pagination.page_size) if total else 0

        unread = await NotificationService.get_unread_count(db, employee_id)
        since = await NotificationService.get_last_viewed(
            db, employee_id, NOTIFICATIONS_VIEW,
        )
        fresh = await NotificationService.count_since(db, employee_id, since)

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in rows],
            meta=NotificationListMeta(
                page=pagination.page,
                page_size=pagination.page_size,
                total=total,
                total_pages=total_pages,
                has_next=pagination.page < total_pages,
                has_prev=pagination.page > 1,
                unread=unread,
                new_since_last_viewed=fresh,
            ),
        )

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        employee_id: str,
    ) -> Notification:
        """Mark a single notification as read. Verifies ownership."""
        notification = await db.get(Notification, notification_id)
        if notification is None:
            raise NotFoundException("Notification", notification_id)

        if notification.recipient_id != employee_id:
            raise ForbiddenException("You can only mark your own notifications as read.")

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            await db.flush()
        return notification

    @staticmethod
    async def mark_all_read(db: AsyncSession, employee_id: str) -> int:
        """Bulk-mark all unread notifications as read. Returns count updated."""
        result = await db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == employee_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        await db.flush()
        return result.rowcount  # type: ignore[return-value]

    @staticmethod
    async def get_unread_count(db: AsyncSession, employee_id: str) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.recipient_id == employee_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()

    @staticmethod
    async def count_since(
        db: AsyncSession,
        employee_id: str,
        since: Optional[datetime],
    ) -> int:
        """Notifications created after *since* (all of them when ``None``)."""
        query = (
            select(func.count())
            .select_from(Notification)
            .where(Notification.recipient_id == employee_id)
        )
        if since is not None:
            query = query.where(Notification.created_at > since)
        return (await db.execute(query)).scalar_one()

    # ── Last-viewed key-value store ─────────────────────────────────

    @staticmethod
    async def get_last_viewed(
        db: AsyncSession,
        user_id: str,
        kind: str,
    ) -> Optional[datetime]:
        result = await db.execute(
            select(LastViewedMarker.viewed_at).where(
                LastViewedMarker.user_id == user_id,
                LastViewedMarker.kind == kind,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def set_last_viewed(
        db: AsyncSession,
        user_id: str,
        kind: str,
        viewed_at: Optional[datetime] = None,
    ) -> datetime:
        """Upsert the marker; defaults to now."""
        viewed_at = viewed_at or datetime.now(timezone.utc)
        marker = await db.get(LastViewedMarker, (user_id, kind))
        if marker is None:
            db.add(LastViewedMarker(user_id=user_id, kind=kind, viewed_at=viewed_at))
        else:
            marker.viewed_at = viewed_at
        await db.flush()
        return viewed_at


# ── Cross-module helper dispatchers ─────────────────────────────────
# Imported by the request service. They accept the ORM object directly to
# avoid tight schema coupling.


def _span(leave_request) -> str:
    if leave_request.start_date == leave_request.end_date:
        return f"on {leave_request.start_date}"
    return f"from {leave_request.start_date} to {leave_request.end_date}"


async def approvers_for_level(
    db: AsyncSession,
    leave_request,  # leaveflow.requests.models.LeaveRequest
    level: ApprovalLevel,
) -> list[str]:
    """Employee ids who can act at *level*.

    Manager level goes to the requester's own manager when one is recorded,
    otherwise to every active manager of the requester's department.
    """
    role = LEVEL_APPROVER_ROLE[level]
    if level == ApprovalLevel.manager:
        requester = await db.get(Employee, leave_request.employee_id)
        if requester is not None and requester.manager_id:
            return [requester.manager_id]
        query = select(Employee.id).where(
            Employee.role == role,
            Employee.status == EmployeeStatus.active,
            Employee.department == leave_request.department,
        )
    else:
        query = select(Employee.id).where(
            Employee.role == role,
            Employee.status == EmployeeStatus.active,
        )
    result = await db.execute(query.order_by(Employee.id))
    return [eid for eid in result.scalars().all() if eid != leave_request.employee_id]


async def notify_request_pending(
    db: AsyncSession,
    leave_request,  # leaveflow.requests.models.LeaveRequest
    level: ApprovalLevel,
) -> list[Notification]:
    """Tell the approvers at *level* that a request awaits them."""
    recipients = await approvers_for_level(db, leave_request, level)
    if not recipients:
        logger.warning(
            "No %s approver found for request %s", level.value, leave_request.id,
        )
    created = []
    for recipient_id in recipients:
        created.append(
            await NotificationService.create_notification(
                db,
                recipient_id=recipient_id,
                type=NotificationType.action_required,
                title=f"New {leave_request.type.value} request",
                message=(
                    f"{leave_request.employee_name} requested "
                    f"{leave_request.type.value} {_span(leave_request)} "
                    f"and it needs {level.value} approval."
                ),
                action_url=f"/requests/{leave_request.id}",
                entity_type="leave_request",
                entity_id=leave_request.id,
            )
        )
    return created


async def notify_request_approved(
    db: AsyncSession,
    leave_request,  # leaveflow.requests.models.LeaveRequest
) -> Notification:
    """Notify the employee that their request was fully approved."""
    return await NotificationService.create_notification(
        db,
        recipient_id=leave_request.employee_id,
        type=NotificationType.approval,
        title="Request Approved",
        message=(
            f"Your {leave_request.type.value} request "
            f"{_span(leave_request)} has been approved."
        ),
        action_url=f"/requests/{leave_request.id}",
        entity_type="leave_request",
        entity_id=leave_request.id,
    )


async def notify_request_rejected(
    db: AsyncSession,
    leave_request,  # leaveflow.requests.models.LeaveRequest
    level: ApprovalLevel,
    reason: str,
) -> Notification:
    """Notify the employee that their request was rejected."""
    return await NotificationService.create_notification(
        db,
        recipient_id=leave_request.employee_id,
        type=NotificationType.rejection,
        title="Request Rejected",
        message=(
            f"Your {leave_request.type.value} request {_span(leave_request)} "
            f"was rejected at {level.value} level. Reason: {reason}"
        ),
        action_url=f"/requests/{leave_request.id}",
        entity_type="leave_request",
        entity_id=leave_request.id,
    )


async def notify_alternative_assigned(
    db: AsyncSession,
    leave_request,  # leaveflow.requests.models.LeaveRequest
) -> Optional[Notification]:
    """Tell the covering employee they were named on a request."""
    if not leave_request.alternative_employee_id:
        return None
    return await NotificationService.create_notification(
        db,
        recipient_id=leave_request.alternative_employee_id,
        type=NotificationType.info,
        title="You were named as alternative",
        message=(
            f"{leave_request.employee_name} named you as alternative for "
            f"{leave_request.type.value} {_span(leave_request)}."
        ),
        action_url=f"/requests/{leave_request.id}",
        entity_type="leave_request",
        entity_id=leave_request.id,
    )
