"""Request ORM models: LeaveRequest, ApprovalRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leaveflow.common.constants import (
    ApprovalLevel,
    ApprovalOutcome,
    HalfDaySession,
    LeaveMode,
    RequestStatus,
    RequestType,
    UserRole,
)
from leaveflow.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_request_id() -> str:
    return f"REQ-{uuid.uuid4().hex[:12].upper()}"


class LeaveRequest(Base):
    """Leave / half-day / permission / on-duty request."""

    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.CheckConstraint("start_date <= end_date", name="ck_request_date_order"),
        sa.Index("ix_leave_requests_employee_dates", "employee_id", "start_date", "end_date"),
        sa.Index("ix_leave_requests_alternative", "alternative_employee_id"),
        sa.Index("ix_leave_requests_status", "status"),
    )

    id: Mapped[str] = mapped_column(sa.String(40), primary_key=True, default=new_request_id)
    employee_id: Mapped[str] = mapped_column(
        sa.String(20), sa.ForeignKey("employees.id"), nullable=False
    )
    employee_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    department: Mapped[Optional[str]] = mapped_column(sa.String(150))
    requester_role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role"), nullable=False
    )
    type: Mapped[RequestType] = mapped_column(
        sa.Enum(RequestType, name="request_type"), nullable=False
    )
    leave_mode: Mapped[Optional[LeaveMode]] = mapped_column(
        sa.Enum(LeaveMode, name="leave_mode")
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    start_time: Mapped[Optional[time]] = mapped_column(sa.Time)
    end_time: Mapped[Optional[time]] = mapped_column(sa.Time)
    half_day_session: Mapped[Optional[HalfDaySession]] = mapped_column(
        sa.Enum(HalfDaySession, name="half_day_session")
    )
    reason: Mapped[str] = mapped_column(sa.Text, nullable=False)
    alternative_employee_id: Mapped[Optional[str]] = mapped_column(
        sa.String(20), sa.ForeignKey("employees.id")
    )
    alternative_employee_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    day_count: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), nullable=False)
    status: Mapped[RequestStatus] = mapped_column(
        sa.Enum(RequestStatus, name="request_status"),
        nullable=False,
        default=RequestStatus.pending,
    )
    # Ordered approval levels, frozen at submission
    approval_route: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now()
    )

    # Relationships
    approvals: Mapped[list[ApprovalRecord]] = relationship(
        back_populates="request",
        order_by="ApprovalRecord.sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def route(self) -> tuple[ApprovalLevel, ...]:
        return tuple(ApprovalLevel(level) for level in self.approval_route or [])

    def __repr__(self) -> str:
        return f"<LeaveRequest {self.id} {self.type.value} {self.status.value}>"


class ApprovalRecord(Base):
    """One decision at one level. Append-only."""

    __tablename__ = "approval_records"
    __table_args__ = (
        sa.UniqueConstraint("request_id", "sequence", name="uq_approval_sequence"),
        sa.UniqueConstraint("request_id", "level", name="uq_approval_level"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    request_id: Mapped[str] = mapped_column(
        sa.String(40),
        sa.ForeignKey("leave_requests.id", ondelete="CASCADE"),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    level: Mapped[ApprovalLevel] = mapped_column(
        sa.Enum(ApprovalLevel, name="approval_level"), nullable=False
    )
    outcome: Mapped[ApprovalOutcome] = mapped_column(
        sa.Enum(ApprovalOutcome, name="approval_outcome"), nullable=False
    )
    approver_id: Mapped[str] = mapped_column(
        sa.String(20), sa.ForeignKey("employees.id"), nullable=False
    )
    approver_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    decided_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Relationships
    request: Mapped[LeaveRequest] = relationship(back_populates="approvals")
