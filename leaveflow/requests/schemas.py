"""Request Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Draft / *Body      → request bodies (write)
  - *Response / *Out    → response bodies (read)
  - *Snapshot           → immutable views handed to the rule engines
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leaveflow.common.constants import (
    ApprovalLevel,
    ApprovalOutcome,
    HalfDaySession,
    LATEST_REQUEST_DATE,
    IssueKind,
    LeaveMode,
    RequestStatus,
    RequestType,
)
from leaveflow.common.pagination import PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Submission
# ═════════════════════════════════════════════════════════════════════


class RequestDraft(BaseModel):
    """Unvalidated submission. Field requiredness depends on ``type`` and is
    checked by ``RequestValidator`` so every problem is reported at once."""

    employee_id: str = Field(..., min_length=1, max_length=20)
    type: Optional[RequestType] = None
    leave_mode: Optional[LeaveMode] = None
    start_date: Optional[date] = Field(None, le=LATEST_REQUEST_DATE)
    end_date: Optional[date] = Field(None, le=LATEST_REQUEST_DATE)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    half_day_session: Optional[HalfDaySession] = None
    reason: Optional[str] = Field(None, max_length=2000)
    alternative_employee_id: Optional[str] = Field(None, max_length=20)

    @field_validator(
        "leave_mode",
        "start_date",
        "end_date",
        "start_time",
        "end_time",
        "half_day_session",
        "alternative_employee_id",
        "type",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("reason", mode="after")
    @classmethod
    def _strip_reason(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class NormalizedRequest(BaseModel):
    """A draft that passed validation, with derived fields filled in."""

    model_config = ConfigDict(frozen=True)

    employee_id: str
    type: RequestType
    leave_mode: Optional[LeaveMode] = None
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    half_day_session: Optional[HalfDaySession] = None
    reason: str
    alternative_employee_id: Optional[str] = None
    day_count: Decimal


class RequestSnapshot(BaseModel):
    """Read-only view of a stored request used for conflict and quota checks."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    employee_id: str
    employee_name: Optional[str] = None
    department: Optional[str] = None
    alternative_employee_id: Optional[str] = None
    type: RequestType
    leave_mode: Optional[LeaveMode] = None
    status: RequestStatus
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    half_day_session: Optional[HalfDaySession] = None


class ValidationIssue(BaseModel):
    """One rule violation found while validating a draft."""

    kind: IssueKind
    field: str
    message: str
    reset_date: Optional[date] = None
    conflicting_request_id: Optional[str] = None
    conflict_start_date: Optional[date] = None
    conflict_end_date: Optional[date] = None


# ═════════════════════════════════════════════════════════════════════
# Approval actions
# ═════════════════════════════════════════════════════════════════════


class ApproveBody(BaseModel):
    level: ApprovalLevel
    approver_id: str = Field(..., min_length=1, max_length=20)


class RejectBody(BaseModel):
    level: ApprovalLevel
    approver_id: str = Field(..., min_length=1, max_length=20)
    reason: str = Field(..., max_length=2000)


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class ApprovalRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    level: ApprovalLevel
    outcome: ApprovalOutcome
    approver_id: str
    approver_name: str
    decided_at: datetime
    rejection_reason: Optional[str] = None


class RequestOut(BaseModel):
    """Full request response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    employee_name: str
    department: Optional[str] = None
    type: RequestType
    leave_mode: Optional[LeaveMode] = None
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    half_day_session: Optional[HalfDaySession] = None
    reason: str
    alternative_employee_id: Optional[str] = None
    alternative_employee_name: Optional[str] = None
    day_count: Decimal
    status: RequestStatus
    approval_route: list[ApprovalLevel] = []
    next_level: Optional[ApprovalLevel] = None
    week_off: bool = False  # starts or ends on a Sunday; informational only
    approvals: list[ApprovalRecordOut] = []
    created_at: datetime
    updated_at: datetime


class RequestListResponse(BaseModel):
    data: list[RequestOut]
    meta: PaginationMeta


class HistoryEntry(BaseModel):
    """One step of the approval timeline."""

    event: str  # "submitted" or an approval level
    outcome: Optional[ApprovalOutcome] = None
    actor_id: str
    actor_name: str
    at: datetime
    reason: Optional[str] = None


class HistoryResponse(BaseModel):
    request_id: str
    status: RequestStatus
    entries: list[HistoryEntry]


class ConflictBrief(BaseModel):
    id: str
    employee_id: str
    type: RequestType
    status: RequestStatus
    start_date: date
    end_date: date


class AvailabilityResponse(BaseModel):
    employee_id: str
    available: bool
    conflicting_request: Optional[ConflictBrief] = None


class CasualQuotaResponse(BaseModel):
    employee_id: str
    year: int
    month: int
    available: bool
    used_by_request_id: Optional[str] = None
    reset_date: date
