"""Request validation and normalisation.

``RequestValidator.validate`` is pure: it receives the requester, the named
alternative and a snapshot of existing requests, and returns every rule
violation it finds rather than stopping at the first one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from leaveflow.common.constants import (
    ALTERNATIVE_EXEMPT_ROLES,
    COVER_ELIGIBLE_ROLES,
    HALF_DAY_SESSIONS,
    HalfDaySession,
    IssueKind,
    LeaveMode,
    RequestStatus,
    RequestType,
)
from leaveflow.common.exceptions import (
    AppException,
    ConflictError,
    QuotaExceeded,
    ValidationException,
)
from leaveflow.core_hr.schemas import EmployeeSnapshot
from leaveflow.requests.conflicts import find_conflict
from leaveflow.requests.schemas import (
    NormalizedRequest,
    RequestDraft,
    RequestSnapshot,
    ValidationIssue,
)

logger = logging.getLogger(__name__)

HALF_DAY = Decimal("0.5")

# Types that span whole days and carry no times
_DAY_SPAN_TYPES = (RequestType.leave, RequestType.od)
# Types drawn from a leave budget
_LEAVE_MODE_TYPES = (RequestType.leave, RequestType.halfday)


def first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def day_count_for(
    request_type: RequestType, start_date: date, end_date: date,
) -> Decimal:
    """leave / od: inclusive day span; halfday: 0.5; permission: 0."""
    if request_type == RequestType.halfday:
        return HALF_DAY
    if request_type == RequestType.permission:
        return Decimal("0")
    return Decimal((end_date - start_date).days + 1)


def touches_week_off(
    request_type: RequestType, start_date: date, end_date: date,
) -> bool:
    """Whether the request starts or ends on a Sunday. Half days only check the start."""
    if start_date.weekday() == 6:
        return True
    return request_type != RequestType.halfday and end_date.weekday() == 6


def find_casual_usage(
    employee_id: str,
    year: int,
    month: int,
    existing: Iterable[RequestSnapshot],
    exclude_request_id: Optional[str] = None,
) -> Optional[RequestSnapshot]:
    """Approved casual request of *employee_id* starting in (year, month)."""
    for request in existing:
        if request.id == exclude_request_id:
            continue
        if (
            request.employee_id == employee_id
            and request.status == RequestStatus.approved
            and request.leave_mode == LeaveMode.casual
            and request.start_date.year == year
            and request.start_date.month == month
        ):
            return request
    return None


# ── Context / outcome ───────────────────────────────────────────────

@dataclass(frozen=True)
class ValidationContext:
    requester: EmployeeSnapshot
    alternative: Optional[EmployeeSnapshot] = None


@dataclass
class ValidationOutcome:
    request: Optional[NormalizedRequest] = None
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def to_exception(self) -> AppException:
        """Pick the error that best describes the collected issues.

        Only conflicts → ``ConflictError``; only quota → ``QuotaExceeded``;
        anything else (or a mix) → ``ValidationException`` with all issues.
        """
        payload = [issue.model_dump(mode="json", exclude_none=True) for issue in self.issues]
        kinds = {issue.kind for issue in self.issues}
        errors: dict[str, list[str]] = {}
        for issue in self.issues:
            errors.setdefault(issue.field, []).append(issue.message)

        if kinds == {IssueKind.conflict}:
            first = self.issues[0]
            return ConflictError(
                first.conflicting_request_id or "",
                first.conflict_start_date,
                first.conflict_end_date,
                errors=errors,
                issues=payload,
            )
        if kinds == {IssueKind.quota_exceeded}:
            return QuotaExceeded(self.issues[0].reset_date, issues=payload)
        return ValidationException(errors, issues=payload)


# ═════════════════════════════════════════════════════════════════════
# RequestValidator
# ═════════════════════════════════════════════════════════════════════


class RequestValidator:
    """Checks a draft against per-type field rules, ordering, the monthly
    casual quota, scheduling conflicts and the alternative-employee rules."""

    def __init__(
        self,
        half_day_sessions: Optional[Mapping[HalfDaySession, tuple[time, time]]] = None,
    ) -> None:
        self.half_day_sessions = dict(half_day_sessions or HALF_DAY_SESSIONS)

    def validate(
        self,
        draft: RequestDraft,
        context: ValidationContext,
        existing: Iterable[RequestSnapshot],
        *,
        exclude_request_id: Optional[str] = None,
    ) -> ValidationOutcome:
        existing = list(existing)
        issues: list[ValidationIssue] = []

        def add(kind: IssueKind, field_name: str, message: str, **extra) -> None:
            issues.append(
                ValidationIssue(kind=kind, field=field_name, message=message, **extra)
            )

        request_type = draft.type
        start_date = draft.start_date
        end_date = draft.end_date
        start_time = draft.start_time
        end_time = draft.end_time
        leave_mode = draft.leave_mode
        session = draft.half_day_session

        # ── 1. Required fields per type ─────────────────────────────
        if request_type is None:
            add(IssueKind.missing_field, "type", "Request type is required.")
        if start_date is None:
            add(IssueKind.missing_field, "start_date", "Start date is required.")
        if not draft.reason:
            add(IssueKind.missing_field, "reason", "Reason is required.")

        if request_type in _DAY_SPAN_TYPES:
            if end_date is None:
                add(
                    IssueKind.missing_field,
                    "end_date",
                    f"End date is required for {request_type.value} requests.",
                )
            start_time = end_time = None
            session = None
        elif request_type == RequestType.halfday:
            end_date = start_date
            if session is None:
                add(
                    IssueKind.missing_field,
                    "half_day_session",
                    "Select the morning or afternoon session for a half day.",
                )
                start_time = end_time = None
            else:
                start_time, end_time = self.half_day_sessions[session]
        elif request_type == RequestType.permission:
            end_date = start_date
            session = None
            if start_time is None:
                add(IssueKind.missing_field, "start_time", "Start time is required for permission requests.")
            if end_time is None:
                add(IssueKind.missing_field, "end_time", "End time is required for permission requests.")

        if request_type in _LEAVE_MODE_TYPES:
            if leave_mode is None:
                add(IssueKind.missing_field, "leave_mode", "Leave mode is required.")
        else:
            leave_mode = None

        # ── 2. Ordering ─────────────────────────────────────────────
        dates_ok = start_date is not None and end_date is not None
        if dates_ok and start_date > end_date:
            add(IssueKind.invalid_ordering, "end_date", "End date cannot be before start date.")
            dates_ok = False

        times_ok = True
        if request_type == RequestType.permission:
            times_ok = start_time is not None and end_time is not None
            if times_ok and start_time >= end_time:
                add(IssueKind.invalid_ordering, "end_time", "End time must be after start time.")
                times_ok = False

        span_ok = request_type is not None and dates_ok and times_ok

        # ── 3. Casual quota ─────────────────────────────────────────
        if leave_mode == LeaveMode.casual and start_date is not None:
            used = find_casual_usage(
                draft.employee_id,
                start_date.year,
                start_date.month,
                existing,
                exclude_request_id=exclude_request_id,
            )
            if used is not None:
                reset = first_of_next_month(start_date)
                add(
                    IssueKind.quota_exceeded,
                    "leave_mode",
                    (
                        "Casual leave already used this month "
                        f"(request {used.id}). Next casual leave is available "
                        f"from {reset.isoformat()}."
                    ),
                    reset_date=reset,
                    conflicting_request_id=used.id,
                )

        # ── 4. Requester conflict ───────────────────────────────────
        if span_ok:
            clash = find_conflict(
                draft.employee_id, start_date, end_date, start_time, end_time,
                existing, exclude_request_id=exclude_request_id,
            )
            if clash is not None:
                add(
                    IssueKind.conflict,
                    "start_date",
                    (
                        "You already have a pending or approved request "
                        "(or are covering for someone) during this period."
                    ),
                    conflicting_request_id=clash.id,
                    conflict_start_date=clash.start_date,
                    conflict_end_date=clash.end_date,
                )

        # ── 5. Alternative employee ─────────────────────────────────
        alternative_id = draft.alternative_employee_id
        alternative_ok = False
        requester = context.requester
        if not alternative_id:
            if requester.role not in ALTERNATIVE_EXEMPT_ROLES:
                add(
                    IssueKind.missing_field,
                    "alternative_employee_id",
                    "Alternative employee is required.",
                )
        else:
            alternative = context.alternative
            if alternative_id == draft.employee_id:
                reason = "You cannot name yourself as the alternative employee."
            elif alternative is None or alternative.id != alternative_id:
                reason = f"Alternative employee '{alternative_id}' does not exist."
            elif not alternative.is_active:
                reason = f"Alternative employee '{alternative_id}' is not active."
            elif alternative.department != requester.department:
                reason = "Alternative employee must belong to your department."
            elif alternative.role not in COVER_ELIGIBLE_ROLES:
                reason = (
                    f"Employees with role '{alternative.role.value}' "
                    "cannot be named as alternative."
                )
            else:
                reason = None
                alternative_ok = True
            if reason is not None:
                add(IssueKind.alternative_invalid, "alternative_employee_id", reason)

        # ── 6. Alternative conflict ─────────────────────────────────
        if span_ok and alternative_ok:
            clash = find_conflict(
                alternative_id, start_date, end_date, start_time, end_time,
                existing, exclude_request_id=exclude_request_id,
            )
            if clash is not None:
                add(
                    IssueKind.conflict,
                    "alternative_employee_id",
                    (
                        "Alternative employee has leave/permission on the same "
                        "date. Please select a different employee."
                    ),
                    conflicting_request_id=clash.id,
                    conflict_start_date=clash.start_date,
                    conflict_end_date=clash.end_date,
                )

        if issues:
            logger.info(
                "Draft from %s rejected: %s",
                draft.employee_id,
                ", ".join(f"{i.kind.value}:{i.field}" for i in issues),
            )
            return ValidationOutcome(issues=issues)

        return ValidationOutcome(
            request=NormalizedRequest(
                employee_id=draft.employee_id,
                type=request_type,
                leave_mode=leave_mode,
                start_date=start_date,
                end_date=end_date,
                start_time=start_time,
                end_time=end_time,
                half_day_session=session,
                reason=draft.reason,
                alternative_employee_id=alternative_id or None,
                day_count=day_count_for(request_type, start_date, end_date),
            )
        )
