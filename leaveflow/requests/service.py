"""Request service layer — submission, multi-level approvals, queues.

Business logic:
  - Submission validated by ``RequestValidator`` inside the transaction that
    inserts, with the requester and alternative rows locked, so the overlap
    check and the insert are atomic
  - Approve / reject through ``ApprovalStateMachine`` under a row lock on
    the request
  - Casual quota re-checked on the final approval of a casual request
  - Approval queues per level, availability check, quota status, history
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Iterable, Optional, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.calendar.windows import DateWindow
from leaveflow.common.audit import create_audit_entry
from leaveflow.common.constants import (
    ACTIVE_REQUEST_STATUSES,
    LEVEL_APPROVER_ROLE,
    ApprovalLevel,
    LeaveMode,
    RequestStatus,
    RequestType,
)
from leaveflow.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    QuotaExceeded,
    ValidationException,
)
from leaveflow.common.pagination import PaginationParams, paginate
from leaveflow.config import settings
from leaveflow.core_hr.models import Employee
from leaveflow.core_hr.schemas import EmployeeSnapshot
from leaveflow.core_hr.service import RosterService
from leaveflow.notifications.service import (
    notify_alternative_assigned,
    notify_request_approved,
    notify_request_pending,
    notify_request_rejected,
)
from leaveflow.requests.conflicts import find_conflict
from leaveflow.requests.models import ApprovalRecord, LeaveRequest
from leaveflow.requests.schemas import (
    AvailabilityResponse,
    CasualQuotaResponse,
    ConflictBrief,
    HistoryEntry,
    HistoryResponse,
    NormalizedRequest,
    RequestDraft,
    RequestListResponse,
    RequestOut,
    RequestSnapshot,
)
from leaveflow.requests.validation import (
    RequestValidator,
    ValidationContext,
    find_casual_usage,
    first_of_next_month,
    touches_week_off,
)
from leaveflow.requests.workflow import (
    ApprovalPolicy,
    ApprovalState,
    ApprovalStateMachine,
    Decision,
    Transition,
    initial_status,
)

logger = logging.getLogger(__name__)

ENTITY_TYPE = "leave_request"


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _snapshots(rows: Iterable[LeaveRequest]) -> list[RequestSnapshot]:
    return [RequestSnapshot.model_validate(row) for row in rows]


# ═════════════════════════════════════════════════════════════════════
# RequestService
# ═════════════════════════════════════════════════════════════════════


class RequestService:
    """Async request operations: submit, approve, reject, list, queues."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def default_policy() -> ApprovalPolicy:
        return ApprovalPolicy(settings.approval_routing)

    @staticmethod
    def default_validator() -> RequestValidator:
        return RequestValidator(settings.half_day_sessions)

    @staticmethod
    def to_out(request: LeaveRequest) -> RequestOut:
        """Build RequestOut from ORM, filling the pending level and week-off flag."""
        out = RequestOut.model_validate(request)
        out.next_level = ApprovalStateMachine.next_level(ApprovalState.from_request(request))
        out.week_off = touches_week_off(request.type, request.start_date, request.end_date)
        return out

    @staticmethod
    async def active_requests_involving(
        db: AsyncSession,
        employee_ids: Sequence[str],
        *,
        not_ending_before: Optional[date] = None,
    ) -> list[LeaveRequest]:
        """Pending/approved requests where any id is requester or alternative."""
        ids = [eid for eid in employee_ids if eid]
        if not ids:
            return []
        query = select(LeaveRequest).where(
            LeaveRequest.status.in_(ACTIVE_REQUEST_STATUSES),
            or_(
                LeaveRequest.employee_id.in_(ids),
                LeaveRequest.alternative_employee_id.in_(ids),
            ),
        )
        if not_ending_before is not None:
            query = query.where(LeaveRequest.end_date >= not_ending_before)
        result = await db.execute(query.order_by(LeaveRequest.start_date, LeaveRequest.id))
        return list(result.scalars().all())

    @staticmethod
    async def get_request(
        db: AsyncSession,
        request_id: str,
        *,
        for_update: bool = False,
    ) -> LeaveRequest:
        query = select(LeaveRequest).where(LeaveRequest.id == request_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        request = result.scalars().first()
        if request is None:
            raise NotFoundException("Request", request_id)
        return request

    @staticmethod
    async def _lock_request(db: AsyncSession, request_id: str) -> LeaveRequest:
        """Lock the requester row, then the request row.

        Same lock order as submission, so a final casual approval and a new
        submission for the same employee cannot interleave.
        """
        request = await RequestService.get_request(db, request_id)
        await RosterService.lock_employees(db, [request.employee_id])
        return await RequestService.get_request(db, request_id, for_update=True)

    @staticmethod
    async def _get_approver(
        db: AsyncSession,
        request: LeaveRequest,
        level: ApprovalLevel,
        approver_id: str,
    ) -> Employee:
        approver = await RosterService.find_employee(db, approver_id)
        if approver is None:
            raise NotFoundException("Employee", approver_id)
        if not approver.is_active:
            raise ForbiddenException(f"Employee '{approver_id}' is not active.")
        if approver.id == request.employee_id:
            raise ForbiddenException("You cannot act on your own request.")
        if approver.role != LEVEL_APPROVER_ROLE[level]:
            raise ForbiddenException(
                f"Only {LEVEL_APPROVER_ROLE[level].value} users can act at "
                f"{level.value} level."
            )
        return approver

    # ─────────────────────────────────────────────────────────────────
    # Storage
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_request(
        db: AsyncSession,
        normalized: NormalizedRequest,
        requester: Employee,
        alternative: Optional[Employee],
        route: Sequence[ApprovalLevel],
        now: datetime,
    ) -> LeaveRequest:
        request = LeaveRequest(
            employee_id=requester.id,
            employee_name=requester.name,
            department=requester.department,
            requester_role=requester.role,
            type=normalized.type,
            leave_mode=normalized.leave_mode,
            start_date=normalized.start_date,
            end_date=normalized.end_date,
            start_time=normalized.start_time,
            end_time=normalized.end_time,
            half_day_session=normalized.half_day_session,
            reason=normalized.reason,
            alternative_employee_id=alternative.id if alternative else None,
            alternative_employee_name=alternative.name if alternative else None,
            day_count=normalized.day_count,
            status=initial_status(route),
            approval_route=[level.value for level in route],
            created_at=now,
            updated_at=now,
            approvals=[],
        )
        db.add(request)
        await db.flush()
        return request

    @staticmethod
    async def append_approval(
        db: AsyncSession,
        request: LeaveRequest,
        transition: Transition,
    ) -> ApprovalRecord:
        decision: Decision = transition.record
        record = ApprovalRecord(
            sequence=decision.sequence,
            level=decision.level,
            outcome=decision.outcome,
            approver_id=decision.approver_id,
            approver_name=decision.approver_name,
            decided_at=decision.decided_at,
            rejection_reason=decision.rejection_reason,
        )
        request.approvals.append(record)
        request.status = transition.status
        request.updated_at = decision.decided_at
        await db.flush()
        return record

    # ─────────────────────────────────────────────────────────────────
    # Submit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def submit_request(
        db: AsyncSession,
        draft: RequestDraft,
        *,
        policy: Optional[ApprovalPolicy] = None,
        validator: Optional[RequestValidator] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        """Validate *draft* and store it as a pending (or auto-approved) request.

        Raises ``ValidationException`` / ``ConflictError`` / ``QuotaExceeded``
        with every issue found; nothing is written in that case.
        """
        policy = policy or RequestService.default_policy()
        validator = validator or RequestService.default_validator()
        now = now or datetime.now(timezone.utc)

        # ── Lock the employees involved ─────────────────────────────
        locked = await RosterService.lock_employees(
            db, [draft.employee_id, draft.alternative_employee_id],
        )
        requester = locked.get(draft.employee_id)
        if requester is None or not requester.is_active:
            raise NotFoundException("Employee", draft.employee_id)
        alternative = locked.get(draft.alternative_employee_id or "")

        # ── Validate against the committed state ────────────────────
        existing = await RequestService.active_requests_involving(
            db,
            [draft.employee_id, draft.alternative_employee_id],
            not_ending_before=_month_start(draft.start_date) if draft.start_date else None,
        )
        outcome = validator.validate(
            draft,
            ValidationContext(
                requester=EmployeeSnapshot.model_validate(requester),
                alternative=EmployeeSnapshot.model_validate(alternative) if alternative else None,
            ),
            _snapshots(existing),
        )
        if not outcome.ok:
            raise outcome.to_exception()

        # ── Insert ──────────────────────────────────────────────────
        route = policy.route_for(requester.role)
        request = await RequestService.create_request(
            db, outcome.request, requester, alternative, route, now,
        )

        await create_audit_entry(
            db,
            action="create",
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            actor_id=requester.id,
            new_values={
                "type": request.type.value,
                "leave_mode": request.leave_mode.value if request.leave_mode else None,
                "start_date": request.start_date.isoformat(),
                "end_date": request.end_date.isoformat(),
                "day_count": str(request.day_count),
                "status": request.status.value,
                "approval_route": request.approval_route,
            },
        )

        if route:
            await notify_request_pending(db, request, route[0])
        else:
            await notify_request_approved(db, request)
        await notify_alternative_assigned(db, request)

        logger.info(
            "Request %s submitted by %s (%s %s..%s, route=%s, status=%s)",
            request.id,
            requester.id,
            request.type.value,
            request.start_date,
            request.end_date,
            "/".join(request.approval_route) or "-",
            request.status.value,
        )
        return request

    # ─────────────────────────────────────────────────────────────────
    # Approve
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def approve_request(
        db: AsyncSession,
        request_id: str,
        level: ApprovalLevel,
        approver_id: str,
        *,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        """Record an approval at *level*; the last level makes it effective."""
        now = now or datetime.now(timezone.utc)
        request = await RequestService._lock_request(db, request_id)
        approver = await RequestService._get_approver(db, request, level, approver_id)

        state = ApprovalState.from_request(request)
        transition = ApprovalStateMachine.approve(
            state, level, approver.id, approver.name, now,
        )

        # ── Final casual approval: quota against committed state ────
        if transition.is_final and request.leave_mode == LeaveMode.casual:
            approved = await RequestService.active_requests_involving(
                db, [request.employee_id],
                not_ending_before=_month_start(request.start_date),
            )
            used = find_casual_usage(
                request.employee_id,
                request.start_date.year,
                request.start_date.month,
                _snapshots(approved),
                exclude_request_id=request.id,
            )
            if used is not None:
                logger.warning(
                    "Final approval of %s blocked: casual quota used by %s",
                    request.id, used.id,
                )
                raise QuotaExceeded(first_of_next_month(request.start_date))

        old_status = request.status.value
        await RequestService.append_approval(db, request, transition)

        await create_audit_entry(
            db,
            action="approve",
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            actor_id=approver.id,
            old_values={"status": old_status},
            new_values={
                "status": request.status.value,
                "level": level.value,
                "sequence": transition.record.sequence,
            },
        )

        if transition.is_final:
            await notify_request_approved(db, request)
        else:
            pending = ApprovalStateMachine.next_level(ApprovalState.from_request(request))
            if pending is not None:
                await notify_request_pending(db, request, pending)

        logger.info(
            "Request %s approved at %s by %s -> %s",
            request.id, level.value, approver.id, request.status.value,
        )
        return request

    # ─────────────────────────────────────────────────────────────────
    # Reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def reject_request(
        db: AsyncSession,
        request_id: str,
        level: ApprovalLevel,
        approver_id: str,
        reason: str,
        *,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        """Reject at *level*. Terminal: later levels are never consulted."""
        now = now or datetime.now(timezone.utc)
        request = await RequestService._lock_request(db, request_id)
        approver = await RequestService._get_approver(db, request, level, approver_id)

        state = ApprovalState.from_request(request)
        transition = ApprovalStateMachine.reject(
            state, level, approver.id, approver.name, reason, now,
        )

        old_status = request.status.value
        await RequestService.append_approval(db, request, transition)

        await create_audit_entry(
            db,
            action="reject",
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            actor_id=approver.id,
            old_values={"status": old_status},
            new_values={
                "status": request.status.value,
                "level": level.value,
                "reason": transition.record.rejection_reason,
            },
        )
        await notify_request_rejected(db, request, level, transition.record.rejection_reason)

        logger.info("Request %s rejected at %s by %s", request.id, level.value, approver.id)
        return request

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        employee_id: Optional[str] = None,
        alternative_employee_id: Optional[str] = None,
        department: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        request_type: Optional[RequestType] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> RequestListResponse:
        """Paginated requests, newest first. Dates filter by overlap."""
        query = select(LeaveRequest).order_by(
            LeaveRequest.created_at.desc(), LeaveRequest.id,
        )
        if employee_id is not None:
            query = query.where(LeaveRequest.employee_id == employee_id)
        if alternative_employee_id is not None:
            query = query.where(LeaveRequest.alternative_employee_id == alternative_employee_id)
        if department is not None:
            query = query.where(LeaveRequest.department == department)
        if status is not None:
            query = query.where(LeaveRequest.status == status)
        if request_type is not None:
            query = query.where(LeaveRequest.type == request_type)
        if from_date is not None:
            query = query.where(LeaveRequest.end_date >= from_date)
        if to_date is not None:
            query = query.where(LeaveRequest.start_date <= to_date)

        page = await paginate(db, query, pagination, model=LeaveRequest)
        return RequestListResponse(
            data=[RequestService.to_out(r) for r in page.data],
            meta=page.meta,
        )

    @staticmethod
    async def list_approved_in_window(
        db: AsyncSession,
        window: DateWindow,
        *,
        types: Optional[Sequence[RequestType]] = None,
    ) -> list[LeaveRequest]:
        """Approved requests overlapping *window*."""
        query = select(LeaveRequest).where(
            LeaveRequest.status == RequestStatus.approved,
            and_(
                LeaveRequest.start_date <= window.end_date,
                LeaveRequest.end_date >= window.start_date,
            ),
        )
        if types:
            query = query.where(LeaveRequest.type.in_(list(types)))
        result = await db.execute(
            query.order_by(LeaveRequest.department, LeaveRequest.start_date, LeaveRequest.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def approval_queue(
        db: AsyncSession,
        level: ApprovalLevel,
        *,
        department: Optional[str] = None,
    ) -> list[RequestOut]:
        """Pending requests whose next unsatisfied level is *level*."""
        query = select(LeaveRequest).where(LeaveRequest.status == RequestStatus.pending)
        if department is not None:
            query = query.where(LeaveRequest.department == department)
        result = await db.execute(query.order_by(LeaveRequest.created_at, LeaveRequest.id))
        queue = []
        for request in result.scalars().all():
            if ApprovalStateMachine.next_level(ApprovalState.from_request(request)) == level:
                queue.append(RequestService.to_out(request))
        return queue

    @staticmethod
    async def history(db: AsyncSession, request_id: str) -> HistoryResponse:
        """Submission followed by every recorded decision, in order."""
        request = await RequestService.get_request(db, request_id)
        entries = [
            HistoryEntry(
                event="submitted",
                actor_id=request.employee_id,
                actor_name=request.employee_name,
                at=request.created_at,
            )
        ]
        for record in request.approvals:
            entries.append(
                HistoryEntry(
                    event=record.level.value,
                    outcome=record.outcome,
                    actor_id=record.approver_id,
                    actor_name=record.approver_name,
                    at=record.decided_at,
                    reason=record.rejection_reason,
                )
            )
        return HistoryResponse(request_id=request.id, status=request.status, entries=entries)

    @staticmethod
    async def availability(
        db: AsyncSession,
        employee_id: str,
        start_date: date,
        end_date: date,
        *,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        exclude_request_id: Optional[str] = None,
    ) -> AvailabilityResponse:
        """Whether *employee_id* is free to request or cover the given span."""
        if end_date < start_date:
            raise ValidationException({"end_date": ["End date cannot be before start date."]})
        if start_time is not None and end_time is not None and start_time >= end_time:
            raise ValidationException({"end_time": ["End time must be after start time."]})

        await RosterService.get_employee(db, employee_id)
        existing = await RequestService.active_requests_involving(
            db, [employee_id], not_ending_before=start_date,
        )
        clash = find_conflict(
            employee_id, start_date, end_date, start_time, end_time,
            _snapshots(existing), exclude_request_id=exclude_request_id,
        )
        return AvailabilityResponse(
            employee_id=employee_id,
            available=clash is None,
            conflicting_request=(
                ConflictBrief(
                    id=clash.id,
                    employee_id=clash.employee_id,
                    type=clash.type,
                    status=clash.status,
                    start_date=clash.start_date,
                    end_date=clash.end_date,
                )
                if clash is not None
                else None
            ),
        )

    @staticmethod
    async def casual_quota(
        db: AsyncSession,
        employee_id: str,
        year: int,
        month: int,
    ) -> CasualQuotaResponse:
        """Whether a casual request starting in (year, month) is still allowed."""
        await RosterService.get_employee(db, employee_id)
        month_start = date(year, month, 1)
        existing = await RequestService.active_requests_involving(
            db, [employee_id], not_ending_before=month_start,
        )
        used = find_casual_usage(employee_id, year, month, _snapshots(existing))
        return CasualQuotaResponse(
            employee_id=employee_id,
            year=year,
            month=month,
            available=used is None,
            used_by_request_id=used.id if used else None,
            reset_date=first_of_next_month(month_start),
        )
