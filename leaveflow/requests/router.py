"""Requests router — submit, approve/reject, list, queues, availability.

Acting employees are identified by id in the payload; authentication is
handled upstream of this service.
"""


from datetime import date, time
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.common.constants import (
    LATEST_REQUEST_DATE,
    ApprovalLevel,
    RequestStatus,
    RequestType,
)
from leaveflow.common.exceptions import InvalidSelector
from leaveflow.common.pagination import PaginationParams
from leaveflow.common.rate_limit import limiter
from leaveflow.database import get_db
from leaveflow.requests.schemas import (
    ApproveBody,
    AvailabilityResponse,
    CasualQuotaResponse,
    HistoryResponse,
    RejectBody,
    RequestDraft,
    RequestListResponse,
    RequestOut,
)
from leaveflow.requests.service import RequestService

router = APIRouter(prefix="", tags=["requests"])


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=RequestOut, status_code=201)
@limiter.limit("20/minute")
async def submit_request(
    request: Request,
    body: RequestDraft,
    db: AsyncSession = Depends(get_db),
):
    """Submit a leave / half-day / permission / on-duty request."""
    created = await RequestService.submit_request(db, body)
    return RequestService.to_out(created)


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=RequestListResponse)
async def list_requests(
    employee_id: Optional[str] = Query(None),
    alternative_employee_id: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    status: Optional[RequestStatus] = Query(None),
    type: Optional[RequestType] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """List requests with filters (paginated, newest first)."""
    return await RequestService.list_requests(
        db,
        pagination,
        employee_id=employee_id,
        alternative_employee_id=alternative_employee_id,
        department=department,
        status=status,
        request_type=type,
        from_date=from_date,
        to_date=to_date,
    )


# ── GET /queue/{level} ──────────────────────────────────────────────
# NOTE: fixed paths are registered before /{request_id}.

@router.get("/queue/{level}", response_model=list[RequestOut])
async def approval_queue(
    level: ApprovalLevel,
    department: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Pending requests waiting on *level*."""
    return await RequestService.approval_queue(db, level, department=department)


# ── GET /availability ───────────────────────────────────────────────

@router.get("/availability", response_model=AvailabilityResponse)
async def availability(
    employee_id: str = Query(...),
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    start_time: Optional[time] = Query(None),
    end_time: Optional[time] = Query(None),
    exclude_request_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Check whether an employee is free over a span (e.g. as alternative)."""
    return await RequestService.availability(
        db,
        employee_id,
        start_date,
        end_date or start_date,
        start_time=start_time,
        end_time=end_time,
        exclude_request_id=exclude_request_id,
    )


# ── GET /casual-quota ───────────────────────────────────────────────

@router.get("/casual-quota", response_model=CasualQuotaResponse)
async def casual_quota(
    employee_id: str = Query(...),
    year: int = Query(..., ge=1, le=LATEST_REQUEST_DATE.year),
    month: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Casual leave availability for a month, with the next reset date."""
    if not 1 <= month <= 12:
        raise InvalidSelector(f"Month {month} is out of range (1..12).")
    return await RequestService.casual_quota(db, employee_id, year, month)


# ── GET /{request_id} ───────────────────────────────────────────────

@router.get("/{request_id}", response_model=RequestOut)
async def get_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
):
    return RequestService.to_out(await RequestService.get_request(db, request_id))


# ── GET /{request_id}/history ───────────────────────────────────────

@router.get("/{request_id}/history", response_model=HistoryResponse)
async def request_history(
    request_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Approval timeline: submission, then each level's decision."""
    return await RequestService.history(db, request_id)


# ── POST /{request_id}/approve ──────────────────────────────────────

@router.post("/{request_id}/approve", response_model=RequestOut)
async def approve_request(
    request_id: str,
    body: ApproveBody,
    db: AsyncSession = Depends(get_db),
):
    """Approve at the request's pending level."""
    updated = await RequestService.approve_request(
        db, request_id, body.level, body.approver_id,
    )
    return RequestService.to_out(updated)


# ── POST /{request_id}/reject ───────────────────────────────────────

@router.post("/{request_id}/reject", response_model=RequestOut)
async def reject_request(
    request_id: str,
    body: RejectBody,
    db: AsyncSession = Depends(get_db),
):
    """Reject at the request's pending level. A reason is required."""
    updated = await RequestService.reject_request(
        db, request_id, body.level, body.approver_id, body.reason,
    )
    return RequestService.to_out(updated)
