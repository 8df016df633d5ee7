"""Conflict detection over a snapshot of existing requests.

A request blocks an employee whether they are its requester or its named
alternative. Date ranges overlap as closed intervals, so sharing a single
boundary day is a conflict. Two time-bounded spans on the same single day
only conflict when their ``[start, end)`` times intersect.
"""

from __future__ import annotations

from datetime import date, time
from typing import Iterable, Optional

from leaveflow.common.constants import ACTIVE_REQUEST_STATUSES
from leaveflow.requests.schemas import RequestSnapshot


def involves(request: RequestSnapshot, employee_id: str) -> bool:
    return (
        request.employee_id == employee_id
        or request.alternative_employee_id == employee_id
    )


def dates_overlap(
    start_a: date, end_a: date, start_b: date, end_b: date,
) -> bool:
    return start_a <= end_b and start_b <= end_a


def times_overlap(
    start_a: time, end_a: time, start_b: time, end_b: time,
) -> bool:
    return start_a < end_b and start_b < end_a


def _single_day_times(
    start_date: date,
    end_date: date,
    start_time: Optional[time],
    end_time: Optional[time],
) -> Optional[tuple[time, time]]:
    if start_date != end_date or start_time is None or end_time is None:
        return None
    return start_time, end_time


def spans_conflict(
    request: RequestSnapshot,
    start_date: date,
    end_date: date,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
) -> bool:
    """True when *request* occupies any part of the candidate span."""
    if not dates_overlap(request.start_date, request.end_date, start_date, end_date):
        return False

    candidate = _single_day_times(start_date, end_date, start_time, end_time)
    existing = _single_day_times(
        request.start_date, request.end_date, request.start_time, request.end_time,
    )
    if candidate is None or existing is None or request.start_date != start_date:
        return True
    return times_overlap(candidate[0], candidate[1], existing[0], existing[1])


def find_conflict(
    employee_id: str,
    start_date: date,
    end_date: date,
    start_time: Optional[time],
    end_time: Optional[time],
    existing: Iterable[RequestSnapshot],
    exclude_request_id: Optional[str] = None,
) -> Optional[RequestSnapshot]:
    """Return the first pending/approved request that blocks *employee_id*."""
    for request in existing:
        if exclude_request_id is not None and request.id == exclude_request_id:
            continue
        if request.status not in ACTIVE_REQUEST_STATUSES:
            continue
        if not involves(request, employee_id):
            continue
        if spans_conflict(request, start_date, end_date, start_time, end_time):
            return request
    return None


def has_conflict(
    employee_id: str,
    start_date: date,
    end_date: date,
    start_time: Optional[time],
    end_time: Optional[time],
    existing: Iterable[RequestSnapshot],
    exclude_request_id: Optional[str] = None,
) -> bool:
    return (
        find_conflict(
            employee_id,
            start_date,
            end_date,
            start_time,
            end_time,
            existing,
            exclude_request_id=exclude_request_id,
        )
        is not None
    )
