"""Daily attendance derivation from approved requests.

Presence is the default: there is no absence signal, so an active employee
without an approved leave, half-day or permission covering the day counts as
present. On-duty requests also count as present. When both a leave and a
permission cover the same day, leave wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping

from leaveflow.common.constants import (
    AttendanceStatus,
    RequestStatus,
    RequestType,
)
from leaveflow.core_hr.schemas import EmployeeSnapshot
from leaveflow.requests.schemas import RequestSnapshot

_LEAVE_TYPES = (RequestType.leave, RequestType.halfday)

UNASSIGNED_DEPARTMENT = "Unassigned"


@dataclass(frozen=True)
class DepartmentAttendance:
    department: str
    total: int
    present: int
    leave: int
    permission: int


def daily_status(
    day: date,
    roster: Iterable[EmployeeSnapshot],
    approved: Iterable[RequestSnapshot],
) -> dict[str, AttendanceStatus]:
    """Attendance status per active employee id for *day*."""
    on_leave: set[str] = set()
    on_permission: set[str] = set()
    for request in approved:
        if request.status != RequestStatus.approved:
            continue
        if not request.start_date <= day <= request.end_date:
            continue
        if request.type in _LEAVE_TYPES:
            on_leave.add(request.employee_id)
        elif request.type == RequestType.permission:
            on_permission.add(request.employee_id)

    statuses: dict[str, AttendanceStatus] = {}
    for employee in roster:
        if not employee.is_active:
            continue
        if employee.id in on_leave:
            statuses[employee.id] = AttendanceStatus.leave
        elif employee.id in on_permission:
            statuses[employee.id] = AttendanceStatus.permission
        else:
            statuses[employee.id] = AttendanceStatus.present
    return statuses


def department_rollup(
    statuses: Mapping[str, AttendanceStatus],
    roster: Iterable[EmployeeSnapshot],
) -> list[DepartmentAttendance]:
    """Per-department counts, departments in name order."""
    counts: dict[str, dict[str, int]] = {}
    for employee in roster:
        status = statuses.get(employee.id)
        if status is None:
            continue
        bucket = counts.setdefault(
            employee.department or UNASSIGNED_DEPARTMENT,
            {"total": 0, "present": 0, "leave": 0, "permission": 0},
        )
        bucket["total"] += 1
        bucket[status.value] += 1

    return [
        DepartmentAttendance(department=name, **bucket)
        for name, bucket in sorted(counts.items())
    ]
