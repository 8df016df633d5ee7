"""Attendance service — daily status built from the roster and the
approved-request set, bounded to a single day."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.attendance.aggregator import daily_status, department_rollup
from leaveflow.attendance.schemas import (
    AttendanceSummary,
    DailyAttendanceResponse,
    DepartmentAttendanceOut,
    DepartmentRollupResponse,
    EmployeeAttendance,
)
from leaveflow.calendar.schemas import HolidayResponse
from leaveflow.calendar.service import HolidayService
from leaveflow.calendar.windows import DateWindow
from leaveflow.common.constants import AttendanceStatus, RequestType
from leaveflow.core_hr.schemas import EmployeeSnapshot
from leaveflow.core_hr.service import RosterService
from leaveflow.requests.schemas import RequestSnapshot
from leaveflow.requests.service import RequestService

logger = logging.getLogger(__name__)

_STATUS_TYPES = {
    AttendanceStatus.leave: (RequestType.leave, RequestType.halfday),
    AttendanceStatus.permission: (RequestType.permission,),
}


class AttendanceService:
    """Async attendance queries."""

    @staticmethod
    async def _load(
        db: AsyncSession,
        day: date,
        department: Optional[str],
    ) -> tuple[list[EmployeeSnapshot], list[RequestSnapshot], list[HolidayResponse]]:
        window = DateWindow(day, day)
        roster = [
            EmployeeSnapshot.model_validate(e)
            for e in await RosterService.list_employees(db, department=department)
        ]
        approved = [
            RequestSnapshot.model_validate(r)
            for r in await RequestService.list_approved_in_window(db, window)
        ]
        holidays = [
            HolidayResponse.model_validate(h)
            for h in await HolidayService.list_holidays(db, window)
        ]
        return roster, approved, holidays

    @staticmethod
    async def get_daily_status(
        db: AsyncSession,
        day: date,
        *,
        department: Optional[str] = None,
    ) -> DailyAttendanceResponse:
        roster, approved, holidays = await AttendanceService._load(db, day, department)
        statuses = daily_status(day, roster, approved)

        rows: list[EmployeeAttendance] = []
        for employee in roster:
            status = statuses.get(employee.id)
            if status is None:
                continue
            source = None
            if status in _STATUS_TYPES:
                source = next(
                    (
                        r for r in approved
                        if r.employee_id == employee.id
                        and r.type in _STATUS_TYPES[status]
                        and r.start_date <= day <= r.end_date
                    ),
                    None,
                )
            rows.append(
                EmployeeAttendance(
                    employee_id=employee.id,
                    name=employee.name,
                    department=employee.department,
                    designation=employee.designation,
                    status=status,
                    request_id=source.id if source else None,
                    request_type=source.type if source else None,
                )
            )

        counts = {s: 0 for s in AttendanceStatus}
        for status in statuses.values():
            counts[status] += 1

        logger.debug("Daily status for %s: %d employees", day, len(rows))
        return DailyAttendanceResponse(
            day=day,
            summary=AttendanceSummary(
                total=len(statuses),
                present=counts[AttendanceStatus.present],
                leave=counts[AttendanceStatus.leave],
                permission=counts[AttendanceStatus.permission],
            ),
            holidays=holidays,
            data=rows,
        )

    @staticmethod
    async def get_department_rollup(
        db: AsyncSession,
        day: date,
    ) -> DepartmentRollupResponse:
        roster, approved, holidays = await AttendanceService._load(db, day, None)
        statuses = daily_status(day, roster, approved)
        return DepartmentRollupResponse(
            day=day,
            holidays=holidays,
            departments=[
                DepartmentAttendanceOut.model_validate(d)
                for d in department_rollup(statuses, roster)
            ],
        )
