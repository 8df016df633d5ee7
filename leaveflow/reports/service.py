"""Report service — approved requests in a day / week / month window,
grouped by department with department head-counts."""

from __future__ import annotations

from collections import Counter

from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.attendance.aggregator import UNASSIGNED_DEPARTMENT
from leaveflow.calendar.schemas import HolidayResponse, WindowResponse
from leaveflow.calendar.service import HolidayService
from leaveflow.calendar.windows import DateWindow
from leaveflow.common.constants import RequestType
from leaveflow.core_hr.service import RosterService
from leaveflow.reports.schemas import (
    DepartmentReport,
    ReportRequestItem,
    WindowReportResponse,
)
from leaveflow.requests.service import RequestService


class ReportService:

    @staticmethod
    async def window_report(
        db: AsyncSession,
        window: DateWindow,
        request_type: RequestType = RequestType.leave,
    ) -> WindowReportResponse:
        """Every known department appears, even with no requests."""
        requests = await RequestService.list_approved_in_window(
            db, window, types=[request_type],
        )
        employees = await RosterService.list_employees(db)
        departments = await RosterService.list_departments(db)
        holidays = await HolidayService.list_holidays(db, window)

        head_count = Counter(e.department or UNASSIGNED_DEPARTMENT for e in employees)
        grouped: dict[str, list[ReportRequestItem]] = {d.name: [] for d in departments}
        for request in requests:
            grouped.setdefault(request.department or UNASSIGNED_DEPARTMENT, []).append(
                ReportRequestItem.model_validate(request)
            )
        for name in head_count:
            grouped.setdefault(name, [])

        return WindowReportResponse(
            window=WindowResponse(
                start_date=window.start_date,
                end_date=window.end_date,
                days=window.length,
            ),
            type=request_type,
            total_requests=len(requests),
            departments=[
                DepartmentReport(
                    department=name,
                    employee_count=head_count.get(name, 0),
                    request_count=len(items),
                    requests=items,
                )
                for name, items in sorted(grouped.items())
            ],
            holidays=[HolidayResponse.model_validate(h) for h in holidays],
        )
