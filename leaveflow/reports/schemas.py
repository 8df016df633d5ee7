"""Report Pydantic schemas."""


from datetime import date, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from leaveflow.calendar.schemas import HolidayResponse, WindowResponse
from leaveflow.common.constants import HalfDaySession, LeaveMode, RequestType


class ReportRequestItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    employee_name: str
    type: RequestType
    leave_mode: Optional[LeaveMode] = None
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    half_day_session: Optional[HalfDaySession] = None
    day_count: Decimal
    reason: str
    alternative_employee_name: Optional[str] = None


class DepartmentReport(BaseModel):
    department: str
    employee_count: int
    request_count: int
    requests: list[ReportRequestItem]


class WindowReportResponse(BaseModel):
    window: WindowResponse
    type: RequestType
    total_requests: int
    departments: list[DepartmentReport]
    holidays: list[HolidayResponse] = []
