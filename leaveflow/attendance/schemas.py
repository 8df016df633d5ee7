"""Attendance Pydantic schemas — daily status and department rollup."""


from datetime import date
from typing import Optional

from pydantic import BaseModel

from leaveflow.calendar.schemas import HolidayResponse
from leaveflow.common.constants import AttendanceStatus, RequestType


class EmployeeAttendance(BaseModel):
    employee_id: str
    name: str
    department: Optional[str] = None
    designation: Optional[str] = None
    status: AttendanceStatus
    request_id: Optional[str] = None
    request_type: Optional[RequestType] = None


class AttendanceSummary(BaseModel):
    total: int
    present: int
    leave: int
    permission: int


class DailyAttendanceResponse(BaseModel):
    day: date
    summary: AttendanceSummary
    holidays: list[HolidayResponse] = []
    data: list[EmployeeAttendance]


class DepartmentAttendanceOut(BaseModel):
    model_config = {"from_attributes": True}

    department: str
    total: int
    present: int
    leave: int
    permission: int


class DepartmentRollupResponse(BaseModel):
    day: date
    holidays: list[HolidayResponse] = []
    departments: list[DepartmentAttendanceOut]
