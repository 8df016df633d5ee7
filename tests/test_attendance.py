"""Attendance aggregation — per-employee daily status and department rollup."""

from __future__ import annotations

from datetime import date, time

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.attendance.aggregator import (
    UNASSIGNED_DEPARTMENT,
    DepartmentAttendance,
    daily_status,
    department_rollup,
)
from leaveflow.attendance.service import AttendanceService
from leaveflow.calendar.models import Holiday
from leaveflow.common.constants import (
    AttendanceStatus,
    EmployeeStatus,
    LeaveMode,
    RequestStatus,
    RequestType,
    UserRole,
)
from leaveflow.core_hr.schemas import EmployeeSnapshot
from leaveflow.requests.schemas import RequestSnapshot
from tests.conftest import _make_holiday, _make_request, seed_requests

DAY = date(2024, 3, 5)


def _employee(
    id: str,
    department: str | None = "Engineering",
    status: EmployeeStatus = EmployeeStatus.active,
) -> EmployeeSnapshot:
    return EmployeeSnapshot(
        id=id, name=id, role=UserRole.employee, department=department, status=status,
    )


def _approved(id: str, employee_id: str, type: RequestType, start: date, end: date | None = None):
    return RequestSnapshot(
        id=id,
        employee_id=employee_id,
        type=type,
        status=RequestStatus.approved,
        start_date=start,
        end_date=end or start,
    )


# ═════════════════════════════════════════════════════════════════════
# 1. Pure aggregation
# ═════════════════════════════════════════════════════════════════════


class TestDailyStatus:

    def test_presence_is_the_default(self):
        statuses = daily_status(DAY, [_employee("E1"), _employee("E2")], [])
        assert statuses == {"E1": AttendanceStatus.present, "E2": AttendanceStatus.present}

    def test_leave_halfday_and_permission(self):
        roster = [_employee("E1"), _employee("E2"), _employee("E3"), _employee("E4")]
        approved = [
            _approved("R1", "E1", RequestType.leave, date(2024, 3, 4), date(2024, 3, 6)),
            _approved("R2", "E2", RequestType.halfday, DAY),
            _approved("R3", "E3", RequestType.permission, DAY),
        ]
        statuses = daily_status(DAY, roster, approved)
        assert statuses == {
            "E1": AttendanceStatus.leave,
            "E2": AttendanceStatus.leave,
            "E3": AttendanceStatus.permission,
            "E4": AttendanceStatus.present,
        }

    def test_leave_wins_over_permission(self):
        approved = [
            _approved("R1", "E1", RequestType.permission, DAY),
            _approved("R2", "E1", RequestType.leave, DAY),
        ]
        assert daily_status(DAY, [_employee("E1")], approved) == {"E1": AttendanceStatus.leave}

    def test_on_duty_counts_as_present(self):
        approved = [_approved("R1", "E1", RequestType.od, DAY)]
        assert daily_status(DAY, [_employee("E1")], approved) == {"E1": AttendanceStatus.present}

    def test_requests_outside_the_day_ignored(self):
        approved = [_approved("R1", "E1", RequestType.leave, date(2024, 3, 6))]
        assert daily_status(DAY, [_employee("E1")], approved)["E1"] == AttendanceStatus.present

    def test_non_approved_requests_ignored(self):
        pending = RequestSnapshot(
            id="R1", employee_id="E1", type=RequestType.leave,
            status=RequestStatus.pending, start_date=DAY, end_date=DAY,
        )
        assert daily_status(DAY, [_employee("E1")], [pending])["E1"] == AttendanceStatus.present

    def test_inactive_employees_excluded(self):
        roster = [_employee("E1"), _employee("E2", status=EmployeeStatus.deactivated)]
        assert set(daily_status(DAY, roster, [])) == {"E1"}


class TestDepartmentRollup:

    def test_counts_per_department_sorted(self):
        roster = [
            _employee("E1"),
            _employee("E2"),
            _employee("F1", department="Finance"),
            _employee("N1", department=None),
        ]
        statuses = {
            "E1": AttendanceStatus.leave,
            "E2": AttendanceStatus.present,
            "F1": AttendanceStatus.permission,
            "N1": AttendanceStatus.present,
        }
        rollup = department_rollup(statuses, roster)
        assert rollup == [
            DepartmentAttendance("Engineering", total=2, present=1, leave=1, permission=0),
            DepartmentAttendance("Finance", total=1, present=0, leave=0, permission=1),
            DepartmentAttendance(UNASSIGNED_DEPARTMENT, total=1, present=1, leave=0, permission=0),
        ]

    def test_employees_without_status_skipped(self):
        rollup = department_rollup({}, [_employee("E1")])
        assert rollup == []


# ═════════════════════════════════════════════════════════════════════
# 2. Service + API
# ═════════════════════════════════════════════════════════════════════


class TestAttendanceService:

    async def _seed(self, db: AsyncSession) -> None:
        await seed_requests(
            db,
            _make_request("E1", start_date=date(2024, 3, 4), end_date=date(2024, 3, 6),
                          day_count=3),
            _make_request("E3", type=RequestType.permission, leave_mode=None,
                          start_date=DAY, start_time=time(10), end_time=time(11), day_count=0),
            _make_request("X1", department="Finance", leave_mode=LeaveMode.casual,
                          start_date=DAY, status=RequestStatus.pending),
        )
        db.add(Holiday(**_make_holiday("Founders Day", DAY)))
        await db.commit()

    async def test_daily_status(self, db: AsyncSession, team):
        await self._seed(db)
        result = await AttendanceService.get_daily_status(db, DAY)

        by_id = {row.employee_id: row for row in result.data}
        assert by_id["E1"].status == AttendanceStatus.leave
        assert by_id["E1"].request_type == RequestType.leave
        assert by_id["E3"].status == AttendanceStatus.permission
        assert by_id["X1"].status == AttendanceStatus.present
        assert by_id["X1"].request_id is None

        assert result.summary.total == 8
        assert result.summary.leave == 1
        assert result.summary.permission == 1
        assert result.summary.present == 6
        assert [h.name for h in result.holidays] == ["Founders Day"]

    async def test_daily_status_by_department(self, db: AsyncSession, team):
        await self._seed(db)
        result = await AttendanceService.get_daily_status(db, DAY, department="Finance")
        assert {row.employee_id for row in result.data} == {"X1", "M2"}

    async def test_daily_endpoint(self, client: AsyncClient, db: AsyncSession, team):
        await self._seed(db)
        resp = await client.get("/api/v1/attendance/daily", params={"date": "2024-03-05"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["day"] == "2024-03-05"
        assert body["summary"]["leave"] == 1

    async def test_department_rollup_endpoint(self, client: AsyncClient, db: AsyncSession, team):
        await self._seed(db)
        resp = await client.get(
            "/api/v1/attendance/daily/departments", params={"date": "2024-03-05"},
        )
        assert resp.status_code == 200
        departments = {d["department"]: d for d in resp.json()["departments"]}
        assert departments["Engineering"]["leave"] == 1
        assert departments["Engineering"]["permission"] == 1
        assert departments["Engineering"]["total"] == 4
        assert departments["Finance"]["present"] == 2
        assert departments[UNASSIGNED_DEPARTMENT]["total"] == 1

    async def test_date_is_required(self, client: AsyncClient):
        resp = await client.get("/api/v1/attendance/daily")
        assert resp.status_code == 422
