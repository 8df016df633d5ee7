"""Common module tests — pagination, problem-detail exceptions, settings, roster."""

from __future__ import annotations

from datetime import date, time

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.common.constants import (
    ApprovalLevel,
    EmployeeStatus,
    HalfDaySession,
    UserRole,
)
from leaveflow.common.exceptions import (
    ConflictError,
    InvalidTransition,
    NotFoundException,
    QuotaExceeded,
    ValidationException,
)
from leaveflow.common.pagination import PaginationParams, paginate
from leaveflow.config import Settings
from leaveflow.core_hr.models import Employee
from leaveflow.core_hr.service import RosterService
from tests.conftest import _make_employee, seed_employees


def _params(page: int = 1, page_size: int = 2, sort: str | None = None) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size, sort=sort)


class TestPagination:

    async def test_paginate_with_sort(self, db: AsyncSession, team):
        page = await paginate(db, select(Employee), _params(page_size=3, sort="-id"), model=Employee)
        assert [e.id for e in page.data] == ["X1", "S1", "M2"]
        assert page.meta.total == 8
        assert page.meta.total_pages == 3
        assert page.meta.has_next and not page.meta.has_prev

    async def test_paginate_last_page(self, db: AsyncSession, team):
        page = await paginate(
            db, select(Employee), _params(page=3, page_size=3, sort="id"), model=Employee,
        )
        assert [e.id for e in page.data] == ["S1", "X1"]
        assert not page.meta.has_next
        assert page.meta.has_prev

    async def test_paginate_empty_result(self, db: AsyncSession):
        page = await paginate(db, select(Employee), _params(), model=Employee)
        assert page.data == []
        assert page.meta.total == 0
        assert page.meta.total_pages == 0

    async def test_unknown_sort_column_rejected(self, db: AsyncSession):
        with pytest.raises(ValidationException) as exc_info:
            await paginate(db, select(Employee), _params(sort="salary"), model=Employee)
        assert "sort" in exc_info.value.errors


class TestExceptions:

    def test_not_found(self):
        exc = NotFoundException("Request", "REQ-1")
        assert exc.status_code == 404
        assert "REQ-1" in exc.detail

    def test_conflict_carries_conflicting_request(self):
        exc = ConflictError("REQ-9", date(2024, 3, 1), date(2024, 3, 5), employee_id="E2")
        assert exc.status_code == 409
        assert exc.extra["conflicting_request"] == {
            "id": "REQ-9",
            "start_date": "2024-03-01",
            "end_date": "2024-03-05",
        }
        assert "E2" in exc.detail

    def test_quota_exceeded_carries_reset_date(self):
        exc = QuotaExceeded(date(2024, 4, 1))
        assert exc.status_code == 422
        assert exc.extra == {"reset_date": "2024-04-01"}

    def test_invalid_transition_extra(self):
        exc = InvalidTransition("nope", expected_level="hr")
        assert exc.status_code == 409
        assert exc.extra == {"expected_level": "hr"}

    def test_validation_issues_optional(self):
        exc = ValidationException({"reason": ["required"]})
        assert exc.extra == {}
        assert exc.issues == []


class TestSettings:

    def test_default_routing(self):
        routing = Settings(APPROVAL_ROUTING="").approval_routing
        assert routing[UserRole.employee] == (ApprovalLevel.manager, ApprovalLevel.hr)
        assert routing[UserRole.superadmin] == ()

    def test_routing_from_json(self):
        routing = Settings(APPROVAL_ROUTING='{"employee": ["hr"]}').approval_routing
        assert routing == {UserRole.employee: (ApprovalLevel.hr,)}

    @pytest.mark.parametrize(
        "raw",
        ["{not json", '["manager", "hr"]', '{"contractor": ["manager"]}', '{"employee": ["ceo"]}',
         '{"employee": 5}'],
    )
    def test_malformed_routing_falls_back(self, raw):
        routing = Settings(APPROVAL_ROUTING=raw).approval_routing
        assert routing[UserRole.employee] == (ApprovalLevel.manager, ApprovalLevel.hr)
        assert routing[UserRole.superadmin] == ()

    def test_only_async_database_url(self):
        assert not hasattr(Settings(), "DATABASE_URL_SYNC")

    def test_half_day_sessions_from_env(self):
        sessions = Settings(HALFDAY_MORNING="10:00-14:00").half_day_sessions
        assert sessions[HalfDaySession.morning] == (time(10), time(14))
        assert sessions[HalfDaySession.afternoon] == (time(13), time(18))

    def test_bad_half_day_sessions_fall_back(self):
        sessions = Settings(HALFDAY_AFTERNOON="afternoon").half_day_sessions
        assert sessions[HalfDaySession.afternoon] == (time(13), time(18))

    def test_cors_origins_fallback(self):
        assert Settings(CORS_ORIGINS="not json").cors_origins_list == ["http://localhost:3000"]


class TestRoster:

    async def test_list_employees_active_only(self, db: AsyncSession, team):
        await seed_employees(db, _make_employee("E9", status=EmployeeStatus.deactivated))
        active = await RosterService.list_employees(db, department="Engineering")
        assert {e.id for e in active} == {"E1", "E2", "E3", "M1"}

        everyone = await RosterService.list_employees(db, department="Engineering", status=None)
        assert "E9" in {e.id for e in everyone}

    async def test_list_by_role(self, db: AsyncSession, team):
        managers = await RosterService.list_employees(db, role=UserRole.manager)
        assert [e.id for e in managers] == ["M1", "M2"]

    async def test_lock_employees_skips_blanks_and_unknown(self, db: AsyncSession, team):
        locked = await RosterService.lock_employees(db, ["E2", None, "E1", "", "NOPE"])
        assert sorted(locked) == ["E1", "E2"]

    async def test_get_employee_missing(self, db: AsyncSession, team):
        with pytest.raises(NotFoundException):
            await RosterService.get_employee(db, "NOPE")

    async def test_snapshot(self, db: AsyncSession, team):
        snapshot = await RosterService.get_snapshot(db, "E1")
        assert snapshot.is_active
        assert snapshot.manager_id == "M1"
        assert await RosterService.get_snapshot(db, None) is None

    async def test_departments(self, db: AsyncSession, team):
        names = [d.name for d in await RosterService.list_departments(db)]
        assert names == ["Engineering", "Finance"]
