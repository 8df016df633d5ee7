"""Shared test fixtures — async DB, client, roster and request factories.

Reusable across all test modules (windows, requests, attendance, reports…).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leaveflow.common.constants import (
    EmployeeStatus,
    HalfDaySession,
    HolidayType,
    LeaveMode,
    RequestStatus,
    RequestType,
    UserRole,
)
from leaveflow.database import Base, get_db
from leaveflow.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import leaveflow.calendar.models  # noqa: F401
import leaveflow.common.audit  # noqa: F401
import leaveflow.core_hr.models  # noqa: F401
import leaveflow.notifications.models  # noqa: F401
import leaveflow.requests.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT/CHAR ───────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and uuid_generate_v4() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "uuid_generate_v4", 0, lambda: str(uuid.uuid4()),
    )

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leaveflow.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_employee(
    id: str,
    *,
    name: Optional[str] = None,
    role: UserRole = UserRole.employee,
    department: Optional[str] = "Engineering",
    designation: Optional[str] = None,
    manager_id: Optional[str] = None,
    status: EmployeeStatus = EmployeeStatus.active,
) -> dict:
    return dict(
        id=id,
        name=name or f"Employee {id}",
        email=f"{id.lower()}@leaveflow.test",
        role=role,
        department=department,
        designation=designation,
        manager_id=manager_id,
        status=status,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def _make_request(
    employee_id: str,
    *,
    id: Optional[str] = None,
    type: RequestType = RequestType.leave,
    leave_mode: Optional[LeaveMode] = LeaveMode.unpaid,
    start_date: date = date(2024, 3, 4),
    end_date: Optional[date] = None,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
    half_day_session: Optional[HalfDaySession] = None,
    status: RequestStatus = RequestStatus.approved,
    department: Optional[str] = "Engineering",
    alternative_employee_id: Optional[str] = None,
    day_count: Decimal = Decimal("1"),
    requester_role: UserRole = UserRole.employee,
    approval_route: Optional[list[str]] = None,
) -> dict:
    return dict(
        id=id or f"REQ-{uuid.uuid4().hex[:12].upper()}",
        employee_id=employee_id,
        employee_name=f"Employee {employee_id}",
        department=department,
        requester_role=requester_role,
        type=type,
        leave_mode=leave_mode,
        start_date=start_date,
        end_date=end_date or start_date,
        start_time=start_time,
        end_time=end_time,
        half_day_session=half_day_session,
        reason="Seeded request",
        alternative_employee_id=alternative_employee_id,
        alternative_employee_name=(
            f"Employee {alternative_employee_id}" if alternative_employee_id else None
        ),
        day_count=day_count,
        status=status,
        approval_route=approval_route if approval_route is not None else ["manager", "hr"],
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
        approvals=[],
    )


def _make_holiday(
    name: str,
    from_date: date,
    to_date: Optional[date] = None,
    *,
    type: HolidayType = HolidayType.public,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        from_date=from_date,
        to_date=to_date or from_date,
        type=type,
        created_at=datetime.now(timezone.utc),
    )


# ── Seed helpers ────────────────────────────────────────────────────

async def seed_employees(db: AsyncSession, *rows: dict) -> list:
    from leaveflow.core_hr.models import Employee

    employees = [Employee(**row) for row in rows]
    db.add_all(employees)
    await db.flush()
    return employees


async def seed_requests(db: AsyncSession, *rows: dict) -> list:
    from leaveflow.requests.models import LeaveRequest

    requests = [LeaveRequest(**row) for row in rows]
    db.add_all(requests)
    await db.flush()
    return requests


@pytest.fixture
async def team(db) -> dict:
    """Engineering team: employee E1 (manager M1), cover E2, HR H1, admin S1.

    Also a second-department employee X1 and a manager M2 without reports.
    """
    from leaveflow.core_hr.models import Department

    db.add_all([
        Department(id=uuid.uuid4(), name="Engineering"),
        Department(id=uuid.uuid4(), name="Finance"),
    ])
    await seed_employees(
        db,
        _make_employee("M1", name="Maya Manager", role=UserRole.manager),
        _make_employee("H1", name="Hari HR", role=UserRole.hr, department="People"),
        _make_employee("S1", name="Sam Admin", role=UserRole.superadmin, department=None),
        _make_employee("E1", name="Esha Engineer", manager_id="M1"),
        _make_employee("E2", name="Eli Engineer", manager_id="M1"),
        _make_employee("E3", name="Ezra Engineer", manager_id="M1"),
        _make_employee("X1", name="Xavi Finance", department="Finance"),
        _make_employee("M2", name="Mo Manager", role=UserRole.manager, department="Finance"),
    )
    await db.commit()
    return {
        "employee": "E1",
        "alternative": "E2",
        "colleague": "E3",
        "manager": "M1",
        "hr": "H1",
        "superadmin": "S1",
        "outsider": "X1",
        "other_manager": "M2",
    }
