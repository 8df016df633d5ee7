"""Attendance router — daily status derived from approved requests."""


from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.attendance.schemas import (
    DailyAttendanceResponse,
    DepartmentRollupResponse,
)
from leaveflow.attendance.service import AttendanceService
from leaveflow.database import get_db

router = APIRouter(prefix="", tags=["attendance"])


# ── GET /daily ──────────────────────────────────────────────────────

@router.get("/daily", response_model=DailyAttendanceResponse)
async def daily(
    day: date = Query(..., alias="date", description="Day to report (YYYY-MM-DD)"),
    department: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Present / leave / permission for every active employee on a day."""
    return await AttendanceService.get_daily_status(db, day, department=department)


# ── GET /daily/departments ──────────────────────────────────────────

@router.get("/daily/departments", response_model=DepartmentRollupResponse)
async def daily_departments(
    day: date = Query(..., alias="date", description="Day to report (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    """Per-department attendance counts for a day."""
    return await AttendanceService.get_department_rollup(db, day)
