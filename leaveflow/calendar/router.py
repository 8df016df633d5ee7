"""Calendar router — window resolution and holidays."""


from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.calendar.schemas import (
    HolidayListResponse,
    HolidayResponse,
    WindowResponse,
)
from leaveflow.calendar.service import HolidayService
from leaveflow.calendar.windows import DateWindow, parse_selector, resolve_window
from leaveflow.database import get_db

router = APIRouter(prefix="", tags=["calendar"])


def window_from_query(
    day: Optional[date] = Query(None, description="Single day (YYYY-MM-DD)"),
    week: Optional[str] = Query(None, description="ISO week (YYYY-Www)"),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
) -> DateWindow:
    """Shared dependency: resolve day / week / month query params to a window."""
    return resolve_window(parse_selector(day=day, week=week, year=year, month=month))


def _window_out(window: DateWindow) -> WindowResponse:
    return WindowResponse(
        start_date=window.start_date,
        end_date=window.end_date,
        days=window.length,
    )


# ── GET /window ─────────────────────────────────────────────────────

@router.get("/window", response_model=WindowResponse)
async def get_window(window: DateWindow = Depends(window_from_query)):
    """Resolve a day, ISO week, or month to its date range."""
    return _window_out(window)


# ── GET /holidays ───────────────────────────────────────────────────

@router.get("/holidays", response_model=HolidayListResponse)
async def list_holidays(
    window: DateWindow = Depends(window_from_query),
    db: AsyncSession = Depends(get_db),
):
    """Holidays overlapping the selected window."""
    holidays = await HolidayService.list_holidays(db, window)
    return HolidayListResponse(
        window=_window_out(window),
        data=[HolidayResponse.model_validate(h) for h in holidays],
    )
