"""Reports router — window reports over approved requests."""


from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.calendar.router import window_from_query
from leaveflow.calendar.windows import DateWindow
from leaveflow.common.constants import RequestType
from leaveflow.database import get_db
from leaveflow.reports.schemas import WindowReportResponse
from leaveflow.reports.service import ReportService

router = APIRouter(prefix="", tags=["reports"])


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=WindowReportResponse)
async def requests_report(
    type: RequestType = Query(RequestType.leave),
    window: DateWindow = Depends(window_from_query),
    db: AsyncSession = Depends(get_db),
):
    """Approved requests of *type* overlapping a day, ISO week, or month."""
    return await ReportService.window_report(db, window, type)
