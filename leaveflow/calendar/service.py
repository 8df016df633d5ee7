"""Holiday lookups bounded by a resolved date window."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.calendar.models import Holiday
from leaveflow.calendar.windows import DateWindow


class HolidayService:
    """Read-only holiday calendar."""

    @staticmethod
    async def list_holidays(
        db: AsyncSession,
        window: DateWindow,
    ) -> list[Holiday]:
        """Holidays overlapping *window*, earliest first."""
        result = await db.execute(
            select(Holiday)
            .where(
                Holiday.from_date <= window.end_date,
                Holiday.to_date >= window.start_date,
            )
            .order_by(Holiday.from_date, Holiday.name)
        )
        return list(result.scalars().all())
