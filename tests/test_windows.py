"""Time window resolution — days, ISO weeks, months, and the calendar API."""

from __future__ import annotations

from datetime import date

import pytest
from httpx import AsyncClient

from leaveflow.calendar.models import Holiday
from leaveflow.calendar.windows import (
    DateWindow,
    DaySelector,
    MonthSelector,
    WeekSelector,
    parse_selector,
    resolve_window,
    week_start,
    weeks_in_year,
)
from leaveflow.common.exceptions import InvalidSelector
from tests.conftest import _make_holiday


# ═════════════════════════════════════════════════════════════════════
# 1. resolve_window — pure logic
# ═════════════════════════════════════════════════════════════════════


class TestResolveWindow:

    def test_day_is_single_day_window(self):
        window = resolve_window(DaySelector(date(2024, 3, 4)))
        assert window == DateWindow(date(2024, 3, 4), date(2024, 3, 4))
        assert window.length == 1

    def test_week_starting_on_jan_first(self):
        # 2024-01-01 is a Monday
        window = resolve_window(WeekSelector("2024-W01"))
        assert window.start_date == date(2024, 1, 1)
        assert window.end_date == date(2024, 1, 7)

    def test_week_one_starts_in_previous_year(self):
        # 2026-01-01 is a Thursday, so week 1 opens on Monday 2025-12-29
        window = resolve_window(WeekSelector("2026-W01"))
        assert window.start_date == date(2025, 12, 29)
        assert window.end_date == date(2026, 1, 4)

    def test_week_one_starts_after_jan_first(self):
        # 2021-01-01 is a Friday, so week 1 opens on Monday 2021-01-04
        assert week_start(2021, 1) == date(2021, 1, 4)
        # 2023-01-01 is a Sunday
        assert week_start(2023, 1) == date(2023, 1, 2)

    def test_week_53_in_long_year(self):
        assert weeks_in_year(2020) == 53
        window = resolve_window(WeekSelector("2020-W53"))
        assert window.start_date == date(2020, 12, 28)
        assert window.end_date == date(2021, 1, 3)

    def test_week_53_rejected_in_short_year(self):
        assert weeks_in_year(2021) == 52
        with pytest.raises(InvalidSelector):
            resolve_window(WeekSelector("2021-W53"))

    def test_last_week_of_year_9999_rejected(self):
        last = weeks_in_year(9999)
        with pytest.raises(InvalidSelector):
            resolve_window(WeekSelector(f"9999-W{last:02d}"))

    def test_week_windows_always_monday_to_sunday(self):
        for week in (1, 10, 26, 52):
            window = resolve_window(WeekSelector(f"2025-W{week:02d}"))
            assert window.start_date.weekday() == 0
            assert window.end_date.weekday() == 6
            assert window.length == 7
            # Matches the standard library's ISO calendar
            assert window.start_date.isocalendar()[:2] == (2025, week)

    @pytest.mark.parametrize("value", ["2024-53", "W01-2024", "2024-W", "", "2024-W00"])
    def test_malformed_week_rejected(self, value):
        with pytest.raises(InvalidSelector):
            resolve_window(WeekSelector(value))

    def test_month_leap_february(self):
        window = resolve_window(MonthSelector(2024, 2))
        assert window == DateWindow(date(2024, 2, 1), date(2024, 2, 29))
        assert window.length == 29

    def test_month_common_february(self):
        window = resolve_window(MonthSelector(2023, 2))
        assert window.end_date == date(2023, 2, 28)

    def test_month_december(self):
        window = resolve_window(MonthSelector(2024, 12))
        assert window == DateWindow(date(2024, 12, 1), date(2024, 12, 31))

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_month_out_of_range(self, month):
        with pytest.raises(InvalidSelector):
            resolve_window(MonthSelector(2024, month))


class TestDateWindow:

    def test_contains_is_inclusive(self):
        window = DateWindow(date(2024, 3, 1), date(2024, 3, 31))
        assert window.contains(date(2024, 3, 1))
        assert window.contains(date(2024, 3, 31))
        assert not window.contains(date(2024, 4, 1))

    def test_overlaps_on_shared_boundary(self):
        window = DateWindow(date(2024, 3, 1), date(2024, 3, 31))
        assert window.overlaps(date(2024, 2, 20), date(2024, 3, 1))
        assert not window.overlaps(date(2024, 2, 20), date(2024, 2, 29))

    def test_days_iterates_every_date(self):
        window = resolve_window(WeekSelector("2024-W01"))
        days = list(window.days())
        assert len(days) == 7
        assert days[0] == date(2024, 1, 1)
        assert days[-1] == date(2024, 1, 7)


class TestParseSelector:

    def test_day(self):
        assert parse_selector(day=date(2024, 3, 4)) == DaySelector(date(2024, 3, 4))

    def test_week(self):
        assert parse_selector(week="2024-W10") == WeekSelector("2024-W10")

    def test_month(self):
        assert parse_selector(year=2024, month=3) == MonthSelector(2024, 3)

    def test_nothing_given(self):
        with pytest.raises(InvalidSelector):
            parse_selector()

    def test_two_shapes_given(self):
        with pytest.raises(InvalidSelector):
            parse_selector(day=date(2024, 3, 4), week="2024-W10")

    def test_month_without_year(self):
        with pytest.raises(InvalidSelector):
            parse_selector(month=3)


# ═════════════════════════════════════════════════════════════════════
# 2. Calendar API
# ═════════════════════════════════════════════════════════════════════


class TestCalendarAPI:

    async def test_window_endpoint_resolves_week(self, client: AsyncClient):
        resp = await client.get("/api/v1/calendar/window", params={"week": "2024-W01"})
        assert resp.status_code == 200
        assert resp.json() == {
            "start_date": "2024-01-01",
            "end_date": "2024-01-07",
            "days": 7,
        }

    async def test_window_endpoint_resolves_month(self, client: AsyncClient):
        resp = await client.get(
            "/api/v1/calendar/window", params={"year": 2024, "month": 2},
        )
        assert resp.status_code == 200
        assert resp.json()["days"] == 29

    async def test_invalid_selector_is_problem_detail(self, client: AsyncClient):
        resp = await client.get("/api/v1/calendar/window", params={"week": "2021-W53"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["type"].endswith("/invalid-selector")
        assert body["status"] == 422
        assert "2021" in body["detail"]

    async def test_missing_selector_rejected(self, client: AsyncClient):
        resp = await client.get("/api/v1/calendar/window")
        assert resp.status_code == 422

    async def test_holidays_in_window(self, client: AsyncClient, db):
        db.add_all([
            Holiday(**_make_holiday("Holi", date(2024, 3, 25))),
            Holiday(**_make_holiday("Spring Break", date(2024, 2, 28), date(2024, 3, 1))),
            Holiday(**_make_holiday("Labour Day", date(2024, 5, 1))),
        ])
        await db.commit()

        resp = await client.get(
            "/api/v1/calendar/holidays", params={"year": 2024, "month": 3},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["window"]["start_date"] == "2024-03-01"
        assert [h["name"] for h in body["data"]] == ["Spring Break", "Holi"]
