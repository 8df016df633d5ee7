"""Calendar Pydantic schemas — windows and holidays."""


import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict

from leaveflow.common.constants import HolidayType


class WindowResponse(BaseModel):
    """Resolved inclusive date window."""

    start_date: date
    end_date: date
    days: int


class HolidayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    from_date: date
    to_date: date
    type: HolidayType


class HolidayListResponse(BaseModel):
    window: WindowResponse
    data: list[HolidayResponse]
