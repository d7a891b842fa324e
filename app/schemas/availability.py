"""Availability query responses."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel


class DayAvailabilityResponse(BaseModel):
    """Open time slots for one day.

    ``success`` is false when resolution failed; ``slots`` is then empty and
    must not be read as "fully booked".
    """

    product_id: UUID
    date: date
    slots: list[str]
    success: bool = True
    error: str | None = None


class MonthAvailabilityResponse(BaseModel):
    """Dates with at least one open slot. ``month`` is zero-based."""

    product_id: UUID
    year: int
    month: int
    available_dates: list[date]
    success: bool = True
    error: str | None = None
