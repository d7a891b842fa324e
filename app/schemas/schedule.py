"""Schedule schemas for the admin editing boundary."""

import re
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

TIME_SLOT_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_time_slot(value: str) -> str:
    """Ensure a label is a 24-hour HH:MM time."""
    if not TIME_SLOT_PATTERN.match(value):
        raise ValueError(f"Invalid time slot '{value}', expected HH:MM (24-hour)")
    return value


class WeeklySlotToggle(BaseModel):
    """Enable or disable one recurring slot."""

    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday")
    time_slot: str
    is_active: bool

    @field_validator("time_slot")
    @classmethod
    def check_time_slot(cls, v: str) -> str:
        """Validate the label format."""
        return validate_time_slot(v)


class WeeklySlotResponse(BaseModel):
    """Schema for a recurring slot row."""

    id: UUID
    day_of_week: int
    time_slot: str
    is_active: bool

    model_config = {"from_attributes": True}


class DateOverrideUpsert(BaseModel):
    """Create or replace the override for a date."""

    specific_date: date
    is_closed: bool = False
    reason: str | None = Field(None, max_length=500)
    custom_time_slots: list[str] | None = None

    @field_validator("custom_time_slots")
    @classmethod
    def check_custom_time_slots(cls, v: list[str] | None) -> list[str] | None:
        """Labels must be HH:MM, unique, and the list non-empty. Order is kept."""
        if v is None:
            return v
        if not v:
            raise ValueError("custom_time_slots must not be empty; omit it to use the weekly schedule")
        seen: set[str] = set()
        for label in v:
            validate_time_slot(label)
            if label in seen:
                raise ValueError(f"Duplicate time slot '{label}'")
            seen.add(label)
        return v


class DateOverrideResponse(BaseModel):
    """Schema for a date override row."""

    id: UUID
    specific_date: date
    is_closed: bool
    reason: str | None = None
    custom_time_slots: list[str] | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DailyQuotaResponse(BaseModel):
    """Ledger row for one product and day, alongside the live recount."""

    product_id: UUID
    booking_date: date
    booked_count: int
    max_quota: int
    live_count: int
