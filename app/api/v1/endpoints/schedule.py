"""Admin schedule editing endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from app.dependencies import AdminUser, CacheManagerDep, DatabaseSession
from app.schemas.schedule import (
    DateOverrideResponse,
    DateOverrideUpsert,
    WeeklySlotResponse,
    WeeklySlotToggle,
)
from app.services.schedule_service import ScheduleService

router = APIRouter(prefix="/admin/schedule", tags=["Schedule"])


@router.get(
    "/weekly",
    response_model=list[WeeklySlotResponse],
    summary="Weekly schedule (admin only)",
)
async def list_weekly_slots(
    db: DatabaseSession,
    admin_user: AdminUser,
) -> list[WeeklySlotResponse]:
    """List every weekly slot, active or not."""
    service = ScheduleService(db)
    return [WeeklySlotResponse.model_validate(s) for s in await service.list_weekly_slots()]


@router.put(
    "/weekly",
    response_model=WeeklySlotResponse,
    summary="Toggle a weekly slot (admin only)",
)
async def toggle_weekly_slot(
    data: WeeklySlotToggle,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    admin_user: AdminUser,
) -> WeeklySlotResponse:
    """Enable or disable one (day of week, time) slot, creating it if needed."""
    service = ScheduleService(db, cache_manager=cache_manager)
    return WeeklySlotResponse.model_validate(await service.toggle_weekly_slot(data))


@router.get(
    "/overrides",
    response_model=list[DateOverrideResponse],
    summary="Date overrides (admin only)",
)
async def list_date_overrides(
    db: DatabaseSession,
    admin_user: AdminUser,
    start: date | None = Query(None),
    end: date | None = Query(None),
) -> list[DateOverrideResponse]:
    """List overrides, optionally within a date range."""
    service = ScheduleService(db)
    overrides = await service.list_date_overrides(start, end)
    return [DateOverrideResponse.model_validate(o) for o in overrides]


@router.put(
    "/overrides",
    response_model=DateOverrideResponse,
    summary="Create or replace a date override (admin only)",
)
async def upsert_date_override(
    data: DateOverrideUpsert,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    admin_user: AdminUser,
) -> DateOverrideResponse:
    """
    Close a date or give it custom hours.

    - **is_closed**: no slots for any service on that date
    - **custom_time_slots**: ordered HH:MM labels replacing the weekly schedule
    - neither: a note only, the weekly schedule applies
    """
    service = ScheduleService(db, cache_manager=cache_manager)
    return DateOverrideResponse.model_validate(await service.upsert_date_override(data))


@router.delete(
    "/overrides/{specific_date}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a date override (admin only)",
)
async def delete_date_override(
    specific_date: date,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    admin_user: AdminUser,
) -> None:
    """Remove the override so the weekly schedule applies again."""
    service = ScheduleService(db, cache_manager=cache_manager)
    await service.delete_date_override(specific_date)
