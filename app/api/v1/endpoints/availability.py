"""Patient-facing availability endpoints."""

from datetime import date
from uuid import UUID

import structlog
from fastapi import APIRouter, Query, status
from sqlalchemy.exc import SQLAlchemyError

from app.dependencies import CacheManagerDep, DatabaseSession
from app.schemas.availability import DayAvailabilityResponse, MonthAvailabilityResponse
from app.services.availability_service import AvailabilityService

router = APIRouter()
logger = structlog.get_logger()


@router.get(
    "/{product_id}/day",
    response_model=DayAvailabilityResponse,
    status_code=status.HTTP_200_OK,
    summary="Open time slots for a day",
)
async def get_day_availability(
    product_id: UUID,
    db: DatabaseSession,
    day: date = Query(..., alias="date", description="Clinic-local date, YYYY-MM-DD"),
) -> DayAvailabilityResponse:
    """
    Get the bookable time slots of a product on one day.

    A resolution failure returns ``success=false`` with no slots.
    """
    service = AvailabilityService(db)
    try:
        slots = await service.resolve_day_slots(product_id, day)
    except SQLAlchemyError as e:
        logger.error(
            "day_availability_failed",
            product_id=str(product_id),
            date=day.isoformat(),
            error=str(e),
        )
        return DayAvailabilityResponse(
            product_id=product_id,
            date=day,
            slots=[],
            success=False,
            error="Failed to check availability",
        )

    return DayAvailabilityResponse(product_id=product_id, date=day, slots=slots)


@router.get(
    "/{product_id}/month",
    response_model=MonthAvailabilityResponse,
    status_code=status.HTTP_200_OK,
    summary="Dates with open slots in a month",
)
async def get_month_availability(
    product_id: UUID,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=0, le=11, description="Zero-based month, 0 = January"),
) -> MonthAvailabilityResponse:
    """
    Get the dates of a month, from today on, that have at least one open slot.

    A resolution failure returns ``success=false`` with no dates.
    """
    service = AvailabilityService(db, cache_manager=cache_manager)
    try:
        dates = await service.resolve_month_dates(product_id, year, month)
    except SQLAlchemyError as e:
        logger.error(
            "month_availability_failed",
            product_id=str(product_id),
            year=year,
            month=month,
            error=str(e),
        )
        return MonthAvailabilityResponse(
            product_id=product_id,
            year=year,
            month=month,
            available_dates=[],
            success=False,
            error="Failed to check month availability",
        )

    return MonthAvailabilityResponse(
        product_id=product_id,
        year=year,
        month=month,
        available_dates=dates,
    )
