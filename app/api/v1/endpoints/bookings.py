"""Booking endpoint."""

from fastapi import APIRouter, status

from app.dependencies import CacheManagerDep, CurrentPatient, DatabaseSession
from app.schemas.appointments import BookingConfirmation, BookingCreate
from app.services.booking_service import BookingService

router = APIRouter()


@router.post(
    "/",
    response_model=BookingConfirmation,
    status_code=status.HTTP_201_CREATED,
    summary="Book a time slot",
)
async def create_booking(
    data: BookingCreate,
    patient: CurrentPatient,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> BookingConfirmation:
    """
    Commit a booking for the authenticated patient.

    The payment must already be captured; its amount and gateway reference
    are recorded with the appointment. A 409 response means the slot or the
    day's quota was taken meanwhile: re-query availability and retry.
    """
    service = BookingService(db, cache_manager=cache_manager)
    return await service.commit_booking(patient["id"], data)
