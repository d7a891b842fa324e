"""Patient appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import CacheManagerDep, CurrentPatient, DatabaseSession
from app.schemas.appointments import (
    AppointmentCancel,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
)
from app.services.appointment_service import AppointmentService

router = APIRouter()


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    patient: CurrentPatient,
    db: DatabaseSession,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    product_id: UUID | None = Query(None),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments of the authenticated patient with filtering.

    Args:
        patient: Authenticated patient profile
        db: Database session
        status_filter: Filter by status
        product_id: Filter by service
        from_date: Earliest appointment date
        to_date: Latest appointment date
        page: Page number
        page_size: Items per page

    Returns:
        Paginated list of appointments
    """
    filters = AppointmentFilters(
        status=status_filter,
        product_id=product_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )

    service = AppointmentService(db)
    return await service.list_appointments(patient["id"], filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    patient: CurrentPatient,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Get one of the authenticated patient's appointments."""
    service = AppointmentService(db)
    return await service.get_appointment(appointment_id, patient["id"])


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    patient: CurrentPatient,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    data: AppointmentCancel | None = None,
) -> AppointmentResponse:
    """
    Cancel an appointment owned by the authenticated patient.

    The time slot becomes bookable again straight away.
    """
    service = AppointmentService(db, cache_manager=cache_manager)
    return await service.cancel_appointment(
        appointment_id,
        patient["id"],
        reason=data.reason if data else None,
    )
