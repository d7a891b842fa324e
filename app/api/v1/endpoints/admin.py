"""Admin-only endpoints for appointment management and the quota ledger."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import AdminUser, CacheManagerDep, DatabaseSession
from app.schemas.appointments import (
    AdminNoteUpdate,
    AppointmentCancel,
    AppointmentComplete,
    AppointmentConfirm,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
)
from app.schemas.schedule import DailyQuotaResponse
from app.services.appointment_service import AppointmentService
from app.services.quota_service import QuotaService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/appointments",
    response_model=AppointmentListResponse,
    summary="List all appointments (admin only)",
)
async def list_appointments(
    db: DatabaseSession,
    admin_user: AdminUser,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    patient_id: UUID | None = Query(None),
    product_id: UUID | None = Query(None),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments across patients for the staff calendar.

    Filter by ``patient_id`` for a patient's history, or by a date range for
    a day or week view.
    """
    filters = AppointmentFilters(
        status=status_filter,
        patient_id=patient_id,
        product_id=product_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    return await AppointmentService(db).list_all_appointments(filters)


@router.patch(
    "/appointments/{appointment_id}/notes",
    response_model=AppointmentResponse,
    summary="Set the staff note (admin only)",
)
async def update_admin_notes(
    appointment_id: UUID,
    data: AdminNoteUpdate,
    db: DatabaseSession,
    admin_user: AdminUser,
) -> AppointmentResponse:
    """Replace the staff note; send an empty string to clear it."""
    return await AppointmentService(db).update_admin_notes(appointment_id, data)


@router.post(
    "/appointments/{appointment_id}/confirm",
    response_model=AppointmentResponse,
    summary="Confirm appointment (admin only)",
)
async def confirm_appointment(
    appointment_id: UUID,
    db: DatabaseSession,
    admin_user: AdminUser,
    data: AppointmentConfirm | None = None,
) -> AppointmentResponse:
    """
    Confirm a pending appointment.

    Pass the calendar event ID and meeting link if the calendar service
    produced them.
    """
    service = AppointmentService(db)
    return await service.confirm_appointment(appointment_id, data or AppointmentConfirm())


@router.post(
    "/appointments/{appointment_id}/complete",
    response_model=AppointmentResponse,
    summary="Complete appointment (admin only)",
)
async def complete_appointment(
    appointment_id: UUID,
    data: AppointmentComplete,
    db: DatabaseSession,
    admin_user: AdminUser,
) -> AppointmentResponse:
    """Mark an appointment as completed with its treatment report."""
    service = AppointmentService(db)
    return await service.complete_appointment(appointment_id, data)


@router.post(
    "/appointments/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    summary="Cancel appointment (admin only)",
)
async def cancel_appointment(
    appointment_id: UUID,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    admin_user: AdminUser,
    data: AppointmentCancel | None = None,
) -> AppointmentResponse:
    """Cancel any appointment and free its slot."""
    service = AppointmentService(db, cache_manager=cache_manager)
    return await service.admin_cancel_appointment(
        appointment_id, reason=data.reason if data else None
    )


@router.get(
    "/quotas/{product_id}/{booking_date}",
    response_model=DailyQuotaResponse,
    status_code=status.HTTP_200_OK,
    summary="Daily quota ledger (admin only)",
)
async def get_daily_quota(
    product_id: UUID,
    booking_date: date,
    db: DatabaseSession,
    admin_user: AdminUser,
) -> DailyQuotaResponse:
    """Get the ledger row for a service and day with the live recount."""
    service = QuotaService(db)
    return await service.get_daily_quota(product_id, booking_date)


@router.post(
    "/quotas/{product_id}/{booking_date}/reconcile",
    response_model=DailyQuotaResponse,
    status_code=status.HTTP_200_OK,
    summary="Rebuild a ledger row from live bookings (admin only)",
)
async def reconcile_daily_quota(
    product_id: UUID,
    booking_date: date,
    db: DatabaseSession,
    admin_user: AdminUser,
) -> DailyQuotaResponse:
    """Set the ledger count to the number of live appointments."""
    service = QuotaService(db)
    return await service.reconcile_daily_quota(product_id, booking_date)
