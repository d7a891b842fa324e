"""Appointment service for lifecycle transitions and patient queries."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
)
from app.core.redis_client import CacheManager
from app.models.appointments import appointments, booked_slots
from app.schemas.appointments import (
    AdminNoteUpdate,
    AppointmentComplete,
    AppointmentConfirm,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
)
from app.services.availability_service import AvailabilityService
from app.services.quota_service import QuotaService

logger = structlog.get_logger()

OPEN_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager

    async def _get_row(self, appointment_id: UUID) -> dict[str, Any]:
        result = await self.db.execute(select(appointments).where(appointments.c.id == appointment_id))
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Appointment not found")
        return dict(row)

    async def get_appointment(
        self,
        appointment_id: UUID,
        patient_id: UUID,
    ) -> AppointmentResponse:
        """
        Get appointment by ID.

        Args:
            appointment_id: Appointment ID
            patient_id: ID of the requesting patient

        Returns:
            Appointment details

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the patient does not own it
        """
        row = await self._get_row(appointment_id)

        if row["patient_id"] != patient_id:
            raise ForbiddenException("Access denied to this appointment")

        return AppointmentResponse.model_validate(row)

    async def list_appointments(
        self,
        patient_id: UUID,
        filters: AppointmentFilters,
    ) -> AppointmentListResponse:
        """
        List a patient's appointments with filtering and pagination.

        Args:
            patient_id: ID of the requesting patient
            filters: Filter and pagination parameters; ``patient_id`` is ignored

        Returns:
            Paginated list of appointments, newest date first
        """
        return await self._list(filters, [appointments.c.patient_id == patient_id])

    async def list_all_appointments(self, filters: AppointmentFilters) -> AppointmentListResponse:
        """
        List appointments across all patients for clinic staff.

        With ``filters.patient_id`` set this is the patient's full history.
        """
        conditions = []
        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)
        return await self._list(filters, conditions)

    async def _list(self, filters: AppointmentFilters, conditions: list) -> AppointmentListResponse:
        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.product_id:
            conditions.append(appointments.c.product_id == filters.product_id)

        if filters.from_date:
            conditions.append(appointments.c.appointment_date >= filters.from_date)

        if filters.to_date:
            conditions.append(appointments.c.appointment_date <= filters.to_date)

        count_stmt = select(func.count()).select_from(appointments).where(*conditions)
        total_result = await self.db.execute(count_stmt)
        total = total_result.scalar() or 0

        offset = (filters.page - 1) * filters.page_size

        stmt = (
            select(appointments)
            .where(*conditions)
            .order_by(appointments.c.appointment_date.desc(), appointments.c.time_slot.desc())
            .limit(filters.page_size)
            .offset(offset)
        )

        result = await self.db.execute(stmt)
        items = [AppointmentResponse.model_validate(dict(row)) for row in result.mappings()]

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=items,
        )

    async def update_admin_notes(
        self,
        appointment_id: UUID,
        data: AdminNoteUpdate,
    ) -> AppointmentResponse:
        """
        Replace the staff note on an appointment, whatever its status.

        Raises:
            NotFoundException: If appointment not found
        """
        result = await self.db.execute(
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(admin_notes=data.admin_notes or None, updated_at=datetime.now(UTC))
            .returning(appointments)
        )
        updated = result.mappings().first()
        if updated is None:
            await self.db.rollback()
            raise NotFoundException("Appointment not found")
        updated = dict(updated)
        await self.db.commit()

        logger.info("appointment_note_updated", appointment_id=str(appointment_id))
        return AppointmentResponse.model_validate(updated)

    async def cancel_appointment(
        self,
        appointment_id: UUID,
        actor_patient_id: UUID,
        reason: str | None = None,
    ) -> AppointmentResponse:
        """
        Cancel an appointment on behalf of the patient who owns it.

        Args:
            appointment_id: Appointment ID
            actor_patient_id: Patient requesting the cancellation
            reason: Optional cancellation reason

        Returns:
            Cancelled appointment

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the actor does not own the appointment
            InvalidStateException: If already cancelled or completed
        """
        row = await self._get_row(appointment_id)

        if row["patient_id"] != actor_patient_id:
            raise ForbiddenException("Access denied to this appointment")

        return await self._cancel(row, reason or "Cancelled by patient")

    async def admin_cancel_appointment(
        self,
        appointment_id: UUID,
        reason: str | None = None,
    ) -> AppointmentResponse:
        """Cancel any appointment as clinic staff."""
        row = await self._get_row(appointment_id)
        return await self._cancel(row, reason or "Cancelled by clinic")

    async def _cancel(self, row: dict[str, Any], reason: str) -> AppointmentResponse:
        """Cancel, free the slot and release the quota in one transaction."""
        if row["status"] == AppointmentStatus.CANCELLED.value:
            raise InvalidStateException("Appointment is already cancelled")
        if row["status"] == AppointmentStatus.COMPLETED.value:
            raise InvalidStateException("Cannot cancel a completed appointment")

        now = datetime.now(UTC)
        try:
            result = await self.db.execute(
                update(appointments)
                .where(
                    and_(
                        appointments.c.id == row["id"],
                        appointments.c.status.in_(OPEN_STATUSES),
                    )
                )
                .values(
                    status=AppointmentStatus.CANCELLED.value,
                    cancelled_at=now,
                    cancellation_reason=reason,
                    updated_at=now,
                )
                .returning(appointments)
            )
            updated = result.mappings().first()
            if updated is None:
                # Status changed since it was read
                raise InvalidStateException("Appointment can no longer be cancelled")
            updated = dict(updated)

            await self.db.execute(
                delete(booked_slots).where(booked_slots.c.appointment_id == row["id"])
            )
            await QuotaService(self.db).release_booked(row["product_id"], row["appointment_date"])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "appointment_cancelled",
            appointment_id=str(row["id"]),
            appointment_date=row["appointment_date"].isoformat(),
            time_slot=row["time_slot"],
        )
        AvailabilityService.invalidate(self.cache)

        return AppointmentResponse.model_validate(updated)

    async def confirm_appointment(
        self,
        appointment_id: UUID,
        data: AppointmentConfirm,
    ) -> AppointmentResponse:
        """
        Confirm a pending appointment.

        Stores the calendar event and meeting link produced by the calendar
        collaborator when they are supplied.

        Raises:
            NotFoundException: If appointment not found
            InvalidStateException: If the appointment is not pending
        """
        values: dict[str, Any] = {"status": AppointmentStatus.CONFIRMED.value}
        if data.google_calendar_event_id:
            values["google_calendar_event_id"] = data.google_calendar_event_id
        if data.google_meet_link:
            values["google_meet_link"] = data.google_meet_link

        return await self._transition(
            appointment_id,
            allowed=(AppointmentStatus.PENDING.value,),
            values=values,
            event="appointment_confirmed",
        )

    async def complete_appointment(
        self,
        appointment_id: UUID,
        data: AppointmentComplete,
    ) -> AppointmentResponse:
        """
        Mark an appointment as completed with its treatment report.

        The slot stays occupied and the quota stays consumed.

        Raises:
            NotFoundException: If appointment not found
            InvalidStateException: If cancelled or already completed
        """
        return await self._transition(
            appointment_id,
            allowed=OPEN_STATUSES,
            values={
                "status": AppointmentStatus.COMPLETED.value,
                "treatment_report": data.treatment_report,
                "completed_at": datetime.now(UTC),
            },
            event="appointment_completed",
        )

    async def _transition(
        self,
        appointment_id: UUID,
        allowed: tuple[str, ...],
        values: dict[str, Any],
        event: str,
    ) -> AppointmentResponse:
        row = await self._get_row(appointment_id)
        if row["status"] not in allowed:
            raise InvalidStateException(
                f"Cannot change appointment from {row['status']} to {values['status']}"
            )

        values["updated_at"] = datetime.now(UTC)
        result = await self.db.execute(
            update(appointments)
            .where(and_(appointments.c.id == appointment_id, appointments.c.status.in_(allowed)))
            .values(**values)
            .returning(appointments)
        )
        updated = result.mappings().first()
        if updated is None:
            await self.db.rollback()
            raise InvalidStateException("Appointment status changed, please retry")
        updated = dict(updated)
        await self.db.commit()

        logger.info(event, appointment_id=str(appointment_id))
        return AppointmentResponse.model_validate(updated)
