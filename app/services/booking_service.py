"""Booking transaction: the only write path that consumes capacity."""

from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

import structlog
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clinic_time import clinic_today
from app.core.exceptions import (
    ConflictException,
    NotFoundException,
    PreconditionFailedException,
    QuotaExhaustedException,
    SlotUnavailableException,
    ValidationException,
)
from app.core.redis_client import CacheManager
from app.models.appointments import appointments, booked_slots
from app.models.patients import patients
from app.models.payments import payments
from app.models.products import products
from app.schemas.appointments import (
    AppointmentStatus,
    BookingConfirmation,
    BookingCreate,
    ConsultationType,
    PaymentStatus,
    PaymentType,
)
from app.services.availability_rules import candidate_slots, is_quota_exhausted
from app.services.availability_service import AvailabilityService
from app.services.quota_service import QuotaService

logger = structlog.get_logger()

CENTS = Decimal("0.01")


def compute_amounts(
    price: Decimal,
    deposit_percentage: int,
    paid: Decimal,
    payment_type: PaymentType,
) -> tuple[Decimal, Decimal, Decimal, PaymentStatus]:
    """
    Work out total, paid and balance amounts and the payment status.

    Args:
        price: Product price
        deposit_percentage: Share of the price required as deposit (0-100)
        paid: Amount captured by the payment gateway
        payment_type: Full payment or deposit

    Returns:
        Tuple of (total, paid, balance, payment status)

    Raises:
        ValidationException: If the paid amount does not fit the payment type
    """
    total = Decimal(price).quantize(CENTS, rounding=ROUND_HALF_UP)
    paid = Decimal(paid).quantize(CENTS, rounding=ROUND_HALF_UP)

    if paid < 0:
        raise ValidationException("Payment amount cannot be negative")
    if paid > total:
        raise ValidationException("Payment amount exceeds the service price")

    if payment_type == PaymentType.FULL and paid != total:
        raise ValidationException("Full payment must cover the service price")

    if payment_type == PaymentType.DEPOSIT:
        minimum = (total * deposit_percentage / Decimal(100)).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )
        if paid < minimum:
            raise ValidationException(f"Deposit must be at least {minimum} MYR")

    balance = total - paid
    # Free services count as fully paid
    if total == 0 or balance == 0:
        status = PaymentStatus.FULL_PAID
    else:
        status = PaymentStatus.DEPOSIT_PAID
    return total, paid, balance, status


class BookingService:
    """Service committing bookings.

    ``commit_booking`` re-resolves the chosen day inside its own transaction
    and then writes the appointment, its slot occupancy, the payment and the
    quota increment before a single commit. Slot reads done earlier by the
    client are advisory only.

    Isolation: READ COMMITTED is enough. Two writers cannot both insert the
    same ``booked_slots`` primary key, and the quota increment is a single
    guarded upsert, so the loser of any race gets a taken slot or a full
    quota and the whole transaction is rolled back.
    """

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager

    async def commit_booking(
        self,
        patient_id: UUID,
        data: BookingCreate,
        today: date | None = None,
    ) -> BookingConfirmation:
        """
        Book a slot for a patient after payment capture.

        Args:
            patient_id: Patient profile ID
            data: Booking request
            today: Clinic-local today, defaults to the current day

        Returns:
            Booking confirmation

        Raises:
            NotFoundException: If the product does not exist
            PreconditionFailedException: If the patient profile does not exist
            ValidationException: If the slot is not offered or amounts are wrong
            SlotUnavailableException: If the slot was taken
            QuotaExhaustedException: If the day's quota is full
            ConflictException: If another constraint rejected a concurrent write
        """
        try:
            confirmation = await self._commit(patient_id, data, today or clinic_today())
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                "booking_write_conflict",
                product_id=str(data.product_id),
                appointment_date=data.appointment_date.isoformat(),
                time_slot=data.time_slot,
                error=str(e.orig),
            )
            raise ConflictException("Booking collided with a concurrent write") from e
        except SlotUnavailableException:
            await self.db.rollback()
            logger.warning(
                "booking_conflict",
                product_id=str(data.product_id),
                appointment_date=data.appointment_date.isoformat(),
                time_slot=data.time_slot,
            )
            raise
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "booking_committed",
            appointment_id=str(confirmation.appointment_id),
            product_id=str(data.product_id),
            appointment_date=data.appointment_date.isoformat(),
            time_slot=data.time_slot,
            payment_status=confirmation.payment_status.value,
        )

        AvailabilityService.invalidate(self.cache)

        if data.consultation_type == ConsultationType.HOME_VISIT and data.home_address:
            await self._sync_home_address(patient_id, data)

        return confirmation

    async def _commit(self, patient_id: UUID, data: BookingCreate, today: date) -> BookingConfirmation:
        result = await self.db.execute(select(products).where(products.c.id == data.product_id))
        product = result.mappings().first()
        if product is None:
            raise NotFoundException("Product not found")

        result = await self.db.execute(select(patients.c.id).where(patients.c.id == patient_id))
        if result.first() is None:
            raise PreconditionFailedException("Patient profile not found")

        day = data.appointment_date
        if day < today:
            raise ValidationException("Cannot book a date in the past")

        snapshot = await AvailabilityService(self.db).load_snapshot(data.product_id, day, day)
        if not snapshot.is_bookable:
            raise ValidationException("This service is not accepting bookings")
        if data.time_slot not in candidate_slots(snapshot, day):
            raise ValidationException(
                f"Time slot {data.time_slot} is not offered on {day.isoformat()}"
            )
        if is_quota_exhausted(snapshot, day):
            raise QuotaExhaustedException()
        if data.time_slot in snapshot.booked_by_date.get(day, set()):
            raise SlotUnavailableException()

        total, paid, balance, payment_status = compute_amounts(
            product["price_myr"],
            product["deposit_percentage"],
            data.payment_amount,
            data.payment_type,
        )

        result = await self.db.execute(
            insert(appointments)
            .values(
                patient_id=patient_id,
                product_id=data.product_id,
                appointment_date=day,
                time_slot=data.time_slot,
                status=AppointmentStatus.PENDING.value,
                payment_status=payment_status.value,
                total_amount_myr=total,
                paid_amount_myr=paid,
                balance_amount_myr=balance,
                consultation_type=(
                    data.consultation_type.value if data.consultation_type else None
                ),
                consultation_phone=data.consultation_phone,
                consultation_email=data.consultation_email,
                consultation_address=data.consultation_address,
                health_condition=data.health_condition,
                on_medication=data.on_medication,
                medication_details=data.medication_details,
                admin_notes=data.additional_notes,
            )
            .returning(appointments.c.id)
        )
        appointment_id = result.scalar_one()

        # The (date, time_slot) key is the final arbiter between racing bookings
        try:
            await self.db.execute(
                insert(booked_slots).values(
                    appointment_date=day,
                    time_slot=data.time_slot,
                    appointment_id=appointment_id,
                    product_id=data.product_id,
                )
            )
        except IntegrityError as e:
            raise SlotUnavailableException() from e

        await self.db.execute(
            insert(payments).values(
                appointment_id=appointment_id,
                amount_myr=paid,
                payment_type=data.payment_type.value,
                gateway_reference=data.gateway_reference,
            )
        )

        await QuotaService(self.db).increment_booked(
            data.product_id, day, product["quota_per_day"]
        )

        await self.db.commit()

        return BookingConfirmation(
            appointment_id=appointment_id,
            status=AppointmentStatus.PENDING,
            payment_status=payment_status,
            appointment_date=day,
            time_slot=data.time_slot,
            total_amount_myr=total,
            paid_amount_myr=paid,
            balance_amount_myr=balance,
        )

    async def _sync_home_address(self, patient_id: UUID, data: BookingCreate) -> None:
        """Copy the home-visit address onto the patient profile, best-effort."""
        try:
            await self.db.execute(
                update(patients)
                .where(patients.c.id == patient_id)
                .values(
                    home_address=data.home_address,
                    home_city=data.home_city or None,
                    home_state=data.home_state or None,
                    home_postcode=data.home_postcode or None,
                    updated_at=datetime.now(UTC),
                )
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning(
                "home_address_sync_failed",
                patient_id=str(patient_id),
                error=str(e),
            )
