"""Tests for the booking transaction."""

import asyncio
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ConflictException,
    NotFoundException,
    PreconditionFailedException,
    QuotaExhaustedException,
    SlotUnavailableException,
    ValidationException,
)
from app.models.appointments import appointments, booked_slots
from app.models.daily_quotas import daily_quotas
from app.models.patients import patients
from app.models.payments import payments
from app.schemas.appointments import (
    AppointmentStatus,
    ConsultationType,
    PaymentStatus,
    PaymentType,
)
from app.schemas.schedule import DateOverrideUpsert
from app.services.availability_service import AvailabilityService
from app.services.booking_service import BookingService, compute_amounts
from app.services.schedule_service import ScheduleService


def test_compute_amounts_full_payment():
    """A full payment leaves no balance."""
    total, paid, balance, status = compute_amounts(
        Decimal("200.00"), 50, Decimal("200"), PaymentType.FULL
    )
    assert (total, paid, balance) == (Decimal("200.00"), Decimal("200.00"), Decimal("0.00"))
    assert status == PaymentStatus.FULL_PAID


def test_compute_amounts_deposit():
    """A deposit leaves the rest as balance."""
    total, paid, balance, status = compute_amounts(
        Decimal("199.99"), 30, Decimal("60.00"), PaymentType.DEPOSIT
    )
    assert balance == Decimal("139.99")
    assert status == PaymentStatus.DEPOSIT_PAID


def test_compute_amounts_free_service():
    """A free service is fully paid."""
    *_, status = compute_amounts(Decimal("0"), 0, Decimal("0"), PaymentType.FULL)
    assert status == PaymentStatus.FULL_PAID


@pytest.mark.parametrize(
    "paid,payment_type",
    [
        (Decimal("99.99"), PaymentType.DEPOSIT),
        (Decimal("150.00"), PaymentType.FULL),
        (Decimal("250.00"), PaymentType.DEPOSIT),
    ],
)
def test_compute_amounts_rejects_wrong_amount(paid: Decimal, payment_type: PaymentType):
    """Short deposits, short full payments and overpayments are rejected."""
    with pytest.raises(ValidationException):
        compute_amounts(Decimal("200.00"), 50, paid, payment_type)


@pytest.mark.asyncio
async def test_commit_booking_writes_everything(
    db_session: AsyncSession,
    product: dict,
    weekly_schedule: list[str],
    test_user: dict,
    next_monday: date,
    booking_data,
):
    """Appointment, occupancy, payment and ledger are written together."""
    patient_id = test_user["patient"]["id"]
    data = booking_data(
        product,
        next_monday,
        "10:00",
        payment_amount=Decimal("100.00"),
        payment_type=PaymentType.DEPOSIT,
        consultation_type=ConsultationType.GOOGLE_MEET,
        consultation_email="aisyah.rahman@gmail.com",
        health_condition="Knee pain",
    )

    confirmation = await BookingService(db_session).commit_booking(patient_id, data)

    assert confirmation.status == AppointmentStatus.PENDING
    assert confirmation.payment_status == PaymentStatus.DEPOSIT_PAID
    assert confirmation.balance_amount_myr == Decimal("100.00")

    result = await db_session.execute(
        select(appointments).where(appointments.c.id == confirmation.appointment_id)
    )
    row = result.mappings().one()
    assert row["patient_id"] == patient_id
    assert row["time_slot"] == "10:00"
    assert row["consultation_type"] == "google_meet"
    assert row["health_condition"] == "Knee pain"

    slot = await db_session.execute(
        select(booked_slots).where(booked_slots.c.appointment_id == confirmation.appointment_id)
    )
    assert slot.mappings().one()["appointment_date"] == next_monday

    payment = await db_session.execute(
        select(payments).where(payments.c.appointment_id == confirmation.appointment_id)
    )
    payment_row = payment.mappings().one()
    assert payment_row["payment_type"] == "deposit"
    assert payment_row["gateway_reference"] == data.gateway_reference

    ledger = await db_session.execute(
        select(daily_quotas.c.booked_count).where(daily_quotas.c.product_id == product["id"])
    )
    assert ledger.scalar_one() == 1


@pytest.mark.asyncio
async def test_commit_booking_unknown_product(
    db_session: AsyncSession,
    test_user: dict,
    next_monday: date,
    booking_data,
):
    """Booking a missing product raises NotFound."""
    ghost = {"id": uuid4(), "price_myr": Decimal("10.00")}
    with pytest.raises(NotFoundException):
        await BookingService(db_session).commit_booking(
            test_user["patient"]["id"], booking_data(ghost, next_monday, "09:00")
        )


@pytest.mark.asyncio
async def test_commit_booking_missing_patient(
    db_session: AsyncSession,
    product: dict,
    weekly_schedule: list[str],
    next_monday: date,
    booking_data,
):
    """A booking needs an existing patient profile."""
    with pytest.raises(PreconditionFailedException):
        await BookingService(db_session).commit_booking(
            uuid4(), booking_data(product, next_monday, "09:00")
        )


@pytest.mark.asyncio
async def test_commit_booking_rejects_past_date(
    db_session: AsyncSession,
    product: dict,
    weekly_schedule: list[str],
    test_user: dict,
    today: date,
    booking_data,
):
    """Past dates cannot be booked."""
    with pytest.raises(ValidationException):
        await BookingService(db_session).commit_booking(
            test_user["patient"]["id"],
            booking_data(product, today - timedelta(days=1), "09:00"),
        )


@pytest.mark.asyncio
async def test_commit_booking_rejects_slot_not_offered(
    db_session: AsyncSession,
    product: dict,
    weekly_schedule: list[str],
    test_user: dict,
    next_monday: date,
    booking_data,
):
    """A label outside the day's candidates is a validation error."""
    service = BookingService(db_session)
    with pytest.raises(ValidationException):
        await service.commit_booking(
            test_user["patient"]["id"], booking_data(product, next_monday, "16:00")
        )

    await ScheduleService(db_session).upsert_date_override(
        DateOverrideUpsert(specific_date=next_monday, is_closed=True)
    )
    with pytest.raises(ValidationException):
        await service.commit_booking(
            test_user["patient"]["id"], booking_data(product, next_monday, "09:00")
        )


@pytest.mark.asyncio
async def test_commit_booking_rejects_inactive_product(
    db_session: AsyncSession,
    create_product,
    weekly_schedule: list[str],
    test_user: dict,
    next_monday: date,
    booking_data,
):
    """Inactive products do not accept bookings."""
    product = await create_product(is_active=False)
    with pytest.raises(ValidationException):
        await BookingService(db_session).commit_booking(
            test_user["patient"]["id"], booking_data(product, next_monday, "09:00")
        )


@pytest.mark.asyncio
async def test_commit_booking_taken_slot_conflicts(
    db_session: AsyncSession,
    product: dict,
    create_product,
    weekly_schedule: list[str],
    test_user: dict,
    other_patient: dict,
    next_monday: date,
    booking_data,
):
    """A slot held by any product cannot be booked again."""
    other = await create_product(name="Wellness Review")
    service = BookingService(db_session)
    await service.commit_booking(
        test_user["patient"]["id"], booking_data(product, next_monday, "09:00")
    )

    with pytest.raises(SlotUnavailableException):
        await service.commit_booking(
            other_patient["id"], booking_data(other, next_monday, "09:00")
        )

    count = await db_session.execute(select(func.count()).select_from(appointments))
    assert count.scalar() == 1


@pytest.mark.asyncio
async def test_commit_booking_quota_conflict(
    db_session: AsyncSession,
    create_product,
    weekly_schedule: list[str],
    test_user: dict,
    next_monday: date,
    booking_data,
):
    """A full daily quota blocks further bookings even with free slots."""
    product = await create_product(quota_per_day=1)
    service = BookingService(db_session)
    await service.commit_booking(
        test_user["patient"]["id"], booking_data(product, next_monday, "09:00")
    )

    with pytest.raises(QuotaExhaustedException):
        await service.commit_booking(
            test_user["patient"]["id"], booking_data(product, next_monday, "10:00")
        )


@pytest.mark.asyncio
async def test_commit_booking_bad_amount_leaves_no_trace(
    db_session: AsyncSession,
    product: dict,
    weekly_schedule: list[str],
    test_user: dict,
    next_monday: date,
    booking_data,
):
    """A rejected payment amount rolls back without writing anything."""
    with pytest.raises(ValidationException):
        await BookingService(db_session).commit_booking(
            test_user["patient"]["id"],
            booking_data(product, next_monday, "09:00", payment_amount=Decimal("10.00")),
        )

    count = await db_session.execute(select(func.count()).select_from(booked_slots))
    assert count.scalar() == 0


@pytest.mark.asyncio
async def test_concurrent_bookings_for_same_slot(
    session_factory,
    product: dict,
    weekly_schedule: list[str],
    test_user: dict,
    other_patient: dict,
    next_monday: date,
    booking_data,
):
    """Two simultaneous bookings of one slot give exactly one appointment."""

    async def attempt(patient_id):
        async with session_factory() as session:
            try:
                await BookingService(session).commit_booking(
                    patient_id, booking_data(product, next_monday, "11:00")
                )
            except ConflictException:
                return False
            return True

    results = await asyncio.gather(
        attempt(test_user["patient"]["id"]),
        attempt(other_patient["id"]),
    )

    assert sorted(results) == [False, True]

    async with session_factory() as session:
        count = await session.execute(
            select(func.count())
            .select_from(appointments)
            .where(appointments.c.appointment_date == next_monday)
        )
        assert count.scalar() == 1


@pytest.mark.asyncio
async def test_home_visit_address_synced_to_profile(
    db_session: AsyncSession,
    product: dict,
    weekly_schedule: list[str],
    test_user: dict,
    next_monday: date,
    booking_data,
):
    """A home visit copies the address to the patient profile."""
    patient_id = test_user["patient"]["id"]
    await BookingService(db_session).commit_booking(
        patient_id,
        booking_data(
            product,
            next_monday,
            "09:00",
            consultation_type=ConsultationType.HOME_VISIT,
            home_address="12 Jalan Ampang",
            home_city="Kuala Lumpur",
            home_postcode="50450",
        ),
    )

    result = await db_session.execute(select(patients).where(patients.c.id == patient_id))
    row = result.mappings().one()
    assert row["home_address"] == "12 Jalan Ampang"
    assert row["home_city"] == "Kuala Lumpur"
    assert row["home_state"] is None
    assert row["home_postcode"] == "50450"


@pytest.mark.asyncio
async def test_commit_booking_with_cache_invalidates(
    db_session: AsyncSession,
    product: dict,
    weekly_schedule: list[str],
    test_user: dict,
    next_monday: date,
    booking_data,
):
    """A committed booking drops cached availability."""
    cache = MagicMock()
    await BookingService(db_session, cache_manager=cache).commit_booking(
        test_user["patient"]["id"], booking_data(product, next_monday, "09:00")
    )

    cache.delete_pattern.assert_called_once_with("availability:*")


@pytest.fixture
def stale_snapshot(monkeypatch: pytest.MonkeyPatch) -> None:
    """Booking sees each day as it was before any competing write landed."""
    load_snapshot = AvailabilityService.load_snapshot

    async def load_before_competitors(self, product_id, start, end):
        snapshot = await load_snapshot(self, product_id, start, end)
        snapshot.booked_by_date = {}
        snapshot.product_counts = {}
        return snapshot

    monkeypatch.setattr(AvailabilityService, "load_snapshot", load_before_competitors)


async def _count(db_session: AsyncSession, table) -> int:
    result = await db_session.execute(select(func.count()).select_from(table))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_slot_key_rejects_booking_with_stale_snapshot(
    db_session: AsyncSession,
    product: dict,
    weekly_schedule: list[str],
    test_user: dict,
    other_patient: dict,
    next_monday: date,
    booking_data,
    stale_snapshot,
):
    """When the pre-check misses a competitor, the slot key still refuses the booking."""
    service = BookingService(db_session)
    await service.commit_booking(other_patient["id"], booking_data(product, next_monday, "09:00"))

    with pytest.raises(SlotUnavailableException):
        await service.commit_booking(
            test_user["patient"]["id"], booking_data(product, next_monday, "09:00")
        )

    assert await _count(db_session, appointments) == 1
    assert await _count(db_session, payments) == 1
    ledger = await db_session.execute(select(daily_quotas.c.booked_count))
    assert ledger.scalar_one() == 1


@pytest.mark.asyncio
async def test_ledger_row_written_by_competitor_is_incremented(
    db_session: AsyncSession,
    create_product,
    weekly_schedule: list[str],
    test_user: dict,
    next_monday: date,
    booking_data,
    stale_snapshot,
):
    """A ledger row created after the snapshot was read is bumped, not duplicated."""
    product = await create_product(quota_per_day=5)
    await db_session.execute(
        insert(daily_quotas).values(
            product_id=product["id"], booking_date=next_monday, booked_count=3, max_quota=5
        )
    )
    await db_session.commit()

    confirmation = await BookingService(db_session).commit_booking(
        test_user["patient"]["id"], booking_data(product, next_monday, "09:00")
    )

    assert confirmation.status == AppointmentStatus.PENDING
    ledger = await db_session.execute(select(daily_quotas.c.booked_count))
    assert ledger.scalar_one() == 4


@pytest.mark.asyncio
async def test_full_ledger_rejects_booking_with_stale_snapshot(
    db_session: AsyncSession,
    product: dict,
    weekly_schedule: list[str],
    test_user: dict,
    next_monday: date,
    booking_data,
    stale_snapshot,
):
    """The guarded ledger upsert refuses past quota and nothing is written."""
    await db_session.execute(
        insert(daily_quotas).values(
            product_id=product["id"], booking_date=next_monday, booked_count=2, max_quota=2
        )
    )
    await db_session.commit()

    with pytest.raises(QuotaExhaustedException):
        await BookingService(db_session).commit_booking(
            test_user["patient"]["id"], booking_data(product, next_monday, "10:00")
        )

    assert await _count(db_session, appointments) == 0
    assert await _count(db_session, booked_slots) == 0
    assert await _count(db_session, payments) == 0
