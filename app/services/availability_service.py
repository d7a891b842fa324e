"""Availability resolution backed by the database."""

from collections import defaultdict
from datetime import date
from uuid import UUID

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.clinic_time import clinic_today
from app.core.redis_client import CacheManager
from app.models.appointments import appointments
from app.models.products import products
from app.models.schedule import availability_slots, date_overrides
from app.schemas.appointments import AppointmentStatus
from app.services.availability_rules import (
    ScheduleSnapshot,
    bookable_dates,
    day_of_week,
    month_bounds,
    open_slots,
)

logger = structlog.get_logger()


class AvailabilityService:
    """Service resolving bookable slots and dates for a product."""

    CACHE_PREFIX = "availability"

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager

    @classmethod
    def _get_month_cache_key(cls, product_id: UUID, year: int, month: int, start: date) -> str:
        """Generate cache key for a month view starting at ``start``."""
        return f"{cls.CACHE_PREFIX}:month:{product_id}:{year}:{month}:{start.isoformat()}"

    @classmethod
    def invalidate(cls, cache: CacheManager | None) -> None:
        """Drop every cached availability result."""
        if cache:
            cache.delete_pattern(f"{cls.CACHE_PREFIX}:*")

    async def load_snapshot(self, product_id: UUID, start: date, end: date) -> ScheduleSnapshot:
        """
        Batch-load schedule, overrides and bookings for a date range.

        Args:
            product_id: Product being booked
            start: First day of the range
            end: Last day of the range (inclusive)

        Returns:
            Snapshot indexed for :mod:`app.services.availability_rules`
        """
        result = await self.db.execute(select(products).where(products.c.id == product_id))
        product = result.mappings().first()
        if product is None or not product["is_active"]:
            return ScheduleSnapshot(product=dict(product) if product else None)

        slot_conditions = [availability_slots.c.is_active.is_(True)]
        if start == end:
            slot_conditions.append(availability_slots.c.day_of_week == day_of_week(start))
        slot_rows = await self.db.execute(
            select(availability_slots.c.day_of_week, availability_slots.c.time_slot)
            .where(and_(*slot_conditions))
            .order_by(availability_slots.c.day_of_week, availability_slots.c.time_slot)
        )
        weekly_by_day: dict[int, list[str]] = defaultdict(list)
        for row in slot_rows:
            weekly_by_day[row.day_of_week].append(row.time_slot)

        override_rows = await self.db.execute(
            select(
                date_overrides.c.specific_date,
                date_overrides.c.is_closed,
                date_overrides.c.custom_time_slots,
            ).where(date_overrides.c.specific_date.between(start, end))
        )
        overrides_by_date = {row.specific_date: dict(row._mapping) for row in override_rows}

        booking_rows = await self.db.execute(
            select(
                appointments.c.appointment_date,
                appointments.c.time_slot,
                appointments.c.product_id,
            ).where(
                and_(
                    appointments.c.appointment_date.between(start, end),
                    appointments.c.status != AppointmentStatus.CANCELLED.value,
                )
            )
        )
        booked_by_date: dict[date, set[str]] = defaultdict(set)
        product_counts: dict[date, int] = defaultdict(int)
        for row in booking_rows:
            booked_by_date[row.appointment_date].add(row.time_slot)
            if row.product_id == product_id:
                product_counts[row.appointment_date] += 1

        return ScheduleSnapshot(
            product=dict(product),
            weekly_by_day=dict(weekly_by_day),
            overrides_by_date=overrides_by_date,
            booked_by_date=dict(booked_by_date),
            product_counts=dict(product_counts),
        )

    async def resolve_day_slots(self, product_id: UUID, day: date) -> list[str]:
        """
        Get open time slots for a product on one day.

        Args:
            product_id: Product ID
            day: Clinic-local calendar day

        Returns:
            Ordered list of ``HH:MM`` labels, empty when nothing is bookable
        """
        snapshot = await self.load_snapshot(product_id, day, day)
        return open_slots(snapshot, day)

    async def resolve_month_dates(
        self,
        product_id: UUID,
        year: int,
        month: int,
        today: date | None = None,
    ) -> list[date]:
        """
        Get the days of a month that still have an open slot.

        Days before ``today`` are never returned.

        Args:
            product_id: Product ID
            year: Calendar year
            month: Zero-based month (0 = January)
            today: Clinic-local today, defaults to the current day

        Returns:
            Ascending list of dates
        """
        month_start, month_end = month_bounds(year, month)
        start = max(today or clinic_today(), month_start)
        if start > month_end:
            return []

        use_cache = self.cache is not None and settings.availability_cache_ttl > 0
        cache_key = self._get_month_cache_key(product_id, year, month, start)
        if use_cache:
            cached = self.cache.get_json(cache_key)
            if cached is not None:
                return [date.fromisoformat(value) for value in cached]

        snapshot = await self.load_snapshot(product_id, start, month_end)
        dates = bookable_dates(snapshot, start, month_end)

        if use_cache:
            self.cache.set_json(
                cache_key,
                [d.isoformat() for d in dates],
                ttl=settings.availability_cache_ttl,
            )

        logger.debug(
            "month_availability_resolved",
            product_id=str(product_id),
            year=year,
            month=month,
            available_days=len(dates),
        )
        return dates
