"""Schedule store: weekly template and date overrides."""

from datetime import UTC, date, datetime

import structlog
from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException, NotFoundException
from app.core.redis_client import CacheManager
from app.models.schedule import availability_slots, date_overrides
from app.schemas.schedule import DateOverrideUpsert, WeeklySlotToggle
from app.services.availability_service import AvailabilityService

logger = structlog.get_logger()


class ScheduleService:
    """Service for admin schedule edits."""

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager

    async def list_weekly_slots(self) -> list[dict]:
        """Get every weekly slot ordered by weekday then time."""
        result = await self.db.execute(
            select(availability_slots).order_by(
                availability_slots.c.day_of_week, availability_slots.c.time_slot
            )
        )
        return [dict(row) for row in result.mappings()]

    async def count_active_weekly_slots(self) -> int:
        """Number of active weekly slots; zero means no weekday is ever bookable."""
        return await self.db.scalar(
            select(func.count())
            .select_from(availability_slots)
            .where(availability_slots.c.is_active.is_(True))
        )

    async def toggle_weekly_slot(self, data: WeeklySlotToggle) -> dict:
        """
        Create or update one weekly slot.

        Args:
            data: Day of week, time label and desired active flag

        Returns:
            The stored slot
        """
        key = and_(
            availability_slots.c.day_of_week == data.day_of_week,
            availability_slots.c.time_slot == data.time_slot,
        )
        try:
            result = await self.db.execute(
                update(availability_slots)
                .where(key)
                .values(is_active=data.is_active)
                .returning(availability_slots)
            )
            row = result.mappings().first()
            if row is None:
                result = await self.db.execute(
                    insert(availability_slots)
                    .values(
                        day_of_week=data.day_of_week,
                        time_slot=data.time_slot,
                        is_active=data.is_active,
                    )
                    .returning(availability_slots)
                )
                row = result.mappings().first()
            slot = dict(row)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictException("Weekly slot was modified concurrently") from e

        logger.info(
            "weekly_slot_toggled",
            day_of_week=data.day_of_week,
            time_slot=data.time_slot,
            is_active=data.is_active,
        )
        AvailabilityService.invalidate(self.cache)
        return slot

    async def list_date_overrides(
        self,
        start: date | None = None,
        end: date | None = None,
    ) -> list[dict]:
        """Get overrides, optionally limited to a date range."""
        conditions = []
        if start:
            conditions.append(date_overrides.c.specific_date >= start)
        if end:
            conditions.append(date_overrides.c.specific_date <= end)

        query = select(date_overrides).order_by(date_overrides.c.specific_date)
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.db.execute(query)
        return [dict(row) for row in result.mappings()]

    async def upsert_date_override(self, data: DateOverrideUpsert) -> dict:
        """
        Create or replace the override for a date.

        ``custom_time_slots`` has already been validated by the schema and is
        stored in the given order.
        """
        values = {
            "is_closed": data.is_closed,
            "reason": data.reason,
            "custom_time_slots": data.custom_time_slots,
        }
        try:
            result = await self.db.execute(
                update(date_overrides)
                .where(date_overrides.c.specific_date == data.specific_date)
                .values(**values, updated_at=datetime.now(UTC))
                .returning(date_overrides)
            )
            row = result.mappings().first()
            if row is None:
                result = await self.db.execute(
                    insert(date_overrides)
                    .values(specific_date=data.specific_date, **values)
                    .returning(date_overrides)
                )
                row = result.mappings().first()
            override = dict(row)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictException("Date override was modified concurrently") from e

        logger.info(
            "date_override_saved",
            specific_date=data.specific_date.isoformat(),
            is_closed=data.is_closed,
            custom_slots=len(data.custom_time_slots or []),
        )
        AvailabilityService.invalidate(self.cache)
        return override

    async def delete_date_override(self, specific_date: date) -> None:
        """
        Remove the override for a date.

        Raises:
            NotFoundException: If no override exists for the date
        """
        result = await self.db.execute(
            delete(date_overrides).where(date_overrides.c.specific_date == specific_date)
        )
        if not result.rowcount:
            await self.db.rollback()
            raise NotFoundException("Date override not found")
        await self.db.commit()

        logger.info("date_override_deleted", specific_date=specific_date.isoformat())
        AvailabilityService.invalidate(self.cache)
