"""Daily quota ledger operations."""

from datetime import UTC, date, datetime
from uuid import UUID

import structlog
from sqlalchemy import and_, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException, QuotaExhaustedException
from app.models.appointments import appointments
from app.models.daily_quotas import daily_quotas
from app.models.products import products
from app.schemas.appointments import AppointmentStatus
from app.schemas.schedule import DailyQuotaResponse

logger = structlog.get_logger()


class QuotaService:
    """Keeps ``daily_quotas`` in step with live bookings.

    ``increment_booked`` and ``release_booked`` run inside the caller's
    transaction and never commit.
    """

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    def _key(self, product_id: UUID, day: date):
        return and_(
            daily_quotas.c.product_id == product_id,
            daily_quotas.c.booking_date == day,
        )

    def _upsert(self):
        """Dialect ``INSERT`` supporting ``ON CONFLICT`` for the bound engine."""
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite_insert(daily_quotas)
        return pg_insert(daily_quotas)

    async def increment_booked(self, product_id: UUID, day: date, quota: int) -> None:
        """
        Count one more booking for the day, refusing to pass ``quota``.

        A single ``INSERT ... ON CONFLICT DO UPDATE`` creates the row or bumps
        it, guarded by ``booked_count < quota``. Concurrent first bookings of
        a day therefore serialise on the row instead of colliding on its key.

        Raises:
            QuotaExhaustedException: If the ledger is already at ``quota``
        """
        if quota <= 0:
            raise QuotaExhaustedException()

        stmt = self._upsert().values(
            product_id=product_id,
            booking_date=day,
            booked_count=1,
            max_quota=quota,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[daily_quotas.c.product_id, daily_quotas.c.booking_date],
            set_={
                "booked_count": daily_quotas.c.booked_count + 1,
                "max_quota": quota,
                "updated_at": datetime.now(UTC),
            },
            where=daily_quotas.c.booked_count < quota,
        ).returning(daily_quotas.c.booked_count)

        result = await self.db.execute(stmt)
        if result.first() is None:
            raise QuotaExhaustedException()

    async def release_booked(self, product_id: UUID, day: date) -> None:
        """Count one booking fewer for the day, never below zero."""
        await self.db.execute(
            update(daily_quotas)
            .where(and_(self._key(product_id, day), daily_quotas.c.booked_count > 0))
            .values(
                booked_count=daily_quotas.c.booked_count - 1,
                updated_at=datetime.now(UTC),
            )
        )

    async def count_live(self, product_id: UUID, day: date) -> int:
        """Count non-cancelled appointments of a product on a day."""
        result = await self.db.execute(
            select(func.count())
            .select_from(appointments)
            .where(
                and_(
                    appointments.c.product_id == product_id,
                    appointments.c.appointment_date == day,
                    appointments.c.status != AppointmentStatus.CANCELLED.value,
                )
            )
        )
        return result.scalar() or 0

    async def _get_quota(self, product_id: UUID) -> int:
        result = await self.db.execute(
            select(products.c.quota_per_day).where(products.c.id == product_id)
        )
        quota = result.scalar()
        if quota is None:
            raise NotFoundException("Product not found")
        return quota

    async def get_daily_quota(self, product_id: UUID, day: date) -> DailyQuotaResponse:
        """
        Get the ledger row for a product and day alongside the live recount.

        A missing ledger row reads as zero bookings against the product's
        current quota.
        """
        quota = await self._get_quota(product_id)
        result = await self.db.execute(select(daily_quotas).where(self._key(product_id, day)))
        row = result.mappings().first()
        live_count = await self.count_live(product_id, day)

        return DailyQuotaResponse(
            product_id=product_id,
            booking_date=day,
            booked_count=row["booked_count"] if row else 0,
            max_quota=row["max_quota"] if row else quota,
            live_count=live_count,
        )

    async def reconcile_daily_quota(self, product_id: UUID, day: date) -> DailyQuotaResponse:
        """Rewrite the ledger row from the live appointment count."""
        quota = await self._get_quota(product_id)
        live_count = await self.count_live(product_id, day)

        stmt = self._upsert().values(
            product_id=product_id,
            booking_date=day,
            booked_count=live_count,
            max_quota=quota,
        )
        await self.db.execute(
            stmt.on_conflict_do_update(
                index_elements=[daily_quotas.c.product_id, daily_quotas.c.booking_date],
                set_={
                    "booked_count": live_count,
                    "max_quota": quota,
                    "updated_at": datetime.now(UTC),
                },
            )
        )
        await self.db.commit()

        logger.info(
            "daily_quota_reconciled",
            product_id=str(product_id),
            booking_date=day.isoformat(),
            booked_count=live_count,
        )
        return DailyQuotaResponse(
            product_id=product_id,
            booking_date=day,
            booked_count=live_count,
            max_quota=quota,
            live_count=live_count,
        )
