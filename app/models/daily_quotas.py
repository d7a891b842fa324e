"""Per product, per day booking counter."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    PrimaryKeyConstraint,
    Table,
    Uuid,
    func,
)

from app.models.base import metadata

daily_quotas = Table(
    "daily_quotas",
    metadata,
    Column("product_id", Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
    Column("booking_date", Date, nullable=False),
    # Live bookings for the day
    Column("booked_count", Integer, nullable=False, server_default="0"),
    Column("max_quota", Integer, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    PrimaryKeyConstraint("product_id", "booking_date", name="daily_quotas_pkey"),
    CheckConstraint("booked_count >= 0", name="daily_quotas_booked_count_check"),
)
