"""Bookable clinic services (products)."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
    func,
    true,
)

from app.models.base import metadata

products = Table(
    "products",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("name", String(200), nullable=False),
    Column("description", Text),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("duration_minutes", Integer, nullable=False, server_default="60"),
    # Max live bookings per calendar day
    Column("quota_per_day", Integer, nullable=False, server_default="1"),
    Column("price_myr", Numeric(10, 2), nullable=False, server_default="0"),
    # Share of the price payable to hold a slot
    Column("deposit_percentage", Integer, nullable=False, server_default="0"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("quota_per_day >= 0", name="products_quota_per_day_check"),
    CheckConstraint(
        "deposit_percentage >= 0 AND deposit_percentage <= 100",
        name="products_deposit_percentage_check",
    ),
)
