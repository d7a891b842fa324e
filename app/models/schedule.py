"""Weekly schedule template and per-date overrides."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    false,
    func,
    true,
)

from app.models.base import metadata

# Recurring template, day_of_week 0 = Sunday
availability_slots = Table(
    "availability_slots",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("day_of_week", Integer, nullable=False),
    Column("time_slot", String(5), nullable=False),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    CheckConstraint(
        "day_of_week >= 0 AND day_of_week <= 6",
        name="availability_slots_day_of_week_check",
    ),
    UniqueConstraint("day_of_week", "time_slot", name="availability_slots_day_slot_key"),
)

date_overrides = Table(
    "date_overrides",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("specific_date", Date, nullable=False, unique=True),
    Column("is_closed", Boolean, nullable=False, server_default=false()),
    Column("reason", Text),
    # Ordered list of HH:MM labels replacing the weekly template
    Column("custom_time_slots", JSON(none_as_null=True), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
