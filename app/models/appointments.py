"""Appointments and clinic-wide slot occupancy using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    Uuid,
    false,
    func,
)

from app.models.base import metadata

appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column("patient_id", Uuid, ForeignKey("patients.id"), nullable=False, index=True),
    Column("product_id", Uuid, ForeignKey("products.id"), nullable=False),
    # Slot
    Column("appointment_date", Date, nullable=False),
    Column("time_slot", String(5), nullable=False),
    # Status management
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("payment_status", String(20), nullable=False),
    # Amounts
    Column("total_amount_myr", Numeric(10, 2), nullable=False),
    Column("paid_amount_myr", Numeric(10, 2), nullable=False),
    Column("balance_amount_myr", Numeric(10, 2), nullable=False),
    # Consultation
    Column("consultation_type", String(20)),
    Column("consultation_phone", String(20)),
    Column("consultation_email", Text),
    Column("consultation_address", Text),
    # Health statement
    Column("health_condition", Text),
    Column("on_medication", Boolean, nullable=False, server_default=false()),
    Column("medication_details", Text),
    # Staff side
    Column("admin_notes", Text),
    Column("treatment_report", Text),
    # Filled from the calendar collaborator on confirmation
    Column("google_calendar_event_id", Text),
    Column("google_meet_link", Text),
    Column("cancellation_reason", Text),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "payment_status IN ('deposit_paid', 'full_paid')",
        name="appointments_payment_status_check",
    ),
    Index("ix_appointments_date_status", "appointment_date", "status"),
)

# One row per live appointment. The primary key makes a time slot on a date
# exclusive across every product; cancellation deletes the row.
booked_slots = Table(
    "booked_slots",
    metadata,
    Column("appointment_date", Date, nullable=False),
    Column("time_slot", String(5), nullable=False),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("product_id", Uuid, ForeignKey("products.id"), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    PrimaryKeyConstraint("appointment_date", "time_slot", name="booked_slots_pkey"),
)
