"""Create booking schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    """Create users, patients, products, schedule, appointments and ledgers."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("role", sa.String(length=20), server_default="patient", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("home_address", sa.Text(), nullable=True),
        sa.Column("home_city", sa.String(length=100), nullable=True),
        sa.Column("home_state", sa.String(length=100), nullable=True),
        sa.Column("home_postcode", sa.String(length=20), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_patients_user_id", "patients", ["user_id"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), server_default="60", nullable=False),
        sa.Column("quota_per_day", sa.Integer(), server_default="1", nullable=False),
        sa.Column("price_myr", sa.Numeric(10, 2), server_default="0", nullable=False),
        sa.Column("deposit_percentage", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("quota_per_day >= 0", name="products_quota_per_day_check"),
        sa.CheckConstraint(
            "deposit_percentage >= 0 AND deposit_percentage <= 100",
            name="products_deposit_percentage_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "availability_slots",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("time_slot", sa.String(length=5), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.CheckConstraint(
            "day_of_week >= 0 AND day_of_week <= 6",
            name="availability_slots_day_of_week_check",
        ),
        sa.UniqueConstraint("day_of_week", "time_slot", name="availability_slots_day_slot_key"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "date_overrides",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("specific_date", sa.Date(), nullable=False),
        sa.Column("is_closed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("custom_time_slots", sa.JSON(none_as_null=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("specific_date"),
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("patient_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.String(length=5), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("total_amount_myr", sa.Numeric(10, 2), nullable=False),
        sa.Column("paid_amount_myr", sa.Numeric(10, 2), nullable=False),
        sa.Column("balance_amount_myr", sa.Numeric(10, 2), nullable=False),
        sa.Column("consultation_type", sa.String(length=20), nullable=True),
        sa.Column("consultation_phone", sa.String(length=20), nullable=True),
        sa.Column("consultation_email", sa.Text(), nullable=True),
        sa.Column("consultation_address", sa.Text(), nullable=True),
        sa.Column("health_condition", sa.Text(), nullable=True),
        sa.Column("on_medication", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("medication_details", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("treatment_report", sa.Text(), nullable=True),
        sa.Column("google_calendar_event_id", sa.Text(), nullable=True),
        sa.Column("google_meet_link", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "payment_status IN ('deposit_paid', 'full_paid')",
            name="appointments_payment_status_check",
        ),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index(
        "ix_appointments_date_status", "appointments", ["appointment_date", "status"]
    )

    op.create_table(
        "booked_slots",
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.String(length=5), nullable=False),
        sa.Column("appointment_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("appointment_date", "time_slot", name="booked_slots_pkey"),
        sa.UniqueConstraint("appointment_id"),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("appointment_id", sa.Uuid(), nullable=False),
        sa.Column("amount_myr", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_type", sa.String(length=10), nullable=False),
        sa.Column("gateway_reference", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), server_default="succeeded", nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint(
            "payment_type IN ('full', 'deposit')", name="payments_payment_type_check"
        ),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payments_appointment_id", "payments", ["appointment_id"])

    op.create_table(
        "daily_quotas",
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("booked_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("max_quota", sa.Integer(), nullable=False),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint("booked_count >= 0", name="daily_quotas_booked_count_check"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("product_id", "booking_date", name="daily_quotas_pkey"),
    )


def downgrade() -> None:
    """Drop the booking schema."""
    op.drop_table("daily_quotas")
    op.drop_index("ix_payments_appointment_id", table_name="payments")
    op.drop_table("payments")
    op.drop_table("booked_slots")
    op.drop_index("ix_appointments_date_status", table_name="appointments")
    op.drop_index("ix_appointments_patient_id", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("date_overrides")
    op.drop_table("availability_slots")
    op.drop_table("products")
    op.drop_index("ix_patients_user_id", table_name="patients")
    op.drop_table("patients")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
