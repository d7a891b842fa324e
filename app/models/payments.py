"""Payments recorded against appointments."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
    func,
)

from app.models.base import metadata

payments = Table(
    "payments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("amount_myr", Numeric(10, 2), nullable=False),
    Column("payment_type", String(10), nullable=False),
    # Reference issued by the payment gateway
    Column("gateway_reference", Text),
    Column("status", String(20), nullable=False, server_default="succeeded"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("payment_type IN ('full', 'deposit')", name="payments_payment_type_check"),
)
