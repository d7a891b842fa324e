"""Database models."""

from app.models.appointments import appointments, booked_slots
from app.models.base import metadata
from app.models.daily_quotas import daily_quotas
from app.models.patients import patients
from app.models.payments import payments
from app.models.products import products
from app.models.schedule import availability_slots, date_overrides
from app.models.users import users

__all__ = [
    "appointments",
    "availability_slots",
    "booked_slots",
    "daily_quotas",
    "date_overrides",
    "metadata",
    "patients",
    "payments",
    "products",
    "users",
]
