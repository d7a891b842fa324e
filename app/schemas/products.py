"""Product schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class ProductResponse(BaseModel):
    """Schema for a bookable service."""

    id: UUID
    name: str
    description: str | None = None
    is_active: bool
    duration_minutes: int
    quota_per_day: int
    price_myr: Decimal
    deposit_percentage: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
