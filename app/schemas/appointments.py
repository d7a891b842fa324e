"""Appointment and booking schemas for request/response validation."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.schedule import validate_time_slot


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """How much of the total has been paid."""

    DEPOSIT_PAID = "deposit_paid"
    FULL_PAID = "full_paid"


class PaymentType(str, Enum):
    """Payment option chosen at checkout."""

    FULL = "full"
    DEPOSIT = "deposit"


class ConsultationType(str, Enum):
    """Consultation mode enumeration."""

    GOOGLE_MEET = "google_meet"
    WHATSAPP_CALL = "whatsapp_call"
    IN_PERSON = "in_person"
    HOME_VISIT = "home_visit"


class BookingCreate(BaseModel):
    """Schema for committing a booking after payment capture."""

    product_id: UUID
    appointment_date: date
    time_slot: str
    payment_amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    payment_type: PaymentType
    gateway_reference: str | None = Field(None, max_length=255)
    # Consultation fields
    consultation_type: ConsultationType | None = None
    consultation_phone: str | None = Field(None, max_length=20)
    consultation_email: EmailStr | None = None
    consultation_address: str | None = Field(None, max_length=500)
    # Health statement
    health_condition: str | None = Field(None, max_length=2000)
    on_medication: bool = False
    medication_details: str | None = Field(None, max_length=1000)
    additional_notes: str | None = Field(None, max_length=1000)
    # Home visit address synced to the patient profile
    home_address: str | None = Field(None, max_length=500)
    home_city: str | None = Field(None, max_length=100)
    home_state: str | None = Field(None, max_length=100)
    home_postcode: str | None = Field(None, max_length=20)

    @field_validator("time_slot")
    @classmethod
    def check_time_slot(cls, v: str) -> str:
        """Validate the label format."""
        return validate_time_slot(v)


class BookingConfirmation(BaseModel):
    """Result of a committed booking."""

    appointment_id: UUID
    status: AppointmentStatus
    payment_status: PaymentStatus
    appointment_date: date
    time_slot: str
    total_amount_myr: Decimal
    paid_amount_myr: Decimal
    balance_amount_myr: Decimal


class AppointmentCancel(BaseModel):
    """Schema for cancelling an appointment."""

    reason: str | None = Field(None, max_length=500)


class AppointmentConfirm(BaseModel):
    """Identifiers returned by the calendar collaborator, if any."""

    google_calendar_event_id: str | None = Field(None, max_length=255)
    google_meet_link: str | None = Field(None, max_length=500)


class AdminNoteUpdate(BaseModel):
    """Staff note on an appointment; an empty note clears it."""

    admin_notes: str = Field(..., max_length=2000)


class AppointmentComplete(BaseModel):
    """Schema for completing an appointment."""

    treatment_report: str = Field(..., min_length=1, max_length=5000)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    product_id: UUID
    appointment_date: date
    time_slot: str
    status: AppointmentStatus
    payment_status: PaymentStatus
    total_amount_myr: Decimal
    paid_amount_myr: Decimal
    balance_amount_myr: Decimal
    consultation_type: ConsultationType | None = None
    consultation_phone: str | None = None
    consultation_email: str | None = None
    consultation_address: str | None = None
    health_condition: str | None = None
    on_medication: bool
    medication_details: str | None = None
    admin_notes: str | None = None
    treatment_report: str | None = None
    google_calendar_event_id: str | None = None
    google_meet_link: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering.

    ``patient_id`` only applies to the staff listing; patients always see
    their own appointments.
    """

    status: AppointmentStatus | None = None
    patient_id: UUID | None = None
    product_id: UUID | None = None
    from_date: date | None = None
    to_date: date | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
