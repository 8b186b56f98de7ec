"""
Appointment models: line items, appointments and the creation payload.

Timestamps are serialized for the wire as ISO-8601 with an explicit offset
and calendar dates as YYYY-MM-DD.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from booking.models.catalog import Service
from booking.utils.formatting import parse_price, to_wire_date, to_wire_datetime


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment on the backend."""

    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    IN_SERVICE = "in_service"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    PENDING_PAYMENT = "pending_payment"


class BookingSource(str, Enum):
    """Channel through which an appointment was booked."""

    ONLINE = "online"
    PHONE = "phone"
    AI_RECEPTIONIST = "ai_receptionist"
    WALK_IN = "walk_in"


class PaymentStatus(str, Enum):
    """Payment state of an appointment."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
    CHARGEBACK = "chargeback"
    NOT_PAID = "not_paid"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class AppointmentService(BaseModel):
    """
    One service line of an appointment.

    While booking, a line carries a snapshot of the catalog service taken at
    selection time. ``start_at``/``end_at``/``staff`` are filled in by the
    slot composition engine once a time slot is chosen.

    ``id`` is an ephemeral line-item id (display/list key only); lines are
    identified by ``service``, the underlying catalog service id.
    """
    model_config = ConfigDict(extra="allow")

    id: int | None = None
    appointment: int | None = None
    service: int
    service_name: str
    service_duration: int = Field(ge=1)
    service_price: str = "0"
    service_color_code: str = ""
    staff: int | None = None
    staff_name: str = ""
    is_staff_request: bool = False
    custom_price: str | None = None
    custom_duration: int | None = Field(default=None, ge=1)
    start_at: datetime | None = None
    end_at: datetime | None = None
    is_active: bool = True
    tip_amount: float | None = None
    is_draft: bool | None = False

    @field_validator("start_at", "end_at", "custom_price", "custom_duration", mode="before")
    @classmethod
    def empty_string_is_none(cls, v: Any) -> Any:
        """The API (and older clients) send "" for unset values."""
        return _blank_to_none(v)

    @field_serializer("start_at", "end_at")
    def serialize_timestamp(self, value: datetime | None) -> str | None:
        return to_wire_datetime(value) if value is not None else None

    @classmethod
    def from_service(cls, service: Service) -> "AppointmentService":
        """Snapshot a catalog service into an unscheduled line item."""
        return cls(
            service=service.id,
            service_name=service.name,
            service_duration=service.duration_minutes,
            service_price=service.price,
            service_color_code=service.color_code or "",
        )

    @property
    def effective_duration(self) -> int:
        """Custom duration override if set, else the catalog duration."""
        if self.custom_duration is not None:
            return self.custom_duration
        return self.service_duration

    @property
    def effective_price(self) -> Decimal:
        """Custom price override if set, else the catalog price."""
        if self.custom_price is not None:
            return parse_price(self.custom_price)
        return parse_price(self.service_price)

    @property
    def is_scheduled(self) -> bool:
        return self.start_at is not None and self.end_at is not None


class Appointment(BaseModel):
    """Appointment record as returned by the booking API."""
    model_config = ConfigDict(extra="allow")

    id: int
    business: int | None = None
    client: int | None = None
    client_name: str = ""
    client_email: str | None = None
    client_phone: str | None = None
    business_name: str = ""
    appointment_date: date | None = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: str | None = None
    booking_source: BookingSource | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    cancelled_at: datetime | None = None
    metadata: dict[str, Any] = {}
    payment_status: PaymentStatus | None = None


class AppointmentWithServices(Appointment):
    """Appointment together with its service lines."""

    appointment_services: list[AppointmentService] = []

    @property
    def is_cancellable(self) -> bool:
        return self.status == AppointmentStatus.SCHEDULED


DEFAULT_APPOINTMENT_METADATA: dict[str, Any] = {
    "is_rescheduled": False,
    "is_cancelled": False,
    "is_send_confirmation_sms": True,
}


class CreateAppointmentPayload(BaseModel):
    """Body of POST /business-booking/appointment/."""

    business_id: int
    client_id: int | None = None
    appointment_date: date
    start_at: datetime
    end_at: datetime
    appointment_services: list[AppointmentService]
    notes: str = ""
    metadata: dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_APPOINTMENT_METADATA))

    @field_serializer("appointment_date")
    def serialize_date(self, value: date) -> str:
        return to_wire_date(value)

    @field_serializer("start_at", "end_at")
    def serialize_timestamp(self, value: datetime) -> str:
        return to_wire_datetime(value)
