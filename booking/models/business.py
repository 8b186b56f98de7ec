"""Business (tenant) models."""

from pydantic import BaseModel, ConfigDict


class BusinessSettings(BaseModel):
    """Booking-related settings of a business."""
    model_config = ConfigDict(extra="allow")

    advance_booking_days: int | None = None
    min_advance_booking_hours: int | None = None
    max_advance_booking_days: int | None = None
    time_slot_interval: int | None = None
    buffer_time_minutes: int = 0
    send_confirmation_sms: bool = True
    currency: str = "USD"
    allow_online_booking: bool = True
    require_client_phone: bool = True
    require_client_email: bool = False


class BusinessInfo(BaseModel):
    """Public business profile shown in the booking wizard."""
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    phone_number: str = ""
    email: str = ""
    website: str = ""
    address: str = ""
    city: str = ""
    timezone: str | None = None
    status: str = ""
    description: str = ""
    logo: str | None = None
    settings: BusinessSettings | None = None
