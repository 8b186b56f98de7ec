"""
Catalog models: categories, services, staff and availability slots.

These are reference data fetched from the booking API and never mutated by
the client (services are frozen).
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from booking.utils.formatting import parse_price


class Service(BaseModel):
    """Bookable service within a category (e.g. "Men's Cut")."""
    model_config = ConfigDict(extra="allow", frozen=True)

    id: int
    name: str
    category: int | None = None
    category_name: str = ""
    description: str = ""
    duration_minutes: int = Field(ge=1)
    price: str = "0"  # Decimal string, e.g. "45.00"
    is_active: bool = True
    requires_staff: bool = True
    max_capacity: int = 1
    is_online_booking: bool = True
    sort_order: int = 0
    color_code: str | None = None
    icon: str | None = None
    image: str | None = None

    @property
    def price_amount(self) -> Decimal:
        return parse_price(self.price)

    @property
    def is_bookable(self) -> bool:
        """Active and offered for online booking."""
        return self.is_active and self.is_online_booking


class Category(BaseModel):
    """Service category (e.g. "Hair"), with its nested services."""
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    business: int | None = None
    description: str = ""
    sort_order: int = 0
    is_active: bool = True
    is_online_booking: bool = True
    color_code: str | None = None
    icon: str | None = None
    image: str | None = None
    services: list[Service] = []


class Staff(BaseModel):
    """Staff member (technician) that can be requested by the client."""
    model_config = ConfigDict(extra="allow")

    id: int
    first_name: str
    last_name: str = ""
    email: str | None = None
    phone: str | None = None
    role: int | None = None
    role_name: str = ""
    is_active: bool = True
    photo: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class StaffPreference(BaseModel):
    """
    Staff explicitly requested by the client.

    The wizard holds ``None`` instead of a StaffPreference for "Anyone".
    """
    model_config = ConfigDict(frozen=True)

    id: int
    name: str

    @classmethod
    def from_staff(cls, staff: Staff) -> "StaffPreference":
        return cls(id=staff.id, name=staff.full_name)


class TimeSlot(BaseModel):
    """
    Availability candidate returned by the slot provider.

    ``staff_id`` is the staff member the backend will assign for the whole
    appointment when this slot is booked.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    start_time: datetime
    end_time: datetime | None = None
    staff_id: int | None = None
