"""Client (customer) models."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class ClientCreate(BaseModel):
    """
    Client identity captured or resolved during booking.

    Returned by the phone lookup for returning clients (with ``id``) and
    sent to the create/update endpoints for new ones (without ``id``).
    """
    model_config = ConfigDict(extra="allow")

    id: int | None = None
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    phone: str | None = None
    is_active: bool = True
    is_vip: bool = False
    notes: str = ""
    primary_business_id: int | None = None
    date_of_birth: date | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_registered(self) -> bool:
        return self.id is not None


class Client(BaseModel):
    """Full client profile as returned by the API."""
    model_config = ConfigDict(extra="allow")

    id: int
    first_name: str
    last_name: str = ""
    full_name: str = ""
    email: str | None = None
    phone: str | None = None
    date_of_birth: date | None = None
    city: str = ""
    preferred_contact_method: str = ""
    notes: str | None = None
    primary_business: int | None = None
    primary_business_name: str = ""
    is_active: bool = True
    is_vip: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
