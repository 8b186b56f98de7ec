"""Review models for post-appointment feedback."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from booking.models.appointment import AppointmentWithServices


class Review(BaseModel):
    """Review left by a client for an appointment."""
    model_config = ConfigDict(extra="allow")

    id: int
    appointment: int
    appointment_date: date | None = None
    business_name: str = ""
    appointment_details: AppointmentWithServices | None = None
    rating: int
    comment: str = ""
    is_visible: bool = True
    is_verified: bool = False
    reviewed_at: datetime | None = None
    created_at: datetime | None = None


class CreateReviewPayload(BaseModel):
    """Body of POST /business-reviews/."""

    appointment: int
    rating: int = Field(ge=1, le=5)
    comment: str | None = None


class UpdateReviewPayload(BaseModel):
    """Body of PATCH /business-reviews/{id}/."""

    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = None
