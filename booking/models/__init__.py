"""
Wire models for the booking API.

Public exports:
    - ApiResponse: Response envelope
    - Category, Service, Staff, StaffPreference, TimeSlot: Catalog data
    - AppointmentService, Appointment, AppointmentWithServices,
      CreateAppointmentPayload: Appointments
    - ClientCreate, Client: Clients
    - BusinessInfo, BusinessSettings: Tenant
    - Review, CreateReviewPayload, UpdateReviewPayload: Reviews
"""

from booking.models.api import ApiResponse
from booking.models.appointment import (
    DEFAULT_APPOINTMENT_METADATA,
    Appointment,
    AppointmentService,
    AppointmentStatus,
    AppointmentWithServices,
    BookingSource,
    CreateAppointmentPayload,
    PaymentStatus,
)
from booking.models.business import BusinessInfo, BusinessSettings
from booking.models.catalog import Category, Service, Staff, StaffPreference, TimeSlot
from booking.models.client import Client, ClientCreate
from booking.models.review import CreateReviewPayload, Review, UpdateReviewPayload

__all__ = [
    "DEFAULT_APPOINTMENT_METADATA",
    "ApiResponse",
    "Appointment",
    "AppointmentService",
    "AppointmentStatus",
    "AppointmentWithServices",
    "BookingSource",
    "BusinessInfo",
    "BusinessSettings",
    "Category",
    "Client",
    "ClientCreate",
    "CreateAppointmentPayload",
    "CreateReviewPayload",
    "PaymentStatus",
    "Review",
    "Service",
    "Staff",
    "StaffPreference",
    "TimeSlot",
    "UpdateReviewPayload",
]
