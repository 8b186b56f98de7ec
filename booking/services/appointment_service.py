"""
Client appointment service - a returning client's appointment list.

- Load the client profile together with their appointments
- Cancel an appointment and reload the list
- Summarise appointments for display (status label and colour, services)

Architecture:
- Stateless request/response helpers around the booking API
- Cancellation is only offered for appointments still scheduled
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import pybreaker

from booking.models.appointment import AppointmentStatus, AppointmentWithServices
from booking.models.client import Client
from booking.utils.formatting import business_timezone, format_date, format_time, localize
from booking.utils.labels import get_appointment_status_color, get_appointment_status_label
from shared.booking_api_client import BookingAPIClient, BookingAPIError

logger = logging.getLogger(__name__)


@dataclass
class ClientAppointmentsResult:
    """
    Result of loading a client's appointments.

    Attributes:
        success: Whether the operation succeeded
        client: Client profile
        appointments: Client appointments as returned by the API
        error_message: Error message if success is False
    """
    success: bool
    client: Optional[Client] = None
    appointments: list[AppointmentWithServices] = field(default_factory=list)
    error_message: Optional[str] = None


@dataclass
class CancellationResult:
    """
    Result of cancelling an appointment.

    Attributes:
        success: Whether the appointment was cancelled
        appointments: Refreshed appointment list (empty if the refresh failed)
        error_code: NOT_CANCELLABLE, API_ERROR or SERVICE_UNAVAILABLE
        error_message: Error message if success is False
    """
    success: bool
    appointments: list[AppointmentWithServices] = field(default_factory=list)
    error_code: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class AppointmentSummary:
    """Display fields for one appointment in a client's list."""
    appointment_id: int
    date: str
    time_range: str
    service_names: list[str]
    status_label: str
    status_color: str
    is_cancellable: bool


def get_upcoming_appointments(
    appointments: list[AppointmentWithServices],
    now: datetime | None = None,
) -> list[AppointmentWithServices]:
    """Scheduled appointments that have not started yet, soonest first."""
    now = localize(now or datetime.now().astimezone())
    upcoming = [
        appointment
        for appointment in appointments
        if appointment.status == AppointmentStatus.SCHEDULED
        and appointment.start_at is not None
        and localize(appointment.start_at) >= now
    ]
    return sorted(upcoming, key=lambda appointment: localize(appointment.start_at))


def _local(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    return localize(dt).astimezone(business_timezone())


def summarize_appointment(appointment: AppointmentWithServices) -> AppointmentSummary:
    """Status label and colour, local times and service names for display."""
    start = _local(appointment.start_at)
    end = _local(appointment.end_at)
    return AppointmentSummary(
        appointment_id=appointment.id,
        date=format_date(appointment.appointment_date or start),
        time_range=f"{format_time(start, '%H:%M')}-{format_time(end, '%H:%M')}",
        service_names=[line.service_name for line in appointment.appointment_services],
        status_label=get_appointment_status_label(appointment.status),
        status_color=get_appointment_status_color(appointment.status),
        is_cancellable=appointment.is_cancellable,
    )


def format_appointments_list(appointments: list[AppointmentWithServices]) -> str:
    """
    Build a numbered appointment list for display.

    Format:
    1. 2025-12-01 09:00-09:50 Men's Cut + Beard Trim [Scheduled]
    2. 2025-12-08 14:00-14:30 Men's Cut [Cancelled]
    """
    lines = []
    for i, appointment in enumerate(appointments, 1):
        summary = summarize_appointment(appointment)
        services = " + ".join(summary.service_names) or "-"
        lines.append(f"{i}. {summary.date} {summary.time_range} {services} [{summary.status_label}]")
    return "\n".join(lines)


async def load_client_appointments(
    api_client: BookingAPIClient,
    business_id: int,
    client_id: int,
) -> ClientAppointmentsResult:
    """Fetch the client profile and their appointments concurrently."""
    try:
        client, appointments = await asyncio.gather(
            api_client.get_client(business_id, client_id),
            api_client.get_client_appointments(business_id, client_id),
        )
    except BookingAPIError as e:
        logger.error(
            f"Error loading client data: {e}",
            extra={"business_id": business_id, "client_id": client_id},
        )
        return ClientAppointmentsResult(success=False, error_message="Failed to load client data")
    except pybreaker.CircuitBreakerError:
        return ClientAppointmentsResult(
            success=False,
            error_message="Booking service is temporarily unavailable",
        )

    logger.info(
        f"Loaded {len(appointments)} appointments for client {client_id}",
        extra={"business_id": business_id, "client_id": client_id},
    )
    return ClientAppointmentsResult(success=True, client=client, appointments=appointments)


async def cancel_appointment(
    api_client: BookingAPIClient,
    business_id: int,
    client_id: int,
    appointment: AppointmentWithServices,
) -> CancellationResult:
    """
    Cancel a scheduled appointment and return the refreshed list.

    Args:
        api_client: Booking API client
        business_id: Business the appointment belongs to
        client_id: Owner of the appointment
        appointment: Appointment to cancel

    Returns:
        CancellationResult
    """
    if not appointment.is_cancellable:
        logger.warning(
            f"Appointment {appointment.id} not cancellable | status={appointment.status.value}",
            extra={"appointment_id": appointment.id},
        )
        return CancellationResult(
            success=False,
            error_code="NOT_CANCELLABLE",
            error_message="Only scheduled appointments can be cancelled",
        )

    try:
        await api_client.cancel_appointment(business_id, client_id, appointment.id)
    except BookingAPIError as e:
        logger.error(
            f"Error cancelling appointment {appointment.id}: {e}",
            extra={"appointment_id": appointment.id, "business_id": business_id},
        )
        return CancellationResult(
            success=False,
            error_code="API_ERROR",
            error_message="Failed to cancel appointment",
        )
    except pybreaker.CircuitBreakerError:
        return CancellationResult(
            success=False,
            error_code="SERVICE_UNAVAILABLE",
            error_message="Booking service is temporarily unavailable",
        )

    try:
        appointments = await api_client.get_client_appointments(business_id, client_id)
    except (BookingAPIError, pybreaker.CircuitBreakerError) as e:
        # Cancellation already went through; the list is just stale
        logger.warning(f"Appointment list refresh failed after cancellation: {e}")
        appointments = []

    return CancellationResult(success=True, appointments=appointments)
