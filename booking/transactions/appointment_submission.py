"""
Appointment submission for the booking wizard.

Builds the appointment creation payload from a fully composed selection and
sends it to the booking API. The AppointmentSubmission.execute() method is the
single entry point for creating appointments; it is called by
BookingFlow.confirm_booking().

The submission is sent exactly once per call. A failed submission leaves the
selection untouched so the client can retry without re-entering anything.
"""

import logging
from typing import Any

import pybreaker

from booking.models.appointment import DEFAULT_APPOINTMENT_METADATA, CreateAppointmentPayload
from booking.state.selection import BookingSelection
from shared.booking_api_client import BookingAPIClient, BookingAPIError

logger = logging.getLogger(__name__)


def build_appointment_payload(
    selection: BookingSelection,
    business_id: int,
    notes: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> CreateAppointmentPayload:
    """
    Assemble the creation payload from a composed selection.

    Service lines are packaged exactly as the composition engine laid them
    out. Default metadata flags are applied unless overridden.

    Args:
        selection: Selection with services, date and slot chosen
        business_id: Business the appointment is booked with
        notes: Overrides the selection notes when given
        metadata: Overrides for individual metadata flags

    Returns:
        CreateAppointmentPayload ready to be serialized

    Raises:
        ValueError: If services, date or slot are missing
    """
    if selection.is_empty:
        raise ValueError("No services selected")
    if selection.chosen_date is None:
        raise ValueError("No date chosen")

    window = selection.get_appointment_window()
    if window is None:
        raise ValueError("No time slot chosen")
    start_at, end_at = window

    client_info = selection.client_info

    return CreateAppointmentPayload(
        business_id=business_id,
        client_id=client_info.id if client_info else None,
        appointment_date=selection.chosen_date,
        start_at=start_at,
        end_at=end_at,
        appointment_services=selection.services,
        notes=selection.notes if notes is None else notes,
        metadata={**DEFAULT_APPOINTMENT_METADATA, **(metadata or {})},
    )


class AppointmentSubmission:
    """
    Transaction handler for creating an appointment from the wizard.

    1. Assemble the payload from the selection
    2. POST it to the appointment creation endpoint (no automatic retry)
    3. Report the outcome as a result dict
    """

    def __init__(self, api_client: BookingAPIClient, session_id: str = "") -> None:
        self._api_client = api_client
        self._session_id = session_id

    async def execute(
        self,
        selection: BookingSelection,
        business_id: int,
        notes: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Create the appointment.

        Returns:
            Dict with submission result. Structure:

            Success:
                {
                    "success": True,
                    "appointment": AppointmentWithServices,
                    "appointment_id": int,
                    "start_at": str,
                    "end_at": str,
                    "duration_minutes": int,
                    "total_price": str,
                }

            Failure:
                {
                    "success": False,
                    "error_code": str,
                    "error_message": str,
                    "details": dict
                }
        """
        try:
            payload = build_appointment_payload(selection, business_id, notes, metadata)
        except ValueError as e:
            logger.warning(
                "Appointment submission rejected: %s",
                e,
                extra={"session_id": self._session_id, "business_id": business_id},
            )
            return {
                "success": False,
                "error_code": "INCOMPLETE_SELECTION",
                "error_message": str(e),
                "details": {},
            }

        logger.info(
            "Submitting appointment | start_at=%s | services=%d",
            payload.start_at.isoformat(),
            len(payload.appointment_services),
            extra={"session_id": self._session_id, "business_id": business_id},
        )

        try:
            appointment = await self._api_client.create_appointment_with_services(payload)

        except BookingAPIError as e:
            logger.error(
                "Appointment submission failed: %s",
                e,
                extra={"session_id": self._session_id, "business_id": business_id},
            )
            return {
                "success": False,
                "error_code": "API_ERROR",
                "error_message": e.message,
                "details": {"status_code": e.status_code, "errors": e.errors},
            }

        except pybreaker.CircuitBreakerError as e:
            logger.error(
                "Appointment submission skipped, booking API unavailable",
                extra={"session_id": self._session_id, "business_id": business_id},
            )
            return {
                "success": False,
                "error_code": "SERVICE_UNAVAILABLE",
                "error_message": "Booking service is temporarily unavailable",
                "details": {"error": str(e)},
            }

        except Exception as e:
            logger.error(
                "Unexpected error in appointment submission",
                extra={"session_id": self._session_id, "error": str(e)},
                exc_info=True,
            )
            return {
                "success": False,
                "error_code": "SUBMISSION_ERROR",
                "error_message": "Unexpected error while creating the appointment",
                "details": {"error": str(e)},
            }

        logger.info(
            "Appointment created",
            extra={
                "session_id": self._session_id,
                "business_id": business_id,
                "appointment_id": appointment.id,
            },
        )

        wire = payload.model_dump(mode="json")
        return {
            "success": True,
            "appointment": appointment,
            "appointment_id": appointment.id,
            "start_at": wire["start_at"],
            "end_at": wire["end_at"],
            "duration_minutes": selection.get_total_duration(),
            "total_price": str(selection.get_total_price()),
        }
