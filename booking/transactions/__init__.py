"""Appointment submission transaction."""

from booking.transactions.appointment_submission import (
    AppointmentSubmission,
    build_appointment_payload,
)

__all__ = ["AppointmentSubmission", "build_appointment_payload"]
