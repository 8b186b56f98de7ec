"""
Slot composition engine.

Turns one chosen time slot into a fully time-stamped appointment. Services in
a booking are performed back-to-back by the staff member the slot is bound
to, so each line starts where the previous one ended:

    cursor = slot.start_time
    for line in services (selection order):
        line.start_at = cursor
        line.end_at   = cursor + line.effective_duration
        cursor        = line.end_at

After composition the last ``end_at`` equals
``slot.start_time + total duration`` exactly.
"""

import logging
from datetime import datetime, timedelta

from booking.models.appointment import AppointmentService
from booking.models.catalog import StaffPreference, TimeSlot
from booking.utils.formatting import localize

logger = logging.getLogger(__name__)


def composition_line_id(start_time: datetime, position: int) -> int:
    """
    Line-item id for the line at ``position`` of a schedule starting at ``start_time``.

    Epoch milliseconds of the slot start plus the line position: unique
    within one appointment and identical across re-compositions of the same
    slot. Display/list key only, never a business key.
    """
    return int(start_time.timestamp() * 1000) + position


def compose_appointment_services(
    services: list[AppointmentService],
    slot: TimeSlot,
    staff_preference: StaffPreference | None = None,
    staff_names: dict[int, str] | None = None,
) -> list[AppointmentService]:
    """
    Lay out each service's start/end time by chaining durations from the slot start.

    Every call recomputes all lines from scratch and returns new line objects;
    the input lines are left untouched.

    Args:
        services: Selected lines, in selection order
        slot: Chosen availability slot (start time + assigned staff)
        staff_preference: Staff explicitly requested by the client, None for "Anyone"
        staff_names: Known staff display names by id, used when the backend
            assigns someone other than the requested staff

    Returns:
        New list of lines with start_at, end_at, staff and is_staff_request set

    Raises:
        ValueError: If there are no services (no slot can exist for zero duration)

    Example:
        >>> lines = compose_appointment_services([cut_30, beard_20], slot_9am)
        >>> [(l.start_at.time(), l.end_at.time()) for l in lines]
        [(09:00, 09:30), (09:30, 09:50)]
    """
    if not services:
        raise ValueError("Cannot compose an appointment without services")

    start_time = localize(slot.start_time)
    if staff_preference is not None and staff_preference.id == slot.staff_id:
        staff_name = staff_preference.name
    else:
        staff_name = (staff_names or {}).get(slot.staff_id, "")

    cursor = start_time
    composed: list[AppointmentService] = []

    for position, line in enumerate(services):
        end_at = cursor + timedelta(minutes=line.effective_duration)
        composed.append(
            line.model_copy(
                update={
                    "id": composition_line_id(start_time, position),
                    "start_at": cursor,
                    "end_at": end_at,
                    "staff": slot.staff_id,
                    "staff_name": staff_name,
                    "is_staff_request": staff_preference is not None,
                }
            )
        )
        cursor = end_at

    logger.debug(
        "Composed %d services | start=%s | end=%s | staff_id=%s",
        len(composed),
        start_time.isoformat(),
        cursor.isoformat(),
        slot.staff_id,
    )

    return composed


def clear_schedule(services: list[AppointmentService]) -> list[AppointmentService]:
    """Return copies of the lines with their slot-derived fields reset."""
    return [
        line.model_copy(
            update={
                "id": None,
                "start_at": None,
                "end_at": None,
                "staff": None,
                "staff_name": "",
                "is_staff_request": False,
            }
        )
        for line in services
    ]


def appointment_window(services: list[AppointmentService]) -> tuple[datetime, datetime] | None:
    """
    Overall (start, end) span of a composed appointment.

    Returns None if any line is not scheduled yet.
    """
    if not services or not all(line.is_scheduled for line in services):
        return None
    return services[0].start_at, services[-1].end_at
