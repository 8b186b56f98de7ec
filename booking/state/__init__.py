"""
Booking state: the selection aggregate and the slot composition engine.

Public exports:
    - BookingSelection: Selection aggregate owned by one wizard session
    - compose_appointment_services: Chain per-service times from a slot
    - SlotQuery, SlotQueryTracker: Stale slot response detection
"""

from booking.state.composition import (
    appointment_window,
    clear_schedule,
    compose_appointment_services,
)
from booking.state.selection import BookingSelection
from booking.state.slot_query import SlotQuery, SlotQueryTicket, SlotQueryTracker

__all__ = [
    "BookingSelection",
    "SlotQuery",
    "SlotQueryTicket",
    "SlotQueryTracker",
    "appointment_window",
    "clear_schedule",
    "compose_appointment_services",
]
