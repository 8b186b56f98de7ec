"""
Booking wizard flow control.

Public exports:
    - BookingFlow: Step state machine
    - BookingStep: Enum of wizard steps
    - FlowResult: Result of flow operations
"""

from booking.flow.booking_flow import BookingFlow
from booking.flow.models import BookingStep, FlowResult

__all__ = [
    "BookingFlow",
    "BookingStep",
    "FlowResult",
]
