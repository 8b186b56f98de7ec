"""
Data models for the booking wizard flow.

- BookingStep: Enum of wizard steps, strictly ordered
- FlowResult: Result of a step transition or of the confirm action
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class BookingStep(str, Enum):
    """Steps of the booking wizard."""

    SERVICE_SELECTION = "service_selection"  # Picking services
    TIME_SLOT_SELECTION = "time_slot_selection"  # Picking staff, date and slot
    CUSTOMER_INFO = "customer_info"  # Identifying the client
    CONFIRMATION = "confirmation"  # Booking created (terminal display step)

    @property
    def order(self) -> int:
        return list(BookingStep).index(self)


@dataclass
class FlowResult:
    """
    Result of a booking flow operation.

    Attributes:
        success: Whether the step changed (or the booking was confirmed)
        new_step: The current step after the operation
        next_action: Suggested next action for the UI
        validation_errors: Why the operation was refused, if it was
        data: Extra payload (e.g. the submission result on confirm)
    """

    success: bool
    new_step: BookingStep
    next_action: str = ""
    validation_errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
