"""
BookingFlow - step state machine for the booking wizard.

The wizard moves strictly through
SERVICE_SELECTION -> TIME_SLOT_SELECTION -> CUSTOMER_INFO -> CONFIRMATION.

Key responsibilities:
- Gate forward navigation on readiness predicates computed from the selection
- Allow backward navigation from every step but the first
- Reach CONFIRMATION only through the explicit confirm action, after the
  appointment was created
- Log all transitions for debugging and monitoring
"""

import logging
from typing import TYPE_CHECKING, Any, ClassVar

from booking.flow.models import BookingStep, FlowResult
from booking.state.selection import BookingSelection

if TYPE_CHECKING:
    from booking.transactions.appointment_submission import AppointmentSubmission

logger = logging.getLogger(__name__)


class BookingFlow:
    """
    Step state machine controlling the booking wizard.

    The flow does not own any booking data itself; it reads the selection
    aggregate to decide whether a step may be left and asks it to drop a
    stale slot when the client walks back to service selection.

    Example:
        >>> selection = BookingSelection("session-1")
        >>> flow = BookingFlow(selection, session_id="session-1")
        >>> flow.next_step().success
        False
        >>> selection.add_service(haircut)
        True
        >>> flow.next_step().new_step
        BookingStep.TIME_SLOT_SELECTION
    """

    # Forward transitions reachable through next_step()
    # CUSTOMER_INFO -> CONFIRMATION is only reachable through confirm_booking()
    TRANSITIONS: ClassVar[dict[BookingStep, BookingStep]] = {
        BookingStep.SERVICE_SELECTION: BookingStep.TIME_SLOT_SELECTION,
        BookingStep.TIME_SLOT_SELECTION: BookingStep.CUSTOMER_INFO,
    }

    BACKWARD_TRANSITIONS: ClassVar[dict[BookingStep, BookingStep]] = {
        BookingStep.TIME_SLOT_SELECTION: BookingStep.SERVICE_SELECTION,
        BookingStep.CUSTOMER_INFO: BookingStep.TIME_SLOT_SELECTION,
        BookingStep.CONFIRMATION: BookingStep.CUSTOMER_INFO,
    }

    def __init__(self, selection: BookingSelection, session_id: str = "") -> None:
        self._selection = selection
        self._session_id = session_id
        self._step = BookingStep.SERVICE_SELECTION

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def current_step(self) -> BookingStep:
        return self._step

    @property
    def selection(self) -> BookingSelection:
        return self._selection

    # ------------------------------------------------------------------
    # Readiness predicates
    # ------------------------------------------------------------------

    def can_proceed_to_time_slot_step(self) -> bool:
        """At least one service is selected."""
        return not self._selection.is_empty

    def can_proceed_to_customer_info_step(self) -> bool:
        """Services, a date and a slot are chosen."""
        return (
            self.can_proceed_to_time_slot_step()
            and self._selection.chosen_date is not None
            and self._selection.time_slot is not None
        )

    def can_proceed_to_confirmation_step(self) -> bool:
        """Everything above plus a client identity."""
        return self.can_proceed_to_customer_info_step() and self._selection.client_info is not None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next_step(self) -> FlowResult:
        """
        Advance to the next step if the current step's guard holds.

        Returns:
            FlowResult; on refusal the step is unchanged and
            validation_errors says why
        """
        from_step = self._step
        to_step = self.TRANSITIONS.get(from_step)

        validation_errors = self._get_validation_errors(from_step, to_step)
        if validation_errors:
            logger.warning(
                "Booking flow transition rejected: %s -> ? | errors=%s | session_id=%s",
                from_step.value,
                validation_errors,
                self._session_id,
            )
            return FlowResult(
                success=False,
                new_step=self._step,
                next_action="stay_on_step",
                validation_errors=validation_errors,
            )

        self._step = to_step
        self._log_transition(from_step)

        return FlowResult(
            success=True,
            new_step=self._step,
            next_action=self._get_next_action(),
        )

    def previous_step(self) -> FlowResult:
        """
        Go back one step.

        Refused only from the first step. Walking back from time slot
        selection to service selection drops the chosen slot, since the
        services it was computed for may change.
        """
        from_step = self._step
        to_step = self.BACKWARD_TRANSITIONS.get(from_step)

        if to_step is None:
            logger.warning(
                "Booking flow transition rejected: %s -> ? | errors=%s | session_id=%s",
                from_step.value,
                ["already at first step"],
                self._session_id,
            )
            return FlowResult(
                success=False,
                new_step=self._step,
                next_action="stay_on_step",
                validation_errors=[f"Cannot go back from step '{from_step.value}'"],
            )

        if from_step == BookingStep.TIME_SLOT_SELECTION:
            self._selection.set_time_slot(None)

        self._step = to_step
        self._log_transition(from_step)

        return FlowResult(
            success=True,
            new_step=self._step,
            next_action=self._get_next_action(),
        )

    def set_current_step(self, step: BookingStep) -> None:
        """Jump directly to a step without checking guards (internal use only)."""
        from_step = self._step
        self._step = step
        self._log_transition(from_step)

    def reset_booking(self) -> None:
        """Clear the whole selection and return to service selection."""
        from_step = self._step
        self._selection.clear()
        self._step = BookingStep.SERVICE_SELECTION

        logger.info(
            "Booking flow reset: %s -> %s | session_id=%s",
            from_step.value,
            self._step.value,
            self._session_id,
        )

    async def confirm_booking(
        self,
        submission: "AppointmentSubmission",
        business_id: int,
        notes: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> FlowResult:
        """
        Submit the appointment and move to CONFIRMATION if it was created.

        On failure the step stays at CUSTOMER_INFO and the selection is left
        untouched so the client can retry. The submission is never retried
        automatically.

        Args:
            submission: Appointment submission transaction
            business_id: Business the appointment is booked with
            notes: Override for the selection notes
            metadata: Overrides for the default metadata flags

        Returns:
            FlowResult whose ``data`` holds the submission result
        """
        from_step = self._step

        validation_errors: list[str] = []
        if from_step != BookingStep.CUSTOMER_INFO:
            validation_errors.append(
                f"Booking can only be confirmed from '{BookingStep.CUSTOMER_INFO.value}', "
                f"current step is '{from_step.value}'"
            )
        else:
            validation_errors.extend(self._get_validation_errors(from_step, BookingStep.CONFIRMATION))

        if validation_errors:
            logger.warning(
                "Booking confirmation rejected | step=%s | errors=%s | session_id=%s",
                from_step.value,
                validation_errors,
                self._session_id,
            )
            return FlowResult(
                success=False,
                new_step=self._step,
                next_action="stay_on_step",
                validation_errors=validation_errors,
            )

        result = await submission.execute(
            self._selection,
            business_id=business_id,
            notes=notes,
            metadata=metadata,
        )

        if not result.get("success"):
            logger.warning(
                "Booking confirmation failed | error_code=%s | session_id=%s",
                result.get("error_code"),
                self._session_id,
            )
            return FlowResult(
                success=False,
                new_step=self._step,
                next_action="show_submission_error",
                validation_errors=[result.get("error_message", "Appointment could not be created")],
                data=result,
            )

        self.set_current_step(BookingStep.CONFIRMATION)

        return FlowResult(
            success=True,
            new_step=self._step,
            next_action=self._get_next_action(),
            data=result,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_validation_errors(
        self,
        from_step: BookingStep,
        to_step: BookingStep | None,
    ) -> list[str]:
        """Get list of reasons why ``from_step -> to_step`` is not allowed."""
        errors: list[str] = []

        if to_step is None:
            errors.append(f"Step '{from_step.value}' cannot advance with next_step")
            return errors

        if to_step == BookingStep.TIME_SLOT_SELECTION:
            if self._selection.is_empty:
                errors.append("Missing required field: 'services'")

        elif to_step == BookingStep.CUSTOMER_INFO:
            if self._selection.is_empty:
                errors.append("Missing required field: 'services'")
            if self._selection.chosen_date is None:
                errors.append("Missing required field: 'chosen_date'")
            if self._selection.time_slot is None:
                errors.append("Missing required field: 'time_slot'")

        elif to_step == BookingStep.CONFIRMATION:
            if not self.can_proceed_to_customer_info_step():
                errors.append("Selection incomplete: services, date and time slot are required")
            if self._selection.client_info is None:
                errors.append("Missing required field: 'client_info'")

        return errors

    def _get_next_action(self) -> str:
        """Determine the suggested next action based on the current step."""
        next_actions: dict[BookingStep, str] = {
            BookingStep.SERVICE_SELECTION: "show_services",
            BookingStep.TIME_SLOT_SELECTION: "show_available_slots",
            BookingStep.CUSTOMER_INFO: "collect_customer_info",
            BookingStep.CONFIRMATION: "show_booking_confirmation",
        }
        return next_actions.get(self._step, "unknown_action")

    def _log_transition(self, from_step: BookingStep) -> None:
        logger.info(
            "Booking flow transition: %s -> %s | session_id=%s",
            from_step.value,
            self._step.value,
            self._session_id,
        )
