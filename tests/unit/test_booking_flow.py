"""
Unit tests for BookingFlow - step state machine for the booking wizard.

Tests cover:
- Step enum ordering
- Forward guards (services; date and slot)
- CUSTOMER_INFO -> CONFIRMATION only through confirm_booking
- Backward navigation and slot clearing
- Direct jumps and reset
- Logging behavior
"""

import logging
from unittest.mock import AsyncMock

import pytest

from booking.flow import BookingFlow, BookingStep, FlowResult
from booking.state.selection import BookingSelection


@pytest.fixture
def selection():
    return BookingSelection("test-session")


@pytest.fixture
def flow(selection):
    return BookingFlow(selection, session_id="test-session")


@pytest.fixture
def flow_at_customer_info(flow, selection, haircut, beard_trim, booking_date, slot_9am, returning_client):
    """Flow advanced to CUSTOMER_INFO with a complete selection."""
    selection.add_service(haircut)
    selection.add_service(beard_trim)
    flow.next_step()
    selection.set_chosen_date(booking_date)
    selection.set_time_slot(slot_9am)
    flow.next_step()
    selection.set_client_info(returning_client)
    assert flow.current_step == BookingStep.CUSTOMER_INFO
    return flow


@pytest.fixture
def submission():
    mock = AsyncMock()
    mock.execute.return_value = {"success": True, "appointment_id": 9001}
    return mock


class TestBookingStepEnum:
    """Tests for BookingStep enum."""

    def test_steps_in_order(self):
        assert [step.value for step in BookingStep] == [
            "service_selection",
            "time_slot_selection",
            "customer_info",
            "confirmation",
        ]

    def test_order_property(self):
        assert BookingStep.SERVICE_SELECTION.order == 0
        assert BookingStep.CONFIRMATION.order == 3


class TestForwardGuards:
    """next_step() guard correctness."""

    def test_starts_at_service_selection(self, flow):
        assert flow.current_step == BookingStep.SERVICE_SELECTION

    def test_next_fails_without_services(self, flow):
        result = flow.next_step()

        assert isinstance(result, FlowResult)
        assert result.success is False
        assert result.new_step == BookingStep.SERVICE_SELECTION
        assert "Missing required field: 'services'" in result.validation_errors

    def test_next_succeeds_with_one_service(self, flow, selection, haircut):
        selection.add_service(haircut)

        result = flow.next_step()

        assert result.success is True
        assert result.new_step == BookingStep.TIME_SLOT_SELECTION
        assert result.next_action == "show_available_slots"

    def test_next_from_time_slot_requires_date_and_slot(self, flow, selection, haircut, booking_date):
        selection.add_service(haircut)
        flow.next_step()

        result = flow.next_step()
        assert result.success is False
        assert "Missing required field: 'chosen_date'" in result.validation_errors
        assert "Missing required field: 'time_slot'" in result.validation_errors

        selection.set_chosen_date(booking_date)
        result = flow.next_step()
        assert result.success is False
        assert result.validation_errors == ["Missing required field: 'time_slot'"]

    def test_next_from_time_slot_with_date_and_slot(self, flow, selection, haircut, booking_date, slot_9am):
        selection.add_service(haircut)
        flow.next_step()
        selection.set_chosen_date(booking_date)
        selection.set_time_slot(slot_9am)

        result = flow.next_step()

        assert result.success is True
        assert flow.current_step == BookingStep.CUSTOMER_INFO

    def test_service_added_after_slot_blocks_next(
        self, flow, selection, haircut, beard_trim, booking_date, slot_9am
    ):
        selection.add_service(haircut)
        flow.next_step()
        selection.set_chosen_date(booking_date)
        selection.set_time_slot(slot_9am)

        selection.add_service(beard_trim)
        result = flow.next_step()

        assert result.success is False
        assert result.validation_errors == ["Missing required field: 'time_slot'"]
        assert flow.current_step == BookingStep.TIME_SLOT_SELECTION

    def test_next_never_reaches_confirmation(self, flow_at_customer_info):
        result = flow_at_customer_info.next_step()

        assert result.success is False
        assert flow_at_customer_info.current_step == BookingStep.CUSTOMER_INFO

    def test_next_from_confirmation_fails(self, flow):
        flow.set_current_step(BookingStep.CONFIRMATION)

        assert flow.next_step().success is False
        assert flow.current_step == BookingStep.CONFIRMATION


class TestReadinessPredicates:
    """can_proceed_* predicates."""

    def test_predicates_on_empty_selection(self, flow):
        assert flow.can_proceed_to_time_slot_step() is False
        assert flow.can_proceed_to_customer_info_step() is False
        assert flow.can_proceed_to_confirmation_step() is False

    def test_predicates_on_complete_selection(self, flow_at_customer_info):
        assert flow_at_customer_info.can_proceed_to_time_slot_step() is True
        assert flow_at_customer_info.can_proceed_to_customer_info_step() is True
        assert flow_at_customer_info.can_proceed_to_confirmation_step() is True

    def test_confirmation_needs_client(self, flow_at_customer_info, selection):
        selection.set_client_info(None)

        assert flow_at_customer_info.can_proceed_to_confirmation_step() is False


class TestBackwardNavigation:
    """previous_step() behavior."""

    def test_previous_from_first_step_fails(self, flow):
        result = flow.previous_step()

        assert result.success is False
        assert flow.current_step == BookingStep.SERVICE_SELECTION

    def test_back_to_services_clears_slot(self, flow, selection, haircut, booking_date, slot_9am):
        selection.add_service(haircut)
        flow.next_step()
        selection.set_chosen_date(booking_date)
        selection.set_time_slot(slot_9am)

        result = flow.previous_step()

        assert result.success is True
        assert result.new_step == BookingStep.SERVICE_SELECTION
        assert selection.time_slot is None
        assert selection.chosen_date == booking_date

    def test_back_from_customer_info_keeps_slot(self, flow_at_customer_info, selection, slot_9am):
        result = flow_at_customer_info.previous_step()

        assert result.new_step == BookingStep.TIME_SLOT_SELECTION
        assert selection.time_slot == slot_9am

    def test_back_from_confirmation(self, flow):
        flow.set_current_step(BookingStep.CONFIRMATION)

        assert flow.previous_step().new_step == BookingStep.CUSTOMER_INFO


class TestDirectJumpAndReset:
    """set_current_step() and reset_booking()."""

    def test_set_current_step_bypasses_guards(self, flow):
        flow.set_current_step(BookingStep.CUSTOMER_INFO)

        assert flow.current_step == BookingStep.CUSTOMER_INFO

    def test_reset_clears_selection_and_returns_to_start(self, flow_at_customer_info, selection):
        flow_at_customer_info.set_current_step(BookingStep.CONFIRMATION)

        flow_at_customer_info.reset_booking()

        assert flow_at_customer_info.current_step == BookingStep.SERVICE_SELECTION
        assert selection.is_empty
        assert selection.staff_preference is None
        assert selection.chosen_date is None
        assert selection.time_slot is None
        assert selection.client_info is None


class TestConfirmBooking:
    """confirm_booking() drives CUSTOMER_INFO -> CONFIRMATION."""

    @pytest.mark.asyncio
    async def test_success_moves_to_confirmation(self, flow_at_customer_info, selection, submission):
        result = await flow_at_customer_info.confirm_booking(submission, business_id=1)

        assert result.success is True
        assert result.new_step == BookingStep.CONFIRMATION
        assert result.data["appointment_id"] == 9001
        submission.execute.assert_awaited_once_with(selection, business_id=1, notes=None, metadata=None)

    @pytest.mark.asyncio
    async def test_failure_keeps_step_and_selection(self, flow_at_customer_info, selection, submission, slot_9am):
        submission.execute.return_value = {
            "success": False,
            "error_code": "API_ERROR",
            "error_message": "Slot no longer available",
            "details": {},
        }

        result = await flow_at_customer_info.confirm_booking(submission, business_id=1)

        assert result.success is False
        assert result.new_step == BookingStep.CUSTOMER_INFO
        assert result.validation_errors == ["Slot no longer available"]
        assert selection.time_slot == slot_9am
        assert len(selection.services) == 2

    @pytest.mark.asyncio
    async def test_failure_is_not_retried(self, flow_at_customer_info, submission):
        submission.execute.return_value = {"success": False, "error_message": "boom"}

        await flow_at_customer_info.confirm_booking(submission, business_id=1)

        assert submission.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_confirm_rejected_outside_customer_info(self, flow, selection, haircut, submission):
        selection.add_service(haircut)

        result = await flow.confirm_booking(submission, business_id=1)

        assert result.success is False
        submission.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_confirm_rejected_without_client(self, flow_at_customer_info, selection, submission):
        selection.set_client_info(None)

        result = await flow_at_customer_info.confirm_booking(submission, business_id=1)

        assert result.success is False
        assert "Missing required field: 'client_info'" in result.validation_errors
        submission.execute.assert_not_awaited()


class TestLogging:
    """Transitions are logged with the session id."""

    def test_transition_logged(self, flow, selection, haircut, caplog):
        selection.add_service(haircut)

        with caplog.at_level(logging.INFO, logger="booking.flow.booking_flow"):
            flow.next_step()

        assert "Booking flow transition: service_selection -> time_slot_selection" in caplog.text
        assert "session_id=test-session" in caplog.text

    def test_rejection_logged_as_warning(self, flow, caplog):
        with caplog.at_level(logging.WARNING, logger="booking.flow.booking_flow"):
            flow.next_step()

        assert "Booking flow transition rejected" in caplog.text
