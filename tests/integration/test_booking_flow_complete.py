"""
Complete End-to-End Booking Flow Tests.

This test suite drives a BookingSession from SERVICE_SELECTION to CONFIRMATION
against a mocked booking API, with special focus on:
1. Totals and slot composition for a multi-service booking
2. The exact payload sent to the appointment endpoint
3. Slot invalidation when inputs change mid-flow
4. Failure and reset behaviour

Test Coverage:
- Happy path: two services, "Anyone", new client
- Requested staff flag carried through to the payload
- Date or service change after a slot was chosen forces a new slot choice
- Failed submission keeps the selection for a retry
- Reset from CONFIRMATION starts over
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from booking.flow import BookingStep
from booking.models import ClientCreate
from booking.session import BookingSession
from booking.utils.formatting import format_duration, format_price
from shared.booking_api_client import BookingAPIError

pytestmark = pytest.mark.integration


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def session_id() -> str:
    """Generate unique session ID for test."""
    return f"test-complete-flow-{uuid4()}"


@pytest.fixture
async def session(mock_api_client, session_id) -> BookingSession:
    """Session opened for Sunset Salon with catalog and staff loaded."""
    mock_api_client.create_client.side_effect = lambda client: client.model_copy(update={"id": 77})
    booking_session = BookingSession(mock_api_client, business_id=1, session_id=session_id)
    await booking_session.initialize_business()
    await booking_session.load_catalog()
    await booking_session.load_staff()
    return booking_session


async def walk_to_customer_info(session: BookingSession, booking_date: date, slot) -> None:
    assert session.toggle_service(101)
    assert session.toggle_service(102)
    assert session.flow.next_step().success

    await session.choose_date(booking_date)
    assert session.choose_time_slot(slot)
    assert session.flow.next_step().success


# ============================================================================
# Happy Path
# ============================================================================


class TestCompleteBookingFlow:
    """Service selection through confirmation."""

    @pytest.mark.asyncio
    async def test_two_services_anyone_new_client(
        self, session, mock_api_client, booking_date, slot_9am
    ):
        # Step 1: services A (30 min, $45) and B (20 min, $15)
        session.toggle_service(101)
        session.toggle_service(102)
        assert session.selection.get_total_duration() == 50
        assert session.selection.get_total_price() == Decimal("60.00")
        assert format_duration(session.selection.get_total_duration()) == "0h 50m"
        assert format_price(session.selection.get_total_price()) == "$60.00"

        result = session.flow.next_step()
        assert result.new_step == BookingStep.TIME_SLOT_SELECTION

        # Step 2: date, then the 9:00 slot served by staff 7
        slots = await session.choose_date(booking_date)
        assert slot_9am in slots
        assert mock_api_client.get_time_slots.await_args.kwargs["duration"] == 50

        assert session.choose_time_slot(slot_9am)
        lines = session.selection.services
        assert lines[0].start_at == datetime.fromisoformat("2025-12-01T09:00:00-05:00")
        assert lines[0].end_at == datetime.fromisoformat("2025-12-01T09:30:00-05:00")
        assert lines[1].start_at == datetime.fromisoformat("2025-12-01T09:30:00-05:00")
        assert lines[1].end_at == datetime.fromisoformat("2025-12-01T09:50:00-05:00")
        assert all(line.staff == 7 and not line.is_staff_request for line in lines)

        result = session.flow.next_step()
        assert result.new_step == BookingStep.CUSTOMER_INFO

        # Step 3: new client
        client = await session.lookup_client_by_phone("416-555-0100")
        assert client.is_registered is False
        saved = await session.register_client("Sam", "Rivera", email="sam@example.com")
        assert saved.id == 77

        # Step 4: confirmation
        result = await session.confirm_booking()

        assert result.success is True
        assert result.new_step == BookingStep.CONFIRMATION
        assert result.next_action == "show_booking_confirmation"
        assert result.data["appointment_id"] == 9001
        assert result.data["total_price"] == "60.00"

        mock_api_client.create_appointment_with_services.assert_awaited_once()
        payload = mock_api_client.create_appointment_with_services.await_args.args[0]
        wire = payload.model_dump(mode="json")
        assert wire["business_id"] == 1
        assert wire["client_id"] == 77
        assert wire["appointment_date"] == "2025-12-01"
        assert wire["start_at"] == "2025-12-01T09:00:00-05:00"
        assert wire["end_at"] == "2025-12-01T09:50:00-05:00"
        assert [
            (line["service"], line["start_at"], line["end_at"], line["staff"], line["is_staff_request"])
            for line in wire["appointment_services"]
        ] == [
            (101, "2025-12-01T09:00:00-05:00", "2025-12-01T09:30:00-05:00", 7, False),
            (102, "2025-12-01T09:30:00-05:00", "2025-12-01T09:50:00-05:00", 7, False),
        ]
        assert wire["metadata"]["is_send_confirmation_sms"] is True

    @pytest.mark.asyncio
    async def test_requested_staff_flag_reaches_payload(
        self, session, mock_api_client, booking_date, slot_9am, returning_client
    ):
        mock_api_client.get_client_by_phone.return_value = returning_client
        session.toggle_service(101)
        session.flow.next_step()
        await session.choose_staff(7)
        await session.choose_date(booking_date)
        session.choose_time_slot(slot_9am)
        session.flow.next_step()
        await session.lookup_client_by_phone("416-555-0199")

        result = await session.confirm_booking()

        assert result.success is True
        payload = mock_api_client.create_appointment_with_services.await_args.args[0]
        assert payload.appointment_services[0].is_staff_request is True
        assert payload.appointment_services[0].staff_name == "Ana Lopez"
        assert mock_api_client.get_time_slots.await_args.kwargs["staff_id"] == 7


# ============================================================================
# Invalidation and Failure
# ============================================================================


class TestInvalidationAndFailure:
    """Changed inputs and failed submissions."""

    @pytest.mark.asyncio
    async def test_date_change_requires_new_slot(self, session, booking_date, slot_9am):
        session.toggle_service(101)
        session.flow.next_step()
        await session.choose_date(booking_date)
        session.choose_time_slot(slot_9am)

        await session.choose_date(date(2025, 12, 2))

        assert session.selection.time_slot is None
        result = session.flow.next_step()
        assert result.success is False
        assert result.validation_errors == ["Missing required field: 'time_slot'"]

    @pytest.mark.asyncio
    async def test_service_change_requires_new_slot(
        self, session, mock_api_client, booking_date, slot_9am, returning_client
    ):
        mock_api_client.get_client_by_phone.return_value = returning_client
        await walk_to_customer_info(session, booking_date, slot_9am)
        session.flow.previous_step()
        session.flow.previous_step()

        session.toggle_service(101)
        assert session.selection.time_slot is None
        assert session.flow.next_step().success

        await session.refresh_time_slots()
        assert mock_api_client.get_time_slots.await_args.kwargs["duration"] == 20
        assert session.flow.next_step().success is False

        assert session.choose_time_slot(slot_9am)
        assert session.flow.next_step().success
        await session.lookup_client_by_phone("416-555-0199")
        result = await session.confirm_booking()

        assert result.success is True
        wire = mock_api_client.create_appointment_with_services.await_args.args[0].model_dump(mode="json")
        assert wire["start_at"] == "2025-12-01T09:00:00-05:00"
        assert wire["end_at"] == "2025-12-01T09:20:00-05:00"
        assert [line["service"] for line in wire["appointment_services"]] == [102]

    @pytest.mark.asyncio
    async def test_back_to_services_clears_slot(self, session, booking_date, slot_9am):
        await walk_to_customer_info(session, booking_date, slot_9am)

        session.flow.previous_step()
        assert session.selection.time_slot == slot_9am

        session.flow.previous_step()
        assert session.current_step == BookingStep.SERVICE_SELECTION
        assert session.selection.time_slot is None
        assert session.selection.service_ids == [101, 102]

    @pytest.mark.asyncio
    async def test_failed_submission_keeps_selection(
        self, session, mock_api_client, booking_date, slot_9am, returning_client
    ):
        mock_api_client.get_client_by_phone.return_value = returning_client
        mock_api_client.create_appointment_with_services.side_effect = BookingAPIError(
            409, "Slot no longer available"
        )
        await walk_to_customer_info(session, booking_date, slot_9am)
        await session.lookup_client_by_phone("416-555-0199")

        result = await session.confirm_booking()

        assert result.success is False
        assert result.new_step == BookingStep.CUSTOMER_INFO
        assert result.validation_errors == ["Slot no longer available"]
        assert session.selection.time_slot == slot_9am
        assert session.selection.client_info.id == 55
        assert mock_api_client.create_appointment_with_services.await_count == 1

    @pytest.mark.asyncio
    async def test_reset_after_confirmation(
        self, session, mock_api_client, booking_date, slot_9am, returning_client
    ):
        mock_api_client.get_client_by_phone.return_value = returning_client
        await walk_to_customer_info(session, booking_date, slot_9am)
        await session.lookup_client_by_phone("416-555-0199")
        result = await session.confirm_booking()
        assert result.new_step == BookingStep.CONFIRMATION

        session.reset_booking()

        assert session.current_step == BookingStep.SERVICE_SELECTION
        assert session.selection.is_empty
        assert session.selection.staff_preference is None
        assert session.selection.chosen_date is None
        assert session.selection.time_slot is None
        assert session.selection.client_info is None
        assert session.available_slots == []
        assert session.flow.next_step().success is False

    @pytest.mark.asyncio
    async def test_new_client_without_name_cannot_confirm(
        self, session, mock_api_client, booking_date, slot_9am
    ):
        await walk_to_customer_info(session, booking_date, slot_9am)
        await session.lookup_client_by_phone("416-555-0100")

        result = await session.confirm_booking()

        assert result.success is False
        mock_api_client.create_appointment_with_services.assert_not_awaited()
        assert session.selection.client_info == ClientCreate(phone="416-555-0100", primary_business_id=1)
