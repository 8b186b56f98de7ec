"""
BookingSession - one client's pass through the booking wizard.

Owns the selection aggregate, the step machine, the loaded catalog and the
current slot list for a single business, and wires them to the booking API.
Sessions are plain objects created per wizard; nothing is shared between
sessions.

Suspension points are exactly the API calls. Responses that arrive after the
inputs they were requested for have changed (another business, another date,
other staff) are dropped instead of applied.
"""

import logging
from datetime import date
from typing import Any
from uuid import uuid4

import pybreaker

from booking.flow.booking_flow import BookingFlow
from booking.flow.models import BookingStep, FlowResult
from booking.models.business import BusinessInfo
from booking.models.catalog import Category, Service, Staff, StaffPreference, TimeSlot
from booking.models.client import ClientCreate
from booking.services.slot_service import SlotService
from booking.state.selection import BookingSelection
from booking.transactions.appointment_submission import AppointmentSubmission
from booking.validators.client_validators import (
    validate_client_contact,
    validate_full_name,
    validate_phone,
)
from shared.booking_api_client import BookingAPIClient, BookingAPIError
from shared.config import get_settings

logger = logging.getLogger(__name__)


class BookingSession:
    """
    Booking wizard session for one business.

    Example:
        >>> session = BookingSession(api_client, business_id=7)
        >>> await session.initialize_business()
        >>> session.toggle_service(12)
        True
        >>> session.flow.next_step().success
        True
        >>> await session.choose_date(date(2025, 12, 1))
        [TimeSlot(...), ...]
    """

    def __init__(
        self,
        api_client: BookingAPIClient | None = None,
        business_id: int | None = None,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid4().hex
        self.api_client = api_client or BookingAPIClient()
        self.business_id = business_id if business_id is not None else get_settings().BUSINESS_ID

        self.selection = BookingSelection(self.session_id)
        self.flow = BookingFlow(self.selection, self.session_id)
        self.slot_service = SlotService(self.api_client, session_id=self.session_id)
        self.submission = AppointmentSubmission(self.api_client, self.session_id)

        self.business: BusinessInfo | None = None
        self.categories: list[Category] = []
        self.staff: list[Staff] = []
        self.available_slots: list[TimeSlot] = []

    @property
    def current_step(self) -> BookingStep:
        return self.flow.current_step

    @property
    def staff_names(self) -> dict[int, str]:
        return {member.id: member.full_name for member in self.staff}

    def _log_extra(self) -> dict[str, Any]:
        return {"session_id": self.session_id, "business_id": self.business_id}

    def _require_business_id(self) -> int:
        if self.business_id is None:
            raise ValueError("No business selected for this booking session")
        return self.business_id

    # ------------------------------------------------------------------
    # Business, catalog, staff
    # ------------------------------------------------------------------

    async def initialize_business(self, business_id: int | None = None) -> BusinessInfo | None:
        """
        Open the wizard for a business and load its public profile.

        Switching to a different business resets the booking and drops the
        loaded catalog, staff and slots.

        Returns:
            BusinessInfo, or None if another business was opened meanwhile
        """
        if business_id is not None and business_id != self.business_id:
            logger.info(
                "Switching business %s -> %s | session_id=%s",
                self.business_id,
                business_id,
                self.session_id,
            )
            self.business_id = business_id
            self.business = None
            self.categories = []
            self.staff = []
            self.reset_booking()

        requested_id = self._require_business_id()
        business = await self.api_client.get_business_info(requested_id)

        if self.business_id != requested_id:
            logger.debug("Discarding business info for %s, business changed", requested_id)
            return None

        self.business = business
        logger.info("Business initialized: %s", business.name, extra=self._log_extra())
        return business

    async def load_catalog(self) -> list[Category]:
        """Load categories with their services for the current business."""
        requested_id = self._require_business_id()
        categories = await self.api_client.get_categories_services(requested_id)

        if self.business_id != requested_id:
            logger.debug("Discarding catalog for business %s, business changed", requested_id)
            return self.categories

        self.categories = sorted(categories, key=lambda category: category.sort_order)
        logger.info(
            "Catalog loaded | categories=%d | services=%d",
            len(self.categories),
            sum(len(category.services) for category in self.categories),
            extra=self._log_extra(),
        )
        return self.categories

    async def load_staff(self) -> list[Staff]:
        """Load the staff members that can be requested."""
        requested_id = self._require_business_id()
        staff = await self.api_client.get_technicians(requested_id)

        if self.business_id != requested_id:
            logger.debug("Discarding staff for business %s, business changed", requested_id)
            return self.staff

        self.staff = [member for member in staff if member.is_active]
        return self.staff

    def find_service(self, service_id: int) -> Service | None:
        for category in self.categories:
            for service in category.services:
                if service.id == service_id:
                    return service
        return None

    def find_staff(self, staff_id: int) -> Staff | None:
        for member in self.staff:
            if member.id == staff_id:
                return member
        return None

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def toggle_service(self, service_id: int) -> bool:
        """
        Select or deselect a catalog service.

        Returns:
            True if the service is selected afterwards. Unknown and
            non-bookable services are never selected.
        """
        if self.selection.has_service(service_id):
            self.selection.remove_service(service_id)
            self.available_slots = []
            return False

        service = self.find_service(service_id)
        if service is None or not service.is_bookable:
            logger.warning(
                "Service %s is not bookable online | session_id=%s",
                service_id,
                self.session_id,
            )
            return False

        self.available_slots = []
        return self.selection.add_service(service)

    async def choose_staff(self, staff_id: int | None) -> list[TimeSlot]:
        """
        Request a staff member (None for "Anyone") and reload the slots.

        Slots offered for the previous staff choice are dropped first.

        Raises:
            ValueError: If the staff member is unknown
        """
        if staff_id is None:
            self.selection.set_staff_preference(None)
        else:
            member = self.find_staff(staff_id)
            if member is None:
                raise ValueError(f"Unknown staff member: {staff_id}")
            self.selection.set_staff_preference(StaffPreference.from_staff(member))

        self.available_slots = []
        return await self.refresh_time_slots()

    async def choose_date(self, chosen_date: date | None) -> list[TimeSlot]:
        """Choose the appointment date and reload the slots for it."""
        self.selection.set_chosen_date(chosen_date)
        self.available_slots = []
        return await self.refresh_time_slots()

    async def refresh_time_slots(self) -> list[TimeSlot]:
        """
        Fetch slots for the current date, services and staff.

        A response superseded while in flight leaves the current list as is.
        """
        slots = await self.slot_service.refresh(self.selection, self._require_business_id())
        if slots is None:
            return self.available_slots

        self.available_slots = slots
        return self.available_slots

    def choose_time_slot(self, slot: TimeSlot | None) -> bool:
        """
        Choose one of the currently offered slots (None clears the choice).

        Returns:
            True if the slot was applied
        """
        if slot is not None and slot not in self.available_slots:
            logger.warning(
                "Slot %s is not among the offered slots | session_id=%s",
                slot.start_time.isoformat(),
                self.session_id,
            )
            return False

        return self.selection.set_time_slot(slot, staff_names=self.staff_names)

    # ------------------------------------------------------------------
    # Client
    # ------------------------------------------------------------------

    async def lookup_client_by_phone(self, phone: str) -> ClientCreate:
        """
        Identify the client by phone.

        A returning client is resolved with their id and name; otherwise a new
        identity holding just the phone is attached, to be completed by
        register_client().

        Raises:
            ValueError: If the phone number is invalid
        """
        validation = validate_phone(phone)
        if not validation.valid:
            raise ValueError(validation.error_message)

        business_id = self._require_business_id()
        found: ClientCreate | None = None
        try:
            found = await self.api_client.get_client_by_phone(business_id, phone)
        except (BookingAPIError, pybreaker.CircuitBreakerError) as e:
            logger.warning(
                "Client lookup failed, continuing as new client: %s",
                e,
                extra=self._log_extra(),
            )

        if found is not None:
            client_info = found.model_copy(
                update={"phone": phone, "primary_business_id": business_id}
            )
            logger.info("Returning client identified", extra={**self._log_extra(), "client_id": found.id})
        else:
            client_info = ClientCreate(phone=phone, primary_business_id=business_id)

        self.selection.set_client_info(client_info)
        return client_info

    async def register_client(
        self,
        first_name: str,
        last_name: str = "",
        email: str | None = None,
    ) -> ClientCreate:
        """
        Save the client's name (creating the client if new).

        Raises:
            ValueError: If no phone was entered yet or the name is too short
            BookingAPIError: If the API rejects the client
        """
        current = self.selection.client_info
        if current is None or not current.phone:
            raise ValueError("Phone number is required before the client name")

        client = current.model_copy(
            update={
                "first_name": first_name.strip(),
                "last_name": last_name.strip(),
                "email": email or current.email,
                "primary_business_id": self._require_business_id(),
            }
        )
        validation = validate_full_name(client.full_name)
        if not validation.valid:
            raise ValueError(validation.error_message)

        if client.is_registered:
            saved = await self.api_client.update_client(client.id, client)
        else:
            saved = await self.api_client.create_client(client)

        self.selection.set_client_info(saved)
        return saved

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------

    async def confirm_booking(
        self,
        notes: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> FlowResult:
        """
        Create the appointment and advance to the confirmation step.

        The client must have a valid phone and full name.
        """
        validation = validate_client_contact(self.selection.client_info)
        if not validation.valid:
            logger.warning(
                "Booking confirmation blocked: %s",
                validation.error_code,
                extra=self._log_extra(),
            )
            return FlowResult(
                success=False,
                new_step=self.flow.current_step,
                next_action="collect_customer_info",
                validation_errors=[validation.error_message or "Invalid client information"],
            )

        if notes is not None:
            self.selection.set_notes(notes)

        return await self.flow.confirm_booking(
            self.submission,
            business_id=self._require_business_id(),
            metadata=metadata,
        )

    def reset_booking(self) -> None:
        """Start over: empty selection, first step, no slots, no query in flight."""
        self.flow.reset_booking()
        self.available_slots = []
        self.slot_service.tracker.invalidate()
