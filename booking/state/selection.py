"""
Booking selection aggregate.

Holds everything the client picks during one wizard session: the ordered
service lines, the staff preference, the date, the time slot, notes and the
client identity. All invalidation rules live here so callers never have to
remember to clear a stale slot themselves:

- adding or removing a service clears the slot
- changing the date clears the slot
- choosing "Anyone" (or a different staff member) clears the slot
- choosing a slot (re)composes every line's start/end from scratch
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

from booking.models.appointment import AppointmentService
from booking.models.catalog import Service, StaffPreference, TimeSlot
from booking.models.client import ClientCreate
from booking.state.composition import (
    appointment_window,
    clear_schedule,
    compose_appointment_services,
)
from booking.state.slot_query import SlotQuery
from booking.utils.formatting import business_timezone, localize

logger = logging.getLogger(__name__)


def _service_id(item: Service | AppointmentService | int) -> int:
    if isinstance(item, Service):
        return item.id
    if isinstance(item, AppointmentService):
        return item.service
    return item


class BookingSelection:
    """
    Selection aggregate owned by one wizard session.

    Lines are keyed by the underlying catalog service id: the same service can
    never appear twice, whatever line-item id it was toggled with.

    Example:
        >>> selection = BookingSelection("session-1")
        >>> selection.add_service(haircut)      # 30 min, "45.00"
        True
        >>> selection.add_service(haircut)
        False
        >>> selection.add_service(beard_trim)   # 20 min, "15.00"
        True
        >>> selection.get_total_duration(), selection.get_total_price()
        (50, Decimal('60.00'))
    """

    def __init__(self, session_id: str = "") -> None:
        self._session_id = session_id
        self._services: list[AppointmentService] = []
        self._staff_preference: StaffPreference | None = None
        self._chosen_date: date | None = None
        self._time_slot: TimeSlot | None = None
        self._notes: str = ""
        self._client_info: ClientCreate | None = None

    @property
    def services(self) -> list[AppointmentService]:
        """Selected lines in selection order (copy)."""
        return list(self._services)

    @property
    def service_ids(self) -> list[int]:
        return [line.service for line in self._services]

    @property
    def staff_preference(self) -> StaffPreference | None:
        return self._staff_preference

    @property
    def chosen_date(self) -> date | None:
        return self._chosen_date

    @property
    def time_slot(self) -> TimeSlot | None:
        return self._time_slot

    @property
    def notes(self) -> str:
        return self._notes

    @property
    def client_info(self) -> ClientCreate | None:
        return self._client_info

    @property
    def is_empty(self) -> bool:
        return not self._services

    def has_service(self, service: Service | AppointmentService | int) -> bool:
        service_id = _service_id(service)
        return any(line.service == service_id for line in self._services)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def add_service(self, service: Service | AppointmentService) -> bool:
        """
        Add a service line unless the same catalog service is already selected.

        Args:
            service: Catalog service (snapshotted into a new line) or a prepared line

        Returns:
            True if a line was added, False on duplicate
        """
        if self.has_service(service):
            logger.debug(
                "Service already selected, ignoring | service_id=%s",
                _service_id(service),
                extra={"session_id": self._session_id},
            )
            return False

        line = AppointmentService.from_service(service) if isinstance(service, Service) else service
        self._services.append(line)
        self._clear_time_slot(reason="services_changed")
        logger.info(
            "Service added | service_id=%s | name=%s | lines=%d",
            line.service,
            line.service_name,
            len(self._services),
            extra={"session_id": self._session_id},
        )
        return True

    def remove_service(self, service: Service | AppointmentService | int) -> bool:
        """
        Remove the line for a catalog service.

        Returns:
            True if a line was removed, False if the service was not selected
        """
        service_id = _service_id(service)
        remaining = [line for line in self._services if line.service != service_id]
        if len(remaining) == len(self._services):
            return False

        self._services = remaining
        self._clear_time_slot(reason="services_changed")
        logger.info(
            "Service removed | service_id=%s | lines=%d",
            service_id,
            len(self._services),
            extra={"session_id": self._session_id},
        )
        return True

    def toggle_service(self, service: Service | AppointmentService) -> bool:
        """
        Select the service if absent, deselect it if present.

        Returns:
            True if the service is selected afterwards
        """
        if self.has_service(service):
            self.remove_service(service)
            return False
        return self.add_service(service)

    def get_total_duration(self) -> int:
        """Sum of effective durations (custom override first) in minutes."""
        return sum(line.effective_duration for line in self._services)

    def get_total_price(self) -> Decimal:
        """Sum of effective prices; malformed or missing prices count as zero."""
        return sum((line.effective_price for line in self._services), Decimal("0"))

    # ------------------------------------------------------------------
    # Staff, date, slot
    # ------------------------------------------------------------------

    def set_staff_preference(self, staff: StaffPreference | None) -> None:
        """
        Set the requested staff member, or None for "Anyone".

        Slot availability depends on staff, so "Anyone" always clears the
        chosen slot and so does switching to a different staff member.
        """
        previous = self._staff_preference
        self._staff_preference = staff

        if staff is None or previous is None or previous.id != staff.id:
            self._clear_time_slot(reason="staff_changed")

        logger.info(
            "Staff preference set | staff_id=%s",
            staff.id if staff else "anyone",
            extra={"session_id": self._session_id},
        )

    def set_chosen_date(self, chosen_date: date | None) -> None:
        """Replace the chosen date; the chosen slot is always cleared."""
        if isinstance(chosen_date, datetime):
            chosen_date = chosen_date.date()
        self._chosen_date = chosen_date
        self._clear_time_slot(reason="date_changed")

        logger.info(
            "Date set | date=%s",
            chosen_date.isoformat() if chosen_date else None,
            extra={"session_id": self._session_id},
        )

    def set_time_slot(
        self,
        slot: TimeSlot | None,
        staff_names: dict[int, str] | None = None,
    ) -> bool:
        """
        Choose a time slot and recompose every line's schedule from it.

        Args:
            slot: Slot returned by the slot provider, None to clear
            staff_names: Known staff display names by id

        Returns:
            True if the slot is now set (or was cleared), False if rejected
            because no service is selected or it starts on another date
        """
        if slot is None:
            self._clear_time_slot(reason="cleared")
            return True

        if not self._services:
            logger.warning(
                "Slot rejected: no services selected | start_time=%s",
                slot.start_time.isoformat(),
                extra={"session_id": self._session_id},
            )
            return False

        slot_date = localize(slot.start_time).astimezone(business_timezone()).date()
        if self._chosen_date is not None and slot_date != self._chosen_date:
            logger.warning(
                "Slot rejected: starts on %s, chosen date is %s",
                slot_date.isoformat(),
                self._chosen_date.isoformat(),
                extra={"session_id": self._session_id},
            )
            return False

        self._services = compose_appointment_services(
            self._services,
            slot,
            self._staff_preference,
            staff_names,
        )
        self._time_slot = slot

        logger.info(
            "Slot chosen | start_time=%s | staff_id=%s | duration=%dmin",
            slot.start_time.isoformat(),
            slot.staff_id,
            self.get_total_duration(),
            extra={"session_id": self._session_id},
        )
        return True

    def _clear_time_slot(self, reason: str) -> None:
        if self._time_slot is None:
            return
        self._time_slot = None
        self._services = clear_schedule(self._services)
        logger.info(
            "Chosen slot invalidated | reason=%s",
            reason,
            extra={"session_id": self._session_id},
        )

    def get_appointment_window(self) -> tuple[datetime, datetime] | None:
        """(start, end) of the composed appointment, None until a slot is chosen."""
        if self._time_slot is None:
            return None
        return appointment_window(self._services)

    def get_end_time(self) -> datetime | None:
        """Chosen slot start plus total duration."""
        if self._time_slot is None:
            return None
        return self._time_slot.start_time + timedelta(minutes=self.get_total_duration())

    # ------------------------------------------------------------------
    # Client, notes
    # ------------------------------------------------------------------

    def set_client_info(self, client_info: ClientCreate | None) -> None:
        """Attach or clear the client identity; services and slot are untouched."""
        self._client_info = client_info

    def set_notes(self, notes: str | None) -> None:
        self._notes = (notes or "").strip()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current_slot_query(self, business_id: int) -> SlotQuery | None:
        """
        Parameter tuple a slot query for the current selection must carry.

        Returns:
            SlotQuery, or None when no date or no service is selected
        """
        if self._chosen_date is None or not self._services:
            return None
        return SlotQuery(
            business_id=business_id,
            date=self._chosen_date,
            service_ids=tuple(self.service_ids),
            duration=self.get_total_duration(),
            staff_id=self._staff_preference.id if self._staff_preference else None,
        )

    def clear(self) -> None:
        """Drop the whole selection."""
        self._services = []
        self._staff_preference = None
        self._chosen_date = None
        self._time_slot = None
        self._notes = ""
        self._client_info = None
        logger.info("Selection cleared", extra={"session_id": self._session_id})
