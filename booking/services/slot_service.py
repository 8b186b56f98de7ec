"""
Slot provider: fetches availability for the current selection.

The backend is authoritative for availability; this module only builds the
query from the selection, tags it, and drops responses that arrive after the
selection has moved on.
"""

import logging

from booking.models.catalog import TimeSlot
from booking.state.selection import BookingSelection
from booking.state.slot_query import SlotQuery, SlotQueryTracker
from shared.booking_api_client import BookingAPIClient
from shared.config import get_settings

logger = logging.getLogger(__name__)


class SlotService:
    """
    Query available time slots, discarding stale responses.

    Example:
        >>> slots = await slot_service.refresh(selection, business_id=7)
        >>> if slots is None:
        ...     pass  # superseded by a newer query, keep current list
    """

    def __init__(
        self,
        api_client: BookingAPIClient,
        tracker: SlotQueryTracker | None = None,
        interval_minutes: int | None = None,
        session_id: str = "",
    ) -> None:
        self._api_client = api_client
        self._tracker = tracker or SlotQueryTracker()
        self._interval_minutes = (
            interval_minutes if interval_minutes is not None else get_settings().SLOT_INTERVAL_MINUTES
        )
        self._session_id = session_id

    @property
    def tracker(self) -> SlotQueryTracker:
        return self._tracker

    async def fetch(self, query: SlotQuery) -> list[TimeSlot]:
        """Fetch slots for an explicit query (no staleness check)."""
        return await self._api_client.get_time_slots(
            business_id=query.business_id,
            date=query.date,
            service_ids=list(query.service_ids),
            duration=query.duration,
            staff_id=query.staff_id,
            interval_minutes=self._interval_minutes,
        )

    async def refresh(self, selection: BookingSelection, business_id: int) -> list[TimeSlot] | None:
        """
        Fetch slots for the selection as it is now.

        Returns:
            Slots for the current (date, services, duration, staff), an empty
            list when no date or no service is selected, or None when the
            response was superseded while in flight and must be ignored
        """
        query = selection.current_slot_query(business_id)
        if query is None:
            # Nothing to ask for; also supersedes anything still in flight
            self._tracker.invalidate()
            return []

        ticket = self._tracker.issue(query)
        logger.info(
            "Requesting time slots | date=%s | duration=%dmin | staff_id=%s | sequence=%d",
            query.date.isoformat(),
            query.duration,
            query.staff_id,
            ticket.sequence,
            extra={"session_id": self._session_id, "business_id": business_id},
        )

        slots = await self.fetch(query)

        if not self._tracker.is_current(ticket, selection.current_slot_query(business_id)):
            return None

        logger.info(
            "Received %d time slots | sequence=%d",
            len(slots),
            ticket.sequence,
            extra={"session_id": self._session_id, "business_id": business_id},
        )
        return slots
