"""
Slot query tagging.

Slot queries are asynchronous and may complete out of order when the client
changes the date or staff quickly. Every outgoing query is tagged with a
monotonically increasing sequence number and the exact parameter tuple that
produced it; a response is applied only if it belongs to the newest query and
that query still matches the current selection.
"""

import logging
from dataclasses import dataclass
from datetime import date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotQuery:
    """Parameters of one availability request."""

    business_id: int
    date: date
    service_ids: tuple[int, ...]
    duration: int
    staff_id: int | None = None

    def to_params(self, interval_minutes: int | None = None) -> dict:
        """
        Query-string parameters for the available-time-slots endpoint.

        Service ids are sent as repeated `service_ids[]` keys.
        """
        params: dict = {
            "business_id": self.business_id,
            "date": self.date.isoformat(),
            "service_ids[]": list(self.service_ids),
            "duration": self.duration,
        }
        if self.staff_id is not None:
            params["staff_id"] = self.staff_id
        if interval_minutes is not None:
            params["interval_minutes"] = interval_minutes
        return params


@dataclass(frozen=True)
class SlotQueryTicket:
    """Tag attached to an in-flight slot query."""

    sequence: int
    query: SlotQuery


class SlotQueryTracker:
    """
    Issues tickets for slot queries and decides whether a response is stale.

    Example:
        >>> tracker = SlotQueryTracker()
        >>> first = tracker.issue(query_monday)
        >>> second = tracker.issue(query_tuesday)
        >>> tracker.is_current(first, query_tuesday)
        False
        >>> tracker.is_current(second, query_tuesday)
        True
    """

    def __init__(self) -> None:
        self._sequence = 0

    @property
    def latest_sequence(self) -> int:
        return self._sequence

    def issue(self, query: SlotQuery) -> SlotQueryTicket:
        """Tag a new outgoing query; any earlier ticket becomes stale."""
        self._sequence += 1
        return SlotQueryTicket(sequence=self._sequence, query=query)

    def invalidate(self) -> None:
        """Make every in-flight ticket stale (e.g. on booking reset)."""
        self._sequence += 1

    def is_current(self, ticket: SlotQueryTicket, current_query: SlotQuery | None) -> bool:
        """
        Check whether a response for ``ticket`` may be applied.

        Args:
            ticket: Ticket the response was requested with
            current_query: Query tuple derived from the selection right now

        Returns:
            True only for the newest ticket whose parameters still match
        """
        if ticket.sequence != self._sequence:
            logger.debug(
                "Discarding stale slot response | sequence=%d | latest=%d",
                ticket.sequence,
                self._sequence,
            )
            return False
        if ticket.query != current_query:
            logger.debug(
                "Discarding slot response for outdated parameters | sequence=%d",
                ticket.sequence,
            )
            return False
        return True
