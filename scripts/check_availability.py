#!/usr/bin/env python3
"""
Manual availability check against a live booking API.

Loads a business catalog, selects the given services, queries the available
time slots for a date and prints the composed schedule for the first slot
(or the slot matching --start).

Usage:
------
python scripts/check_availability.py --business-id 7 --services 12 15 --date 2025-12-01
                                     [--staff-id 3] [--start 09:00]

Example:
--------
# Any staff, print every slot and the schedule of the first one
python scripts/check_availability.py --business-id 7 --services 12 15 --date 2025-12-01

Nothing is booked: the script stops before the confirmation step.
"""

import asyncio
import logging
import sys
from argparse import ArgumentParser
from datetime import date

from booking.session import BookingSession
from booking.utils.formatting import format_duration, format_price, format_time
from shared.booking_api_client import BookingAPIError
from shared.logging_config import configure_logging

logger = logging.getLogger(__name__)


async def check_availability(
    business_id: int,
    service_ids: list[int],
    chosen_date: date,
    staff_id: int | None = None,
    start: str | None = None,
) -> int:
    """Run the wizard up to slot selection and print what it offers."""
    session = BookingSession(business_id=business_id)

    business = await session.initialize_business()
    await session.load_catalog()
    await session.load_staff()
    logger.info(f"Business: {business.name if business else business_id}")

    for service_id in service_ids:
        if not session.toggle_service(service_id):
            logger.error(f"Service {service_id} not found or not bookable online")
            return 1

    logger.info(
        f"Selected {len(service_ids)} services | "
        f"duration={format_duration(session.selection.get_total_duration())} | "
        f"price={format_price(session.selection.get_total_price())}"
    )

    session.flow.next_step()
    if staff_id is not None:
        await session.choose_staff(staff_id)
    slots = await session.choose_date(chosen_date)

    if not slots:
        logger.info(f"No slots available on {chosen_date.isoformat()}")
        return 0

    for slot in slots:
        print(f"  {format_time(slot.start_time, '%H:%M')}  staff_id={slot.staff_id}")

    chosen = slots[0]
    if start:
        matching = [slot for slot in slots if format_time(slot.start_time, "%H:%M") == start]
        if not matching:
            logger.error(f"No slot starts at {start}")
            return 1
        chosen = matching[0]

    session.choose_time_slot(chosen)
    print(f"\nSchedule for {format_time(chosen.start_time, '%H:%M')}:")
    for line in session.selection.services:
        print(
            f"  {format_time(line.start_at, '%H:%M')}-{format_time(line.end_at, '%H:%M')}"
            f"  {line.service_name}  {line.staff_name or line.staff}"
        )
    return 0


async def main() -> None:
    """Parse arguments and run the availability check."""
    parser = ArgumentParser(description="Check booking availability for a set of services")
    parser.add_argument("--business-id", type=int, required=True, help="Business to query")
    parser.add_argument(
        "--services",
        type=int,
        nargs="+",
        required=True,
        help="Catalog service ids, in the order they are performed",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        required=True,
        help="Date to check (YYYY-MM-DD)",
    )
    parser.add_argument("--staff-id", type=int, default=None, help="Requested staff (default: anyone)")
    parser.add_argument("--start", default=None, help="Slot start to compose (HH:MM, default: first)")

    args = parser.parse_args()
    configure_logging()

    try:
        exit_code = await check_availability(
            business_id=args.business_id,
            service_ids=args.services,
            chosen_date=args.date,
            staff_id=args.staff_id,
            start=args.start,
        )
    except BookingAPIError as e:
        logger.error(f"Booking API error: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    asyncio.run(main())
