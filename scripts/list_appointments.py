#!/usr/bin/env python3
"""
List a client's appointments from a live booking API.

Prints every appointment with its status label, or only the upcoming
scheduled ones with --upcoming.

Usage:
------
python scripts/list_appointments.py --business-id 7 --client-id 55 [--upcoming]

Nothing is changed on the server.
"""

import asyncio
import logging
import sys
from argparse import ArgumentParser

from booking.services.appointment_service import (
    format_appointments_list,
    get_upcoming_appointments,
    load_client_appointments,
)
from shared.booking_api_client import BookingAPIClient
from shared.logging_config import configure_logging

logger = logging.getLogger(__name__)


async def list_appointments(business_id: int, client_id: int, upcoming_only: bool = False) -> int:
    """Load the client's appointments and print them as a numbered list."""
    result = await load_client_appointments(BookingAPIClient(), business_id, client_id)
    if not result.success:
        logger.error(result.error_message)
        return 1

    appointments = result.appointments
    if upcoming_only:
        appointments = get_upcoming_appointments(appointments)

    name = (result.client.full_name if result.client else "") or client_id
    logger.info(f"Client: {name} | {len(appointments)} appointments")

    if appointments:
        print(format_appointments_list(appointments))
    return 0


async def main() -> None:
    """Parse arguments and print the appointment list."""
    parser = ArgumentParser(description="List a client's appointments")
    parser.add_argument("--business-id", type=int, required=True, help="Business the client belongs to")
    parser.add_argument("--client-id", type=int, required=True, help="Client whose appointments to list")
    parser.add_argument(
        "--upcoming",
        action="store_true",
        help="Only scheduled appointments that have not started yet",
    )

    args = parser.parse_args()
    configure_logging()

    sys.exit(await list_appointments(args.business_id, args.client_id, args.upcoming))


if __name__ == "__main__":
    asyncio.run(main())
