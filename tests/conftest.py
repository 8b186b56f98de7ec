"""
Test configuration and fixtures.

This module sets up test environment and provides shared fixtures for all tests.
"""

import os
from datetime import date, datetime
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

# Point settings at a fake API and a fixed timezone
# Must be set BEFORE any imports of shared.config
os.environ["BOOKING_API_BASE_URL"] = "http://booking.test/api"
os.environ["TIMEZONE"] = "America/Toronto"
os.environ["DEFAULT_PHONE_REGION"] = "CA"
os.environ["CURRENCY"] = "USD"
os.environ["API_MAX_RETRIES"] = "3"

from booking.models import (  # noqa: E402
    AppointmentWithServices,
    BusinessInfo,
    Category,
    ClientCreate,
    Service,
    Staff,
    TimeSlot,
)
from shared.booking_api_client import BookingAPIClient  # noqa: E402
from shared.circuit_breaker import booking_api_breaker, reset_circuit_breaker  # noqa: E402
from shared.config import get_settings  # noqa: E402

TORONTO_TZ = ZoneInfo("America/Toronto")


@pytest.fixture(scope="function", autouse=True)
def reset_shared_state():
    """
    Fresh settings and a closed circuit breaker for every test.

    The breaker is module-level, so failures recorded by one test would
    otherwise leak into the next.
    """
    get_settings.cache_clear()
    reset_circuit_breaker(booking_api_breaker)
    yield
    reset_circuit_breaker(booking_api_breaker)
    get_settings.cache_clear()


# ============================================================================
# Catalog Fixtures
# ============================================================================


@pytest.fixture
def haircut():
    """Service A: 30 minutes, $45."""
    return Service(
        id=101,
        name="Men's Cut",
        category=1,
        category_name="Hair",
        duration_minutes=30,
        price="45.00",
        color_code="#FF8800",
    )


@pytest.fixture
def beard_trim():
    """Service B: 20 minutes, $15."""
    return Service(
        id=102,
        name="Beard Trim",
        category=1,
        category_name="Hair",
        duration_minutes=20,
        price="15.00",
    )


@pytest.fixture
def inactive_service():
    return Service(id=103, name="Retired Perm", duration_minutes=90, price="120.00", is_active=False)


@pytest.fixture
def categories(haircut, beard_trim, inactive_service):
    return [
        Category(id=2, name="Extras", sort_order=2, services=[inactive_service]),
        Category(id=1, name="Hair", sort_order=1, services=[haircut, beard_trim]),
    ]


@pytest.fixture
def staff_members():
    return [
        Staff(id=7, first_name="Ana", last_name="Lopez"),
        Staff(id=8, first_name="Ben", last_name="Kim"),
        Staff(id=9, first_name="Old", last_name="Timer", is_active=False),
    ]


@pytest.fixture
def business_info():
    return BusinessInfo(id=1, name="Sunset Salon", timezone="America/Toronto")


# ============================================================================
# Slot Fixtures
# ============================================================================


@pytest.fixture
def booking_date():
    return date(2025, 12, 1)


@pytest.fixture
def slot_9am():
    """9:00 slot on 2025-12-01 (Toronto, UTC-5) served by staff 7."""
    return TimeSlot(
        start_time=datetime.fromisoformat("2025-12-01T09:00:00-05:00"),
        end_time=datetime.fromisoformat("2025-12-01T09:50:00-05:00"),
        staff_id=7,
    )


@pytest.fixture
def slot_10am():
    """10:00 slot on 2025-12-01 served by staff 8."""
    return TimeSlot(
        start_time=datetime.fromisoformat("2025-12-01T10:00:00-05:00"),
        end_time=datetime.fromisoformat("2025-12-01T10:50:00-05:00"),
        staff_id=8,
    )


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def returning_client():
    return ClientCreate(
        id=55,
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="416-555-0199",
        primary_business_id=1,
    )


@pytest.fixture
def created_appointment():
    return AppointmentWithServices(
        id=9001,
        business=1,
        client=55,
        appointment_date=date(2025, 12, 1),
        start_at=datetime.fromisoformat("2025-12-01T09:00:00-05:00"),
        end_at=datetime.fromisoformat("2025-12-01T09:50:00-05:00"),
    )


# ============================================================================
# API Client Fixture
# ============================================================================


@pytest.fixture
def mock_api_client(business_info, categories, staff_members, slot_9am, slot_10am, created_appointment):
    """BookingAPIClient double answering with the fixtures above."""
    client = AsyncMock(spec=BookingAPIClient)
    client.get_business_info.return_value = business_info
    client.get_categories_services.return_value = categories
    client.get_technicians.return_value = staff_members
    client.get_time_slots.return_value = [slot_9am, slot_10am]
    client.get_client_by_phone.return_value = None
    client.create_appointment_with_services.return_value = created_appointment
    return client
