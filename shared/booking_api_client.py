"""
Booking API client for the business booking backend.

This module provides the BookingAPIClient class for interacting with the
public booking REST API: business info, catalog, staff, availability,
clients, appointments and reviews.

Every endpoint answers with the ApiResponse envelope. Transport failures,
HTTP error statuses and envelopes with ``success: false`` are all raised as
BookingAPIError. GET requests are retried on transport failures; POST, PUT
and PATCH are never retried so an appointment is never created twice.
"""

import logging
from datetime import date
from typing import Any

import httpx
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from booking.models import (
    ApiResponse,
    AppointmentWithServices,
    BusinessInfo,
    Category,
    Client,
    ClientCreate,
    CreateAppointmentPayload,
    CreateReviewPayload,
    Review,
    Staff,
    TimeSlot,
    UpdateReviewPayload,
)
from booking.state.slot_query import SlotQuery
from shared.circuit_breaker import booking_api_breaker, call_with_breaker
from shared.config import get_settings

logger = logging.getLogger(__name__)


class BookingAPIError(Exception):
    """
    Error returned by (or while reaching) the booking API.

    Attributes:
        status_code: HTTP status, None for transport failures
        message: Human readable message from the envelope or the transport
        errors: Field errors from the envelope ({"field": ["error", ...]})
    """

    def __init__(
        self,
        status_code: int | None,
        message: str,
        errors: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or {}

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"


class BookingAPIClient:
    """
    Client for interacting with the booking API.

    A fresh httpx.AsyncClient is opened per request, matching the
    short-lived, user-driven call pattern of the wizard.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        """Initialize the client with connection settings (defaults from settings)."""
        settings = get_settings()
        # Remove trailing slash to avoid double slashes in URLs
        self.base_url = (base_url or settings.BOOKING_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BOOKING_API_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.API_MAX_RETRIES
        self.retry_wait = wait_exponential(multiplier=1, min=2, max=10)

        self.headers = {
            "Content-Type": "application/json",
            "X-Timezone": settings.TIMEZONE,
        }

        logger.info(f"BookingAPIClient initialized: {self.base_url}")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        async with httpx.AsyncClient() as client:
            return await client.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json,
                headers=self.headers,
                timeout=self.timeout,
            )

    def _parse(self, method: str, path: str, response: httpx.Response) -> ApiResponse:
        """Unwrap the response envelope, raising BookingAPIError on failure."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            body = body if isinstance(body, dict) else {}
            message = body.get("message") or body.get("detail") or response.reason_phrase
            logger.error(f"HTTP {response.status_code} on {method} {path}: {message}")
            raise BookingAPIError(response.status_code, message, body.get("errors"))

        if not isinstance(body, dict):
            raise BookingAPIError(response.status_code, f"Unexpected response body from {path}")

        envelope = ApiResponse.model_validate(body)
        if not envelope.success:
            logger.warning(f"Booking API rejected {method} {path}: {envelope.message}")
            raise BookingAPIError(
                response.status_code,
                envelope.message or "Request was not successful",
                envelope.errors,
            )
        return envelope

    async def _get_once(self, path: str, params: dict[str, Any] | None) -> ApiResponse:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=self.retry_wait,
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await self._send("GET", path, params=params)
        except httpx.TransportError as e:
            logger.error(f"Transport error on GET {path}: {e}")
            raise BookingAPIError(None, f"Could not reach booking API: {e}") from e

        return self._parse("GET", path, response)

    async def _write_once(
        self,
        method: str,
        path: str,
        payload: dict[str, Any],
    ) -> ApiResponse:
        try:
            response = await self._send(method, path, json=payload)
        except httpx.TransportError as e:
            logger.error(f"Transport error on {method} {path}: {e}")
            raise BookingAPIError(None, f"Could not reach booking API: {e}") from e

        return self._parse(method, path, response)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> ApiResponse:
        logger.debug(f"GET {path}", extra={"request_path": path})
        return await call_with_breaker(booking_api_breaker, self._get_once, path, params)

    async def _write(self, method: str, path: str, payload: BaseModel | dict[str, Any]) -> ApiResponse:
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")
        logger.debug(f"{method} {path}", extra={"request_path": path})
        return await call_with_breaker(booking_api_breaker, self._write_once, method, path, payload)

    # ------------------------------------------------------------------
    # Business & catalog
    # ------------------------------------------------------------------

    async def get_business_info(self, business_id: int) -> BusinessInfo:
        """Public profile (and booking settings) of a business."""
        envelope = await self._get("/business-booking/business-info", {"business_id": business_id})
        return BusinessInfo.model_validate(envelope.results)

    async def get_categories_services(self, business_id: int) -> list[Category]:
        """Ordered categories, each with its nested services."""
        envelope = await self._get(
            "/business-booking/categories-services", {"business_id": business_id}
        )
        return [Category.model_validate(item) for item in envelope.results or []]

    async def get_technicians(self, business_id: int) -> list[Staff]:
        """Staff members that can be requested for online bookings."""
        envelope = await self._get("/business-booking/technicians", {"business_id": business_id})
        return [Staff.model_validate(item) for item in envelope.results or []]

    async def get_time_slots(
        self,
        business_id: int,
        date: date,
        service_ids: list[int],
        duration: int,
        staff_id: int | None = None,
        interval_minutes: int | None = None,
    ) -> list[TimeSlot]:
        """
        Available start times for a set of services on one date.

        Args:
            business_id: Business to query
            date: Calendar date to search
            service_ids: Selected catalog service ids
            duration: Aggregate duration in minutes
            staff_id: Restrict to one staff member (None = anyone)
            interval_minutes: Spacing between candidates (backend default if None)

        Returns:
            Ordered slot candidates, each bound to the staff who would serve it
        """
        query = SlotQuery(
            business_id=business_id,
            date=date,
            service_ids=tuple(service_ids),
            duration=duration,
            staff_id=staff_id,
        )
        envelope = await self._get(
            "/business-booking/available-time-slots",
            query.to_params(interval_minutes),
        )
        return [TimeSlot.model_validate(item) for item in envelope.results or []]

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    async def get_client_by_phone(self, business_id: int, phone: str) -> ClientCreate | None:
        """
        Find a returning client by phone number.

        Returns:
            Client identity if found, None otherwise
        """
        try:
            envelope = await self._get(
                "/business-booking/client-by-phone/",
                {"business_id": business_id, "phone": phone},
            )
        except BookingAPIError as e:
            if e.status_code == 404:
                logger.debug("No client found for phone lookup")
                return None
            raise

        if not envelope.results:
            logger.debug("No client found for phone lookup")
            return None
        return ClientCreate.model_validate(envelope.results)

    async def get_client(self, business_id: int, client_id: int) -> Client:
        envelope = await self._get(
            "/business-booking/client/",
            {"business_id": business_id, "client_id": client_id},
        )
        return Client.model_validate(envelope.results)

    async def create_client(self, client: ClientCreate) -> ClientCreate:
        """Register a new client; the returned identity carries its id."""
        envelope = await self._write(
            "POST",
            "/business-booking/client/",
            client.model_dump(mode="json", exclude={"id"}),
        )
        created = ClientCreate.model_validate(envelope.results)
        logger.info(f"Created client {created.id}", extra={"client_id": created.id})
        return created

    async def update_client(self, client_id: int, client: ClientCreate) -> ClientCreate:
        envelope = await self._write(
            "PUT",
            f"/business-booking/client/{client_id}",
            client.model_dump(mode="json"),
        )
        return ClientCreate.model_validate(envelope.results)

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    async def get_client_appointments(
        self,
        business_id: int,
        client_id: int,
    ) -> list[AppointmentWithServices]:
        envelope = await self._get(
            "/business-booking/client-appointments/",
            {"business_id": business_id, "client_id": client_id},
        )
        return [AppointmentWithServices.model_validate(item) for item in envelope.results or []]

    async def create_appointment_with_services(
        self,
        payload: CreateAppointmentPayload,
    ) -> AppointmentWithServices:
        """
        Create an appointment with its service lines.

        Never retried: a timeout here may still have created the appointment.
        """
        envelope = await self._write("POST", "/business-booking/appointment/", payload)
        appointment = AppointmentWithServices.model_validate(envelope.results)
        logger.info(
            f"Created appointment {appointment.id} for business {payload.business_id}",
            extra={"appointment_id": appointment.id, "business_id": payload.business_id},
        )
        return appointment

    async def cancel_appointment(
        self,
        business_id: int,
        client_id: int,
        appointment_id: int,
    ) -> ApiResponse:
        envelope = await self._write(
            "POST",
            "/business-booking/cancel-appointment/",
            {
                "business_id": business_id,
                "client_id": client_id,
                "appointment_id": appointment_id,
            },
        )
        logger.info(
            f"Cancelled appointment {appointment_id}",
            extra={"appointment_id": appointment_id, "business_id": business_id},
        )
        return envelope

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def create_review(self, payload: CreateReviewPayload) -> Review:
        envelope = await self._write("POST", "/business-reviews/", payload)
        return Review.model_validate(envelope.results)

    async def update_review(self, review_id: int, payload: UpdateReviewPayload) -> Review:
        envelope = await self._write(
            "PATCH",
            f"/business-reviews/{review_id}/",
            payload.model_dump(mode="json", exclude_none=True),
        )
        return Review.model_validate(envelope.results)

    async def get_review(self, review_id: int) -> Review:
        envelope = await self._get(f"/business-reviews/{review_id}/")
        return Review.model_validate(envelope.results)

    async def get_review_by_appointment(self, appointment_id: int) -> Review | None:
        """Review left for an appointment, None if the client has not reviewed it yet."""
        try:
            envelope = await self._get(f"/business-reviews/appointment/{appointment_id}/")
        except BookingAPIError as e:
            if e.status_code == 404:
                return None
            raise

        if not envelope.results:
            return None
        return Review.model_validate(envelope.results)
