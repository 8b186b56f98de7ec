"""
Review service - post-appointment feedback.

- Look up the review already left for an appointment
- Submit a new review (rating 1-5, optional comment)
- Update an existing review

Clients who rate 4 stars or more are invited to also review the business
publicly; the result carries ``suggest_public_review`` for that.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import pybreaker
from pydantic import ValidationError

from booking.models.review import CreateReviewPayload, Review, UpdateReviewPayload
from shared.booking_api_client import BookingAPIClient, BookingAPIError

logger = logging.getLogger(__name__)

PUBLIC_REVIEW_MIN_RATING = 4


@dataclass
class ReviewResult:
    """
    Result of a review submission or update.

    Attributes:
        success: Whether the review was stored
        review: Stored review
        suggest_public_review: Rating is high enough to ask for a public review
        error_code: INVALID_REVIEW, ALREADY_REVIEWED, API_ERROR or SERVICE_UNAVAILABLE
        error_message: Error message if success is False
        errors: Field errors from validation or the API
    """
    success: bool
    review: Optional[Review] = None
    suggest_public_review: bool = False
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    errors: dict[str, list[str]] = field(default_factory=dict)


def _validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field_name = ".".join(str(part) for part in error["loc"]) or "__all__"
        errors.setdefault(field_name, []).append(error["msg"])
    return errors


async def get_review_for_appointment(
    api_client: BookingAPIClient,
    appointment_id: int,
) -> Optional[Review]:
    """Review already left for the appointment, None if there is none."""
    return await api_client.get_review_by_appointment(appointment_id)


async def submit_review(
    api_client: BookingAPIClient,
    appointment_id: int,
    rating: int,
    comment: str | None = None,
) -> ReviewResult:
    """
    Submit the client's review of an appointment.

    Args:
        api_client: Booking API client
        appointment_id: Reviewed appointment
        rating: Stars, 1 to 5
        comment: Optional free text (blank is sent as null)

    Returns:
        ReviewResult
    """
    try:
        payload = CreateReviewPayload(
            appointment=appointment_id,
            rating=rating,
            comment=(comment or "").strip() or None,
        )
    except ValidationError as e:
        logger.warning(f"Review for appointment {appointment_id} rejected: invalid rating {rating}")
        return ReviewResult(
            success=False,
            error_code="INVALID_REVIEW",
            error_message="Please select a rating between 1 and 5",
            errors=_validation_errors(e),
        )

    try:
        existing = await api_client.get_review_by_appointment(appointment_id)
        if existing is not None:
            logger.info(f"Appointment {appointment_id} already reviewed (review {existing.id})")
            return ReviewResult(
                success=False,
                review=existing,
                error_code="ALREADY_REVIEWED",
                error_message="This appointment has already been reviewed",
            )

        review = await api_client.create_review(payload)

    except BookingAPIError as e:
        logger.error(f"Error submitting review for appointment {appointment_id}: {e}")
        return ReviewResult(
            success=False,
            error_code="API_ERROR",
            error_message=e.message,
            errors=e.errors,
        )
    except pybreaker.CircuitBreakerError:
        return ReviewResult(
            success=False,
            error_code="SERVICE_UNAVAILABLE",
            error_message="Review service is temporarily unavailable",
        )

    logger.info(
        f"Review {review.id} submitted for appointment {appointment_id} | rating={review.rating}",
        extra={"appointment_id": appointment_id},
    )
    return ReviewResult(
        success=True,
        review=review,
        suggest_public_review=review.rating >= PUBLIC_REVIEW_MIN_RATING,
    )


async def update_review(
    api_client: BookingAPIClient,
    review_id: int,
    rating: int | None = None,
    comment: str | None = None,
) -> ReviewResult:
    """Change the rating and/or comment of an existing review."""
    try:
        payload = UpdateReviewPayload(rating=rating, comment=comment)
    except ValidationError as e:
        return ReviewResult(
            success=False,
            error_code="INVALID_REVIEW",
            error_message="Please select a rating between 1 and 5",
            errors=_validation_errors(e),
        )

    try:
        review = await api_client.update_review(review_id, payload)
    except BookingAPIError as e:
        logger.error(f"Error updating review {review_id}: {e}")
        return ReviewResult(
            success=False,
            error_code="API_ERROR",
            error_message=e.message,
            errors=e.errors,
        )
    except pybreaker.CircuitBreakerError:
        return ReviewResult(
            success=False,
            error_code="SERVICE_UNAVAILABLE",
            error_message="Review service is temporarily unavailable",
        )

    return ReviewResult(
        success=True,
        review=review,
        suggest_public_review=review.rating >= PUBLIC_REVIEW_MIN_RATING,
    )
