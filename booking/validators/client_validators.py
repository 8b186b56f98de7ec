"""
Client contact validation for the customer info step.

Checks:
1. Full name has at least 2 characters
2. Phone has at least 10 digits and only digits, spaces, dashes, plus and parentheses
3. Phone is a possible number for the business region (phonenumbers)
"""

import logging
import re
from typing import Any, Optional

import phonenumbers
from pydantic import BaseModel, Field

from booking.models.client import ClientCreate
from shared.config import get_settings

logger = logging.getLogger(__name__)

PHONE_ALLOWED_CHARS = re.compile(r"^[\d\s\-\+\(\)]+$")
MIN_PHONE_DIGITS = 10
MIN_NAME_LENGTH = 2


class ValidationResult(BaseModel):
    """Result of a client contact validation."""
    valid: bool
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)


def validate_full_name(name: str | None) -> ValidationResult:
    if not name or len(name.strip()) < MIN_NAME_LENGTH:
        return ValidationResult(
            valid=False,
            error_code="INVALID_NAME",
            error_message=f"Name must be at least {MIN_NAME_LENGTH} characters",
        )
    return ValidationResult(valid=True)


def validate_phone(phone: str | None, region: str | None = None) -> ValidationResult:
    """
    Validate a phone number as typed by the client.

    Args:
        phone: Raw phone input
        region: Region for numbers without country code (default from settings)

    Returns:
        ValidationResult with INVALID_PHONE on failure
    """
    value = (phone or "").strip()
    digits = re.sub(r"\D", "", value)

    if len(digits) < MIN_PHONE_DIGITS:
        return ValidationResult(
            valid=False,
            error_code="INVALID_PHONE",
            error_message=f"Phone number must be at least {MIN_PHONE_DIGITS} digits",
            details={"digits": len(digits)},
        )

    if not PHONE_ALLOWED_CHARS.match(value):
        return ValidationResult(
            valid=False,
            error_code="INVALID_PHONE",
            error_message="Please enter a valid phone number",
        )

    region = region or get_settings().DEFAULT_PHONE_REGION
    try:
        parsed = phonenumbers.parse(value, region)
    except phonenumbers.NumberParseException as e:
        logger.debug(f"Phone number could not be parsed: {e}")
        return ValidationResult(
            valid=False,
            error_code="INVALID_PHONE",
            error_message="Please enter a valid phone number",
        )

    if not phonenumbers.is_possible_number(parsed):
        return ValidationResult(
            valid=False,
            error_code="INVALID_PHONE",
            error_message="Please enter a valid phone number",
            details={"region": region},
        )

    return ValidationResult(valid=True)


def validate_client_contact(client_info: ClientCreate | None) -> ValidationResult:
    """Client must be present with a valid phone and full name before booking."""
    if client_info is None:
        return ValidationResult(
            valid=False,
            error_code="MISSING_CLIENT",
            error_message="Client information is required",
        )

    phone_result = validate_phone(client_info.phone)
    if not phone_result.valid:
        return phone_result

    return validate_full_name(client_info.full_name)
