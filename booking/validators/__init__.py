"""Validators for client-provided booking data."""

from booking.validators.client_validators import (
    ValidationResult,
    validate_client_contact,
    validate_full_name,
    validate_phone,
)

__all__ = [
    "ValidationResult",
    "validate_client_contact",
    "validate_full_name",
    "validate_phone",
]
