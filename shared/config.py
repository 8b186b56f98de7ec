"""
Configuration module - Central access point for environment variables.

CRITICAL: Access ALL environment variables through this module.
NEVER use os.getenv() directly in application code.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Booking API
    BOOKING_API_BASE_URL: str = Field(
        default="http://127.0.0.1:8000/api",
        description="Base URL of the business booking REST API"
    )
    BOOKING_API_TIMEOUT: float = Field(
        default=10.0,
        description="Per-request timeout in seconds"
    )
    API_MAX_RETRIES: int = Field(
        default=3,
        description="Attempts for idempotent (GET) requests before giving up"
    )

    # Tenant
    BUSINESS_ID: int | None = Field(
        default=None,
        description="Default business to open the booking wizard for"
    )

    # Application Settings
    TIMEZONE: str = Field(
        default="America/Toronto",
        description="Business timezone, also sent to the API as X-Timezone"
    )
    DEFAULT_PHONE_REGION: str = Field(
        default="CA",
        description="Region used to parse phone numbers without country code"
    )
    SLOT_INTERVAL_MINUTES: int | None = Field(
        default=None,
        description="Optional interval between slot candidates requested from the API"
    )
    CURRENCY: str = Field(default="USD")
    LOG_LEVEL: str = Field(default="INFO")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()
