"""Response envelope shared by every booking API endpoint."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class ApiResponse(BaseModel):
    """
    Standard envelope returned by the booking API.

    Format: {
        "success": true,
        "results": <payload>,
        "message": "...",
        "errors": {"field": ["error", ...]},
        "metadata": {...}
    }
    """
    model_config = ConfigDict(extra="allow")

    success: bool = True
    results: Any = None
    message: str | None = None
    errors: dict[str, list[str]] | None = None
    metadata: dict[str, Any] | None = None
