"""
API key authentication for staff endpoints.

Public booking endpoints (slug lookup, request submission) are left open;
everything that reads a clinic's calendar or moves a booking request requires
a valid key.
"""

import secrets
from typing import Optional

from fastapi import Header, HTTPException, Query

from clinic_booking.core.config import settings


def require_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    api_key: Optional[str] = Query(None, description="API key for authentication"),
) -> str:
    """
    Require a valid API key, from the X-API-Key header (preferred) or the
    api_key query parameter.

    Raises:
        HTTPException: 401 if the key is missing, invalid, or none is configured
    """
    provided_key = x_api_key or api_key
    expected_key = settings.CLINIC_API_KEY or ""

    if not provided_key:
        raise HTTPException(
            status_code=401,
            detail={
                "error": "API key required",
                "message": "Provide API key via 'X-API-Key' header or 'api_key' query parameter",
            },
        )

    if not expected_key or not secrets.compare_digest(provided_key, expected_key):
        raise HTTPException(
            status_code=401,
            detail={
                "error": "Invalid API key",
                "message": "The provided API key is not valid",
            },
        )

    return provided_key
