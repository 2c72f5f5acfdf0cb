# clinic_booking/schemas/validators.py
"""Field normalizers shared by the request schemas."""
from typing import Any, Optional

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

from clinic_booking.core.config import settings


def clean_name(v: str) -> str:
    # trim + collapse internal extra spaces
    v = " ".join(v.strip().split())
    if not v:
        raise ValueError("name cannot be empty")
    return v


def normalize_phone(v: str) -> str:
    """Parse with phonenumbers and store E.164 so matching can compare exactly."""
    v = v.strip()
    try:
        parsed = phonenumbers.parse(v, settings.PHONE_DEFAULT_REGION)
    except NumberParseException:
        raise ValueError("phone is not a valid number")
    if not phonenumbers.is_possible_number(parsed):
        raise ValueError("phone is not a valid number")
    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def normalize_optional_phone(v: Optional[str]) -> Optional[str]:
    if v is None or not v.strip():
        return None
    return normalize_phone(v)


def blank_to_none(v: Any) -> Any:
    """Trim optional text; blank values from forms count as absent."""
    if isinstance(v, str):
        return v.strip() or None
    return v
