# clinic_booking/schemas/clinic.py

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from clinic_booking.schemas.availability import AvailabilityOut
from clinic_booking.schemas.validators import blank_to_none, normalize_optional_phone


class ClinicCreate(BaseModel):
    owner_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    opening_hours: Optional[str] = Field(None, examples=["Mon-Fri 8:00-20:00"])

    @field_validator("phone")
    @classmethod
    def _normalize_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_optional_phone(v)

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, v):
        return blank_to_none(v)


class ClinicOut(BaseModel):
    id: int
    owner_id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    opening_hours: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class PublicClinicOut(BaseModel):
    """What the public booking page may see; no owner or internal ids."""
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    opening_hours: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class PublicPageOut(BaseModel):
    slug: str
    clinic: PublicClinicOut
    availability: AvailabilityOut


class BookingSettingsIn(BaseModel):
    enabled: bool
    slug: Optional[str] = Field(
        None, max_length=80, description="Defaults to a slug derived from the clinic name"
    )


class BookingSettingsOut(BaseModel):
    clinic_id: int
    owner_id: str
    enabled: bool
    slug: str
    model_config = ConfigDict(from_attributes=True)


class SlugAvailabilityOut(BaseModel):
    slug: str
    available: bool
