# clinic_booking/schemas/patient.py
from datetime import date as _Date, datetime as _Datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from clinic_booking.schemas.validators import blank_to_none, clean_name, normalize_optional_phone


class NewPatient(BaseModel):
    """Patient fields supplied by staff; the owner comes from context."""
    first_name: str = Field(..., min_length=1, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120)
    email: Optional[EmailStr] = Field(None, examples=["jane@example.com"])
    phone: Optional[str] = Field(None, examples=["+1-587-555-0123"])
    date_of_birth: Optional[_Date] = None
    gender: Optional[str] = Field(None, max_length=32)

    @field_validator("first_name", "last_name")
    @classmethod
    def _clean_name(cls, v: str) -> str:
        return clean_name(v)

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, v):
        return blank_to_none(v)

    @field_validator("phone")
    @classmethod
    def _normalize_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_optional_phone(v)


class PatientCreate(NewPatient):
    owner_id: str = Field(..., min_length=1, max_length=64)


class PatientOut(BaseModel):
    id: int
    owner_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[_Date] = None
    gender: Optional[str] = None
    created_at: _Datetime
    model_config = ConfigDict(from_attributes=True)
