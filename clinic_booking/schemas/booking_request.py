# clinic_booking/schemas/booking_request.py

from datetime import date as _Date, datetime as _Datetime, time as _Time
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from clinic_booking.scheduling.interval import to_time
from clinic_booking.schemas.patient import NewPatient
from clinic_booking.schemas.validators import clean_name, normalize_phone


class BookingRequestCreate(BaseModel):
    """Public submission from a clinic's booking page."""
    slug: str = Field(..., min_length=1, max_length=80)
    first_name: str = Field(..., min_length=1, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr = Field(...)
    phone: str = Field(..., examples=["+1-587-555-0123"])
    date: _Date
    start_time: _Time = Field(..., examples=["09:00"])
    end_time: Optional[_Time] = Field(
        None, description="End of the chosen slot; defaults to start_time + 30 minutes"
    )
    reason: Optional[str] = Field(None, max_length=2000)
    is_virtual: bool = False

    @field_validator("first_name", "last_name")
    @classmethod
    def _clean_name(cls, v: str) -> str:
        return clean_name(v)

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone")
    @classmethod
    def _normalize_phone(cls, v: str) -> str:
        return normalize_phone(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def _minute_precision(cls, v: Optional[_Time]) -> Optional[_Time]:
        return to_time(v) if v is not None else v

    @field_validator("reason")
    @classmethod
    def _blank_reason(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def _check_order(self):
        if self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BookingRequestCreated(BaseModel):
    id: int
    status: str
    date: _Date
    start_time: _Time
    end_time: _Time
    is_virtual: bool
    meeting_url: Optional[str] = None


class BookingRequestOut(BaseModel):
    id: int
    clinic_id: int
    owner_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    date: _Date
    start_time: _Time
    end_time: _Time
    reason: Optional[str] = None
    is_virtual: bool
    meeting_id: Optional[str] = None
    meeting_url: Optional[str] = None
    status: str
    appointment_id: Optional[int] = None
    created_at: _Datetime
    model_config = ConfigDict(from_attributes=True)


class ConfirmBooking(BaseModel):
    """
    Patient binding for confirmation: an existing patient id or the fields of a
    new patient. Supplying neither is rejected by the lifecycle, not here.
    """
    patient_id: Optional[int] = None
    new_patient: Optional[NewPatient] = None

    @model_validator(mode="after")
    def _one_binding(self):
        if self.patient_id is not None and self.new_patient is not None:
            raise ValueError("provide either patient_id or new_patient, not both")
        return self


class ConfirmResult(BaseModel):
    booking_request_id: int
    appointment_id: int
    patient_id: int
    status: str


class RejectResult(BaseModel):
    ok: bool = True
    booking_request_id: int
    status: str
