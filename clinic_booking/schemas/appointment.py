# clinic_booking/schemas/appointment.py

from datetime import date as _Date, datetime as _Datetime, time as _Time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clinic_booking.db.models import AppointmentStatus
from clinic_booking.scheduling.interval import to_time


class AppointmentCreate(BaseModel):
    owner_id: str = Field(..., min_length=1, max_length=64)
    patient_id: int
    title: Optional[str] = Field(None, max_length=200)
    date: _Date
    start_time: _Time = Field(..., examples=["09:00"])
    end_time: Optional[_Time] = Field(None, description="Defaults to start_time + 30 minutes")
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None
    is_virtual: bool = False
    meeting_id: Optional[str] = Field(None, max_length=120)
    meeting_url: Optional[str] = Field(None, max_length=500)

    @field_validator("start_time", "end_time")
    @classmethod
    def _minute_precision(cls, v: Optional[_Time]) -> Optional[_Time]:
        return to_time(v) if v is not None else v

    @model_validator(mode="after")
    def _check_order(self):
        if self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AppointmentUpdate(BaseModel):
    patient_id: Optional[int] = None
    title: Optional[str] = Field(None, max_length=200)
    date: Optional[_Date] = None
    start_time: Optional[_Time] = None
    end_time: Optional[_Time] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    is_virtual: Optional[bool] = None
    meeting_id: Optional[str] = Field(None, max_length=120)
    meeting_url: Optional[str] = Field(None, max_length=500)

    @field_validator("start_time", "end_time")
    @classmethod
    def _minute_precision(cls, v: Optional[_Time]) -> Optional[_Time]:
        return to_time(v) if v is not None else v


class AppointmentOut(BaseModel):
    id: int
    owner_id: str
    patient_id: int
    title: Optional[str] = None
    date: _Date
    start_time: _Time
    end_time: _Time
    status: str
    notes: Optional[str] = None
    is_virtual: bool
    meeting_id: Optional[str] = None
    meeting_url: Optional[str] = None
    created_at: _Datetime
    updated_at: _Datetime
    model_config = ConfigDict(from_attributes=True)
