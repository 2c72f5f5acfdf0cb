# clinic_booking/schemas/availability.py

from datetime import date as _Date, time as _Time
from typing import List

from pydantic import BaseModel


class SlotOut(BaseModel):
    start: _Time
    end: _Time
    label: str
    available: bool


class AvailabilityOut(BaseModel):
    date: _Date
    granularity: int
    slots: List[SlotOut]
