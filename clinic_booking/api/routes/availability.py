# clinic_booking/api/routes/availability.py

from __future__ import annotations
from datetime import date as _Date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.config import settings
from clinic_booking.core.security import require_api_key
from clinic_booking.db.session import get_session
from clinic_booking.scheduling.availability import Slot, generate_slots
from clinic_booking.schemas.availability import AvailabilityOut, SlotOut

router = APIRouter(prefix="/availability", tags=["availability"], dependencies=[Depends(require_api_key)])


def availability_out(day: _Date, granularity: int, slots: List[Slot]) -> AvailabilityOut:
    return AvailabilityOut(
        date=day,
        granularity=granularity,
        slots=[
            SlotOut(start=s.interval.start, end=s.interval.end, label=s.label, available=s.available)
            for s in slots
        ],
    )


@router.get("", response_model=AvailabilityOut)
async def get_availability(
    owner_id: str = Query(..., min_length=1, description="Clinic owner whose calendar to read"),
    date: _Date = Query(..., description="Clinic-local date, YYYY-MM-DD"),
    granularity: Optional[int] = Query(None, ge=5, le=240, description="Slot width in minutes"),
    db: AsyncSession = Depends(get_session),
):
    width = settings.SLOT_MINUTES if granularity is None else granularity
    slots = await generate_slots(db, owner_id, date, granularity=width)
    return availability_out(date, width, slots)
