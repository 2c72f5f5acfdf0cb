"""
Availability Engine

Builds the fixed slot grid for a clinic-day and checks candidate intervals
against the clinic's existing appointments:
- cancelled appointments never block
- completed and no-show appointments still block (they occupied real time)
- conflicts use raw interval overlap, so off-grid appointments are handled
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.config import settings
from clinic_booking.core.logging import get_logger
from clinic_booking.crud.appointment import list_appointments_for_day
from clinic_booking.db.models import Appointment
from clinic_booking.scheduling.interval import Interval, add_minutes, format_clock, to_time

logger = get_logger(__name__)


@dataclass(frozen=True)
class Slot:
    interval: Interval
    available: bool

    @property
    def label(self) -> str:
        return format_clock(self.interval.start)


def appointment_interval(appt: Appointment) -> Interval:
    return Interval(appt.date, to_time(appt.start_time), to_time(appt.end_time))


def build_grid(day: date, granularity: int, day_start: time, day_end: time) -> List[Interval]:
    """
    Fixed grid of `granularity`-minute slots from day_start; a slot is only
    emitted if it ends no later than day_end.
    """
    if granularity <= 0:
        raise ValueError("Slot granularity must be positive")
    day_start, day_end = to_time(day_start), to_time(day_end)
    if not day_start < day_end:
        raise ValueError("Day start must be before day end")

    grid: List[Interval] = []
    current = day_start
    while current < day_end:
        try:
            slot_end = add_minutes(current, granularity)
        except ValueError:
            # Next slot would run past midnight
            break
        if slot_end > day_end:
            break
        grid.append(Interval(day, current, slot_end))
        current = slot_end
    return grid


def blocking_appointments(
    appointments: Iterable[Appointment],
    candidate: Interval,
    exclude_appointment_id: Optional[int] = None,
) -> List[Appointment]:
    """Appointments that occupy time overlapping `candidate`."""
    hits = []
    for appt in appointments:
        if exclude_appointment_id is not None and appt.id == exclude_appointment_id:
            continue
        if not appt.blocks_time:
            continue
        if appointment_interval(appt).overlaps(candidate):
            hits.append(appt)
    return hits


def mark_slots(grid: Sequence[Interval], appointments: Sequence[Appointment]) -> List[Slot]:
    return [Slot(interval=iv, available=not blocking_appointments(appointments, iv)) for iv in grid]


async def generate_slots(
    db: AsyncSession,
    owner_id: str,
    day: date,
    granularity: Optional[int] = None,
    day_start: Optional[time] = None,
    day_end: Optional[time] = None,
) -> List[Slot]:
    """
    Chronological slot list for one owner's day, each flagged available or not.
    Reads the owner's appointments fresh on every call.
    """
    grid = build_grid(
        day,
        settings.SLOT_MINUTES if granularity is None else granularity,
        settings.DAY_START if day_start is None else day_start,
        settings.DAY_END if day_end is None else day_end,
    )
    appointments = await list_appointments_for_day(db, owner_id, day)
    slots = mark_slots(grid, appointments)

    logger.debug(
        "slots_generated",
        owner_id=owner_id,
        date=day.isoformat(),
        total=len(slots),
        available=sum(1 for s in slots if s.available),
    )
    return slots


async def find_conflicts(
    db: AsyncSession,
    owner_id: str,
    candidate: Interval,
    exclude_appointment_id: Optional[int] = None,
) -> List[Appointment]:
    appointments = await list_appointments_for_day(db, owner_id, candidate.date)
    return blocking_appointments(appointments, candidate, exclude_appointment_id)


async def is_free(
    db: AsyncSession,
    owner_id: str,
    candidate: Interval,
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    """
    True if no non-cancelled appointment of `owner_id` overlaps `candidate`.
    `exclude_appointment_id` lets an appointment be moved or resized without
    conflicting with itself.
    """
    conflicts = await find_conflicts(db, owner_id, candidate, exclude_appointment_id)
    return not conflicts
