# clinic_booking/crud/appointment.py

from __future__ import annotations
from datetime import date
from typing import Any, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.db.models import Appointment


async def get_appointment(db: AsyncSession, appointment_id: int) -> Optional[Appointment]:
    return await db.get(Appointment, appointment_id)


async def list_appointments_for_day(
    db: AsyncSession,
    owner_id: str,
    day: date,
) -> Sequence[Appointment]:
    """Every appointment of one owner on one date, any status, ordered by start."""
    q = (
        sa.select(Appointment)
        .where(Appointment.owner_id == owner_id, Appointment.date == day)
        .order_by(Appointment.start_time.asc(), Appointment.id.asc())
    )
    res = await db.execute(q)
    return res.scalars().all()


async def list_appointments(
    db: AsyncSession,
    *,
    owner_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    patient_id: Optional[int] = None,
    status: Optional[str] = None,
    limit: int = 100,
) -> Sequence[Appointment]:
    q = sa.select(Appointment).where(Appointment.owner_id == owner_id)
    if start_date is not None:
        q = q.where(Appointment.date >= start_date)
    if end_date is not None:
        q = q.where(Appointment.date <= end_date)
    if patient_id is not None:
        q = q.where(Appointment.patient_id == patient_id)
    if status is not None:
        q = q.where(Appointment.status == status)
    q = q.order_by(Appointment.date.asc(), Appointment.start_time.asc()).limit(limit)
    res = await db.execute(q)
    return res.scalars().all()


async def insert_appointment(db: AsyncSession, *, commit: bool = True, **fields: Any) -> Appointment:
    """
    Add an appointment. With commit=False the row is only flushed so the caller
    can finish a larger unit of work and commit (or roll back) once.
    """
    appt = Appointment(**fields)
    db.add(appt)
    if not commit:
        await db.flush()
        return appt
    await db.commit()
    await db.refresh(appt)
    return appt


async def update_appointment(db: AsyncSession, appt: Appointment, changes: dict[str, Any]) -> Appointment:
    for k, v in changes.items():
        setattr(appt, k, v)
    await db.commit()
    await db.refresh(appt)
    return appt


async def delete_appointment(db: AsyncSession, appointment_id: int) -> bool:
    obj = await db.get(Appointment, appointment_id)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    return True
