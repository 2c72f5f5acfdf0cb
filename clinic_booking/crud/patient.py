# clinic_booking/crud/patient.py
from typing import Any, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.db.models import Patient


async def get_patient(db: AsyncSession, patient_id: int) -> Optional[Patient]:
    return await db.get(Patient, patient_id)


async def list_patients(db: AsyncSession, owner_id: str) -> Sequence[Patient]:
    """The owner's roster in creation order; the matcher relies on this order."""
    stmt = sa.select(Patient).where(Patient.owner_id == owner_id).order_by(Patient.id.asc())
    res = await db.execute(stmt)
    return res.scalars().all()


async def insert_patient(db: AsyncSession, *, commit: bool = True, **fields: Any) -> Patient:
    obj = Patient(**fields)
    db.add(obj)
    if not commit:
        await db.flush()
        return obj
    await db.commit()
    await db.refresh(obj)
    return obj
