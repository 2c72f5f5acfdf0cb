# clinic_booking/api/routes/appointments.py

from datetime import date as _Date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.security import require_api_key
from clinic_booking.crud.appointment import list_appointments
from clinic_booking.db.models import AppointmentStatus
from clinic_booking.db.session import get_session
from clinic_booking.schemas.appointment import AppointmentCreate, AppointmentOut, AppointmentUpdate
from clinic_booking.services.appointments import (
    create_appointment,
    edit_appointment,
    get_appointment_or_404,
    remove_appointment,
)

router = APIRouter(prefix="/appointments", tags=["appointments"], dependencies=[Depends(require_api_key)])


@router.post("", response_model=AppointmentOut, status_code=201)
async def add_appointment(payload: AppointmentCreate, db: AsyncSession = Depends(get_session)):
    return await create_appointment(db, payload)


@router.get("", response_model=List[AppointmentOut])
async def get_appointments(
    owner_id: str = Query(..., min_length=1),
    start_date: Optional[_Date] = None,
    end_date: Optional[_Date] = None,
    patient_id: Optional[int] = None,
    status: Optional[AppointmentStatus] = None,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
):
    return await list_appointments(
        db,
        owner_id=owner_id,
        start_date=start_date,
        end_date=end_date,
        patient_id=patient_id,
        status=status.value if status else None,
        limit=limit,
    )


@router.get("/{appointment_id}", response_model=AppointmentOut)
async def get_one(appointment_id: int, db: AsyncSession = Depends(get_session)):
    return await get_appointment_or_404(db, appointment_id)


@router.patch("/{appointment_id}", response_model=AppointmentOut)
async def patch_appointment(appointment_id: int, payload: AppointmentUpdate, db: AsyncSession = Depends(get_session)):
    return await edit_appointment(db, appointment_id, payload)


@router.delete("/{appointment_id}", status_code=204)
async def delete_one(appointment_id: int, db: AsyncSession = Depends(get_session)):
    await remove_appointment(db, appointment_id)
    return Response(status_code=204)
