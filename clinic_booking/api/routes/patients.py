# clinic_booking/api/routes/patients.py

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.logging import get_logger
from clinic_booking.core.security import require_api_key
from clinic_booking.crud.patient import insert_patient, list_patients
from clinic_booking.db.session import get_session
from clinic_booking.schemas.patient import PatientCreate, PatientOut

logger = get_logger(__name__)

router = APIRouter(prefix="/patients", tags=["patients"], dependencies=[Depends(require_api_key)])


@router.post("", response_model=PatientOut, status_code=201)
async def add_patient(payload: PatientCreate, db: AsyncSession = Depends(get_session)):
    patient = await insert_patient(db, **payload.model_dump())
    logger.info("patient_created", patient_id=patient.id, owner_id=patient.owner_id)
    return patient


@router.get("", response_model=List[PatientOut])
async def get_patients(owner_id: str = Query(..., min_length=1), db: AsyncSession = Depends(get_session)):
    return await list_patients(db, owner_id)
