# clinic_booking/api/routes/clinics.py
"""Clinic records and their public booking page settings (staff only)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.errors import NotFoundError
from clinic_booking.core.logging import get_logger
from clinic_booking.core.security import require_api_key
from clinic_booking.crud.clinic import get_clinic, get_setting_for_clinic, insert_clinic
from clinic_booking.db.session import get_session
from clinic_booking.schemas.clinic import (
    BookingSettingsIn,
    BookingSettingsOut,
    ClinicCreate,
    ClinicOut,
    SlugAvailabilityOut,
)
from clinic_booking.services.public_booking import check_slug_available, normalize_slug, save_settings

logger = get_logger(__name__)

router = APIRouter(tags=["clinics"], dependencies=[Depends(require_api_key)])


async def _clinic_or_404(db: AsyncSession, clinic_id: int):
    clinic = await get_clinic(db, clinic_id)
    if clinic is None:
        raise NotFoundError("Clinic not found", clinic_id=clinic_id)
    return clinic


@router.post("/clinics", response_model=ClinicOut, status_code=201)
async def add_clinic(payload: ClinicCreate, db: AsyncSession = Depends(get_session)):
    clinic = await insert_clinic(db, **payload.model_dump())
    logger.info("clinic_created", clinic_id=clinic.id, owner_id=clinic.owner_id)
    return clinic


@router.get("/clinics/{clinic_id}", response_model=ClinicOut)
async def get_one_clinic(clinic_id: int, db: AsyncSession = Depends(get_session)):
    return await _clinic_or_404(db, clinic_id)


@router.get("/clinics/{clinic_id}/public-booking", response_model=BookingSettingsOut)
async def get_booking_settings(clinic_id: int, db: AsyncSession = Depends(get_session)):
    await _clinic_or_404(db, clinic_id)
    setting = await get_setting_for_clinic(db, clinic_id)
    if setting is None:
        raise NotFoundError("Public booking is not configured for this clinic", clinic_id=clinic_id)
    return setting


@router.put("/clinics/{clinic_id}/public-booking", response_model=BookingSettingsOut)
async def put_booking_settings(clinic_id: int, payload: BookingSettingsIn, db: AsyncSession = Depends(get_session)):
    clinic = await _clinic_or_404(db, clinic_id)
    return await save_settings(db, clinic, enabled=payload.enabled, slug=payload.slug)


@router.get("/public-booking/slug-availability", response_model=SlugAvailabilityOut)
async def slug_availability(
    slug: str = Query(..., min_length=1, max_length=80),
    clinic_id: Optional[int] = Query(None, description="Clinic asking; its own slug counts as available"),
    db: AsyncSession = Depends(get_session),
):
    candidate = normalize_slug(slug)
    available = await check_slug_available(db, candidate, excluding_clinic_id=clinic_id)
    return SlugAvailabilityOut(slug=candidate, available=available)
