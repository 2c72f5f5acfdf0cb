# clinic_booking/api/routes/public.py
"""Unauthenticated endpoints backing a clinic's public booking page."""

from __future__ import annotations
from datetime import date as _Date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.api.routes.availability import availability_out
from clinic_booking.core.config import settings
from clinic_booking.db.session import get_session
from clinic_booking.scheduling.availability import generate_slots
from clinic_booking.schemas.clinic import PublicClinicOut, PublicPageOut
from clinic_booking.services.public_booking import resolve_clinic

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/{slug}", response_model=PublicPageOut)
async def get_public_page(
    slug: str,
    date: Optional[_Date] = Query(None, description="Day to show; defaults to tomorrow"),
    db: AsyncSession = Depends(get_session),
):
    resolved, clinic = await resolve_clinic(db, slug)
    day = date or (_Date.today() + timedelta(days=1))
    slots = await generate_slots(db, resolved.owner_id, day)
    return PublicPageOut(
        slug=slug,
        clinic=PublicClinicOut.model_validate(clinic),
        availability=availability_out(day, settings.SLOT_MINUTES, slots),
    )
