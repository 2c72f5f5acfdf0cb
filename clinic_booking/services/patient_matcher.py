# clinic_booking/services/patient_matcher.py
"""
Best-effort lookup of an existing patient from booking contact details.

A patient matches when its email equals the contact email ignoring case, or
its phone equals the contact phone exactly. The roster is scanned in creation
order and the first hit wins; duplicate emails/phones across patients are
data-entry errors and are not disambiguated.
"""
from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.logging import get_logger
from clinic_booking.crud.patient import list_patients
from clinic_booking.db.models import Patient

logger = get_logger(__name__)


def match_patient(
    patients: Iterable[Patient],
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> Optional[Patient]:
    wanted_email = email.strip().lower() if email and email.strip() else None
    wanted_phone = phone.strip() if phone and phone.strip() else None
    if wanted_email is None and wanted_phone is None:
        return None

    for patient in patients:
        if wanted_email and patient.email and patient.email.strip().lower() == wanted_email:
            return patient
        if wanted_phone and patient.phone and patient.phone == wanted_phone:
            return patient
    return None


async def find_match(
    db: AsyncSession,
    owner_id: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> Optional[Patient]:
    """Scan only `owner_id`'s roster; returns None when nothing matches."""
    roster = await list_patients(db, owner_id)
    patient = match_patient(roster, email=email, phone=phone)
    logger.debug(
        "patient_match",
        owner_id=owner_id,
        roster_size=len(roster),
        matched_patient_id=patient.id if patient else None,
    )
    return patient
