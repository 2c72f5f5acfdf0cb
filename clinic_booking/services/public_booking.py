# clinic_booking/services/public_booking.py
"""
Public identity resolution: slug -> clinic, and slug ownership rules.

Unknown and disabled slugs raise the same NotFoundError so the public page
never reveals that a clinic exists with booking turned off.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.errors import ConflictError, NotFoundError, ValidationError
from clinic_booking.core.logging import get_logger
from clinic_booking.crud.clinic import get_clinic, get_setting_by_slug, list_settings_by_slug, upsert_setting
from clinic_booking.db.models import Clinic, PublicBookingSetting

logger = get_logger(__name__)

PUBLIC_NOT_FOUND = "Booking page not found"

_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


@dataclass(frozen=True)
class ResolvedClinic:
    owner_id: str
    clinic_id: int


def slugify(name: str) -> str:
    """'Dr. Smith & Co. Clinic' -> 'dr-smith-co-clinic'"""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def normalize_slug(raw: str) -> str:
    """Lowercase and drop anything that is not a letter, digit, or hyphen."""
    return re.sub(r"[^a-z0-9-]", "", raw.strip().lower())


def is_valid_slug(slug: str) -> bool:
    return bool(_SLUG_RE.match(slug)) and len(slug) <= 80


async def resolve(db: AsyncSession, slug: str) -> ResolvedClinic:
    setting = await get_setting_by_slug(db, normalize_slug(slug))
    if setting is None or not setting.enabled:
        # Same answer for both cases; only the log tells them apart
        logger.info("public_slug_rejected", slug=slug, reason="missing" if setting is None else "disabled")
        raise NotFoundError(PUBLIC_NOT_FOUND)
    return ResolvedClinic(owner_id=setting.owner_id, clinic_id=setting.clinic_id)


async def resolve_clinic(db: AsyncSession, slug: str) -> tuple[ResolvedClinic, Clinic]:
    """Resolve a slug and load the clinic row shown on the public page."""
    resolved = await resolve(db, slug)
    clinic = await get_clinic(db, resolved.clinic_id)
    if clinic is None:
        raise NotFoundError(PUBLIC_NOT_FOUND)
    return resolved, clinic


async def check_slug_available(
    db: AsyncSession,
    candidate_slug: str,
    excluding_clinic_id: Optional[int] = None,
) -> bool:
    """
    True if no other clinic's setting uses the slug. This is a read followed by
    a separate write in save_settings, so two clinics can still race for the
    same slug; the unique index turns the loser's write into a ConflictError.
    """
    taken = await list_settings_by_slug(db, candidate_slug, exclude_clinic_id=excluding_clinic_id)
    return len(taken) == 0


async def save_settings(
    db: AsyncSession,
    clinic: Clinic,
    *,
    enabled: bool,
    slug: Optional[str] = None,
) -> PublicBookingSetting:
    slug = normalize_slug(slug) if slug else slugify(clinic.name)
    if not is_valid_slug(slug):
        raise ValidationError("Booking URL may only contain lowercase letters, numbers, and single hyphens", slug=slug)

    if not await check_slug_available(db, slug, excluding_clinic_id=clinic.id):
        raise ConflictError("The booking URL is already in use. Please choose another one.", slug=slug)

    try:
        setting = await upsert_setting(
            db, clinic_id=clinic.id, owner_id=clinic.owner_id, enabled=enabled, slug=slug
        )
    except IntegrityError:
        logger.warning("slug_claim_race_lost", clinic_id=clinic.id, slug=slug)
        raise ConflictError("The booking URL is already in use. Please choose another one.", slug=slug)

    logger.info("public_booking_settings_saved", clinic_id=clinic.id, slug=slug, enabled=enabled)
    return setting
