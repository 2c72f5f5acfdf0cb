# clinic_booking/crud/clinic.py
from typing import Any, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from clinic_booking.db.models import Clinic, PublicBookingSetting


async def get_clinic(db: AsyncSession, clinic_id: int) -> Optional[Clinic]:
    return await db.get(Clinic, clinic_id)


async def insert_clinic(db: AsyncSession, **fields: Any) -> Clinic:
    obj = Clinic(**fields)
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


async def get_setting_by_slug(db: AsyncSession, slug: str) -> Optional[PublicBookingSetting]:
    stmt = sa.select(PublicBookingSetting).where(PublicBookingSetting.slug == slug)
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def get_setting_for_clinic(db: AsyncSession, clinic_id: int) -> Optional[PublicBookingSetting]:
    stmt = sa.select(PublicBookingSetting).where(PublicBookingSetting.clinic_id == clinic_id)
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def list_settings_by_slug(
    db: AsyncSession,
    slug: str,
    exclude_clinic_id: Optional[int] = None,
) -> Sequence[PublicBookingSetting]:
    """Settings rows using this slug, optionally ignoring one clinic's own row."""
    stmt = sa.select(PublicBookingSetting).where(PublicBookingSetting.slug == slug)
    if exclude_clinic_id is not None:
        stmt = stmt.where(PublicBookingSetting.clinic_id != exclude_clinic_id)
    res = await db.execute(stmt)
    return res.scalars().all()


async def upsert_setting(
    db: AsyncSession,
    *,
    clinic_id: int,
    owner_id: str,
    enabled: bool,
    slug: str,
) -> PublicBookingSetting:
    """
    Insert or update the clinic's setting row.
    Raises IntegrityError if the slug was claimed concurrently.
    """
    obj = await get_setting_for_clinic(db, clinic_id)
    if obj is None:
        obj = PublicBookingSetting(clinic_id=clinic_id, owner_id=owner_id, enabled=enabled, slug=slug)
        db.add(obj)
    else:
        obj.enabled = enabled
        obj.slug = slug

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise
    await db.refresh(obj)
    return obj
