# clinic_booking/crud/booking_request.py
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.db.models import BookingRequest, BookingStatus


async def get_booking_request(db: AsyncSession, request_id: int) -> Optional[BookingRequest]:
    return await db.get(BookingRequest, request_id)


async def insert_booking_request(db: AsyncSession, **fields: Any) -> BookingRequest:
    obj = BookingRequest(**fields)
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


async def list_booking_requests(
    db: AsyncSession,
    owner_id: str,
    *,
    status: Optional[str] = BookingStatus.PENDING.value,
    limit: int = 100,
) -> Sequence[BookingRequest]:
    """Newest first, like the staff inbox."""
    stmt = sa.select(BookingRequest).where(BookingRequest.owner_id == owner_id)
    if status is not None:
        stmt = stmt.where(BookingRequest.status == status)
    stmt = stmt.order_by(BookingRequest.created_at.desc(), BookingRequest.id.desc()).limit(limit)
    res = await db.execute(stmt)
    return res.scalars().all()


async def update_booking_request_status(
    db: AsyncSession,
    request_id: int,
    status: str,
    *,
    expected_status: Optional[str] = None,
    appointment_id: Optional[int] = None,
    commit: bool = True,
) -> bool:
    """
    Set a request's status. With expected_status the UPDATE only matches while
    the row still has that status, so two concurrent transitions cannot both win.

    Returns True if a row was updated.
    """
    values: dict[str, Any] = {"status": status, "updated_at": datetime.now(timezone.utc)}
    if appointment_id is not None:
        values["appointment_id"] = appointment_id

    stmt = sa.update(BookingRequest).where(BookingRequest.id == request_id)
    if expected_status is not None:
        stmt = stmt.where(BookingRequest.status == expected_status)
    stmt = stmt.values(**values).execution_options(synchronize_session=False)

    res = await db.execute(stmt)
    if commit:
        await db.commit()
    return res.rowcount == 1
