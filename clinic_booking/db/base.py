# clinic_booking/db/base.py
"""
Model registry for metadata consumers (alembic autogenerate, init_db).
New models must be imported here to be seen by either.
"""
from clinic_booking.db.models import (  # noqa: F401
    Appointment,
    BookingRequest,
    Clinic,
    Patient,
    PublicBookingSetting,
)
from clinic_booking.db.session import Base, engine


async def init_db():
    """Create any missing tables in place; used for local development only."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
