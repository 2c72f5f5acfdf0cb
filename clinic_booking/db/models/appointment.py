# clinic_booking/db/models/appointment.py

from __future__ import annotations
import datetime as dt
import enum

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship
from clinic_booking.db.session import Base


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Appointment(Base):
    __tablename__ = "appointments"
    # No unique constraint on (owner_id, date, start_time): a cancelled row must
    # not keep its slot, so overlap is enforced in the availability engine.
    __table_args__ = (
        sa.Index("ix_appointments_owner_id_date", "owner_id", "date"),
        sa.Index("ix_appointments_patient_id", "patient_id"),
    )

    id: Mapped[int] = mapped_column(sa.BigInteger().with_variant(sa.Integer, "sqlite"), primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    patient_id: Mapped[int] = mapped_column(
        sa.BigInteger().with_variant(sa.Integer, "sqlite"),
        sa.ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str | None] = mapped_column(sa.String(200))
    # Clinic-local wall clock; no timezone
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    start_time: Mapped[dt.time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(sa.Time, nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(16), nullable=False, default=AppointmentStatus.SCHEDULED.value, server_default="scheduled"
    )
    notes: Mapped[str | None] = mapped_column(sa.Text)

    is_virtual: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False, server_default=sa.false())
    meeting_id: Mapped[str | None] = mapped_column(sa.String(120))
    meeting_url: Mapped[str | None] = mapped_column(sa.String(500))

    created_at: Mapped[dt.datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Relations
    patient: Mapped["Patient"] = relationship(back_populates="appointments")

    @property
    def blocks_time(self) -> bool:
        """Cancelled appointments never occupy clinic time; every other status does."""
        return self.status != AppointmentStatus.CANCELLED.value
