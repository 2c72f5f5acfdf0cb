# clinic_booking/db/models/booking_request.py

from __future__ import annotations
import datetime as dt
import enum

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from clinic_booking.db.session import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({BookingStatus.CONFIRMED.value, BookingStatus.REJECTED.value})


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class BookingRequest(Base):
    """A request submitted through a clinic's public booking page."""

    __tablename__ = "public_booking_requests"
    __table_args__ = (
        sa.Index("ix_booking_requests_owner_id_status", "owner_id", "status"),
    )

    id: Mapped[int] = mapped_column(sa.BigInteger().with_variant(sa.Integer, "sqlite"), primary_key=True, autoincrement=True)
    clinic_id: Mapped[int] = mapped_column(
        sa.BigInteger().with_variant(sa.Integer, "sqlite"),
        sa.ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    )
    owner_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)

    first_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(254), nullable=False)
    phone: Mapped[str] = mapped_column(sa.String(20), nullable=False)

    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    start_time: Mapped[dt.time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(sa.Time, nullable=False)
    reason: Mapped[str | None] = mapped_column(sa.Text)

    is_virtual: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False, server_default=sa.false())
    meeting_id: Mapped[str | None] = mapped_column(sa.String(120))
    meeting_url: Mapped[str | None] = mapped_column(sa.String(500))

    status: Mapped[str] = mapped_column(
        sa.String(16), nullable=False, default=BookingStatus.PENDING.value, server_default="pending"
    )
    # Set in the same transaction that flips status to confirmed
    appointment_id: Mapped[int | None] = mapped_column(
        sa.BigInteger().with_variant(sa.Integer, "sqlite"),
        sa.ForeignKey("appointments.id", ondelete="SET NULL"),
        unique=True,
    )

    created_at: Mapped[dt.datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
