# clinic_booking/db/models/patient.py

from __future__ import annotations
import datetime as dt

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic_booking.db.session import Base


class Patient(Base):
    __tablename__ = "patients"
    __table_args__ = (
        sa.Index("ix_patients_owner_id", "owner_id"),
    )

    id: Mapped[int] = mapped_column(sa.BigInteger().with_variant(sa.Integer, "sqlite"), primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)

    first_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    # Neither is unique: matching picks the first hit and tolerates duplicates
    email: Mapped[str | None] = mapped_column(sa.String(254))
    phone: Mapped[str | None] = mapped_column(sa.String(20))
    date_of_birth: Mapped[dt.date | None] = mapped_column(sa.Date)
    gender: Mapped[str | None] = mapped_column(sa.String(32))

    created_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: dt.datetime.now(dt.timezone.utc),
    )

    appointments: Mapped[list["Appointment"]] = relationship(
        back_populates="patient",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
