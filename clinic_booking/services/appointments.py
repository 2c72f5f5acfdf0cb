# clinic_booking/services/appointments.py
"""
Staff-side appointment management. Every write that could occupy new clinic
time goes through the availability engine first.
"""
from __future__ import annotations

from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.config import settings
from clinic_booking.core.errors import ConflictError, NotFoundError, ValidationError
from clinic_booking.core.logging import get_logger
from clinic_booking.crud.appointment import (
    delete_appointment,
    get_appointment,
    insert_appointment,
    update_appointment,
)
from clinic_booking.crud.patient import get_patient
from clinic_booking.db.models import Appointment, AppointmentStatus
from clinic_booking.scheduling.availability import find_conflicts
from clinic_booking.scheduling.interval import Interval, to_time
from clinic_booking.schemas.appointment import AppointmentCreate, AppointmentUpdate

logger = get_logger(__name__)

_CANCELLED = AppointmentStatus.CANCELLED.value


async def _ensure_free(db: AsyncSession, owner_id: str, interval: Interval, exclude_id: int | None = None) -> None:
    conflicts = await find_conflicts(db, owner_id, interval, exclude_appointment_id=exclude_id)
    if conflicts:
        logger.info(
            "appointment_conflict",
            owner_id=owner_id,
            interval=str(interval),
            appointment_id=exclude_id,
            conflicting_appointment_ids=[a.id for a in conflicts],
        )
        raise ConflictError(
            "This time overlaps an existing appointment",
            conflicting_appointment_ids=[a.id for a in conflicts],
        )


async def _ensure_patient(db: AsyncSession, owner_id: str, patient_id: int) -> None:
    patient = await get_patient(db, patient_id)
    if patient is None or patient.owner_id != owner_id:
        raise NotFoundError("Patient not found", patient_id=patient_id)


def _interval(day, start, end) -> Interval:
    try:
        return Interval(day, to_time(start), to_time(end))
    except ValueError as e:
        raise ValidationError(str(e))


async def get_appointment_or_404(db: AsyncSession, appointment_id: int) -> Appointment:
    appt = await get_appointment(db, appointment_id)
    if appt is None:
        raise NotFoundError("Appointment not found", appointment_id=appointment_id)
    return appt


async def create_appointment(db: AsyncSession, payload: AppointmentCreate) -> Appointment:
    await _ensure_patient(db, payload.owner_id, payload.patient_id)

    if payload.end_time is not None:
        interval = _interval(payload.date, payload.start_time, payload.end_time)
    else:
        try:
            interval = Interval.starting_at(payload.date, payload.start_time, settings.DEFAULT_BOOKING_DURATION_MIN)
        except ValueError as e:
            raise ValidationError(str(e))

    status = payload.status.value
    if status != _CANCELLED:
        await _ensure_free(db, payload.owner_id, interval)

    fields = payload.model_dump(exclude={"date", "start_time", "end_time", "status"})
    appt = await insert_appointment(
        db,
        **fields,
        date=interval.date,
        start_time=interval.start,
        end_time=interval.end,
        status=status,
    )
    logger.info("appointment_created", appointment_id=appt.id, owner_id=appt.owner_id, interval=str(interval))
    return appt


async def edit_appointment(db: AsyncSession, appointment_id: int, payload: AppointmentUpdate) -> Appointment:
    """
    Apply a partial update. The new interval is re-checked (excluding this
    appointment itself) whenever it moves, or when a cancelled appointment is
    re-activated.
    """
    appt = await get_appointment_or_404(db, appointment_id)
    changes: Dict[str, Any] = payload.model_dump(exclude_unset=True)
    if "status" in changes and changes["status"] is not None:
        changes["status"] = AppointmentStatus(changes["status"]).value
    # Explicit nulls on required columns mean "leave as is"
    for key in ("patient_id", "date", "start_time", "end_time", "status", "is_virtual"):
        if key in changes and changes[key] is None:
            del changes[key]

    if "patient_id" in changes:
        await _ensure_patient(db, appt.owner_id, changes["patient_id"])

    interval = _interval(
        changes.get("date", appt.date),
        changes.get("start_time", appt.start_time),
        changes.get("end_time", appt.end_time),
    )
    old_interval = Interval(appt.date, to_time(appt.start_time), to_time(appt.end_time))
    new_status = changes.get("status", appt.status)

    moved = interval != old_interval
    reactivated = appt.status == _CANCELLED and new_status != _CANCELLED
    if new_status != _CANCELLED and (moved or reactivated):
        await _ensure_free(db, appt.owner_id, interval, exclude_id=appt.id)

    appt = await update_appointment(db, appt, changes)
    logger.info(
        "appointment_updated",
        appointment_id=appt.id,
        owner_id=appt.owner_id,
        fields=sorted(changes),
        status=appt.status,
    )
    return appt


async def remove_appointment(db: AsyncSession, appointment_id: int) -> None:
    if not await delete_appointment(db, appointment_id):
        raise NotFoundError("Appointment not found", appointment_id=appointment_id)
    logger.info("appointment_deleted", appointment_id=appointment_id)
