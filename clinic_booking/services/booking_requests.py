# clinic_booking/services/booking_requests.py
"""
Booking request lifecycle: pending -> confirmed | rejected.

Requests are advisory: creation does not check availability. Confirmation
re-checks the slot and, in one transaction, binds a patient (existing or new),
inserts the appointment, and flips the request to confirmed. Any failure rolls
the whole unit back, so a request is never left pending next to an
appointment created for it.
"""
from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.config import settings
from clinic_booking.core.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from clinic_booking.core.logging import get_logger
from clinic_booking.crud.appointment import insert_appointment
from clinic_booking.crud.booking_request import (
    get_booking_request,
    insert_booking_request,
    list_booking_requests,
    update_booking_request_status,
)
from clinic_booking.crud.patient import get_patient, insert_patient
from clinic_booking.db.models import Appointment, AppointmentStatus, BookingRequest, BookingStatus, Patient
from clinic_booking.scheduling.availability import find_conflicts
from clinic_booking.scheduling.interval import Interval, to_time
from clinic_booking.schemas.booking_request import BookingRequestCreate, ConfirmBooking
from clinic_booking.services.patient_matcher import find_match
from clinic_booking.services.public_booking import resolve

logger = get_logger(__name__)

DEFAULT_TITLE = "Appointment"
_MEETING_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class ConfirmOutcome:
    booking_request: BookingRequest
    appointment: Appointment
    patient: Patient
    patient_created: bool


# ---------- Internal helpers ----------

def booking_window(today: date) -> tuple[date, date]:
    """First and last bookable public dates: tomorrow .. today + window."""
    return today + timedelta(days=1), today + timedelta(days=settings.BOOKING_WINDOW_DAYS)


def new_meeting_ref(now_ms: Optional[int] = None) -> tuple[str, str]:
    """Meeting id and join URL for a virtual visit."""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_MEETING_ALPHABET) for _ in range(5))
    meeting_id = f"clinic-{now_ms}-{suffix}"
    return meeting_id, f"{settings.MEETING_BASE_URL.rstrip('/')}/{meeting_id}"


def request_interval(req: BookingRequest) -> Interval:
    return Interval(req.date, to_time(req.start_time), to_time(req.end_time))


def _appointment_notes(reason: Optional[str]) -> str:
    return f"Booked through public booking page. Reason: {reason or 'Not specified'}"


def _appointment_title(reason: Optional[str]) -> str:
    if not reason:
        return DEFAULT_TITLE
    return reason if len(reason) <= 200 else reason[:197] + "..."


# ---------- Queries ----------

async def get_booking_request_or_404(db: AsyncSession, request_id: int) -> BookingRequest:
    req = await get_booking_request(db, request_id)
    if req is None:
        raise NotFoundError("Booking request not found", booking_request_id=request_id)
    return req


async def list_pending(db: AsyncSession, owner_id: str, limit: int = 100) -> Sequence[BookingRequest]:
    return await list_booking_requests(db, owner_id, status=BookingStatus.PENDING.value, limit=limit)


async def suggest_patient(db: AsyncSession, request_id: int) -> Optional[Patient]:
    """Matcher suggestion for the staff confirm dialog."""
    req = await get_booking_request_or_404(db, request_id)
    return await find_match(db, req.owner_id, email=req.email, phone=req.phone)


# ---------- Transitions ----------

async def create_booking_request(
    db: AsyncSession,
    payload: BookingRequestCreate,
    *,
    today: Optional[date] = None,
) -> BookingRequest:
    """
    Public submission. The slug must resolve to an enabled clinic; the slot is
    not re-checked here (staff confirmation does that).
    """
    resolved = await resolve(db, payload.slug)

    first, last = booking_window(today or date.today())
    if not first <= payload.date <= last:
        raise ValidationError(
            "Please choose a date between tomorrow and the next "
            f"{settings.BOOKING_WINDOW_DAYS} days",
            earliest=first.isoformat(),
            latest=last.isoformat(),
        )

    try:
        if payload.end_time is not None:
            interval = Interval(payload.date, payload.start_time, payload.end_time)
        else:
            interval = Interval.starting_at(payload.date, payload.start_time, settings.DEFAULT_BOOKING_DURATION_MIN)
    except ValueError as e:
        raise ValidationError(str(e))

    meeting_id = meeting_url = None
    if payload.is_virtual:
        meeting_id, meeting_url = new_meeting_ref()

    req = await insert_booking_request(
        db,
        clinic_id=resolved.clinic_id,
        owner_id=resolved.owner_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        phone=payload.phone,
        date=interval.date,
        start_time=interval.start,
        end_time=interval.end,
        reason=payload.reason,
        is_virtual=payload.is_virtual,
        meeting_id=meeting_id,
        meeting_url=meeting_url,
        status=BookingStatus.PENDING.value,
    )
    logger.info(
        "booking_request_created",
        booking_request_id=req.id,
        owner_id=req.owner_id,
        clinic_id=req.clinic_id,
        interval=str(interval),
        is_virtual=req.is_virtual,
    )
    return req


async def confirm_booking_request(
    db: AsyncSession,
    request_id: int,
    binding: ConfirmBooking,
) -> ConfirmOutcome:
    """
    Confirm a pending request against a patient binding.

    Raises:
        NotFoundError: unknown request, or patient_id not in the clinic's roster
        InvalidStateError: request not pending, or no patient binding given
        ConflictError: the slot is now occupied; the request stays pending
    """
    req = await get_booking_request_or_404(db, request_id)
    if req.status != BookingStatus.PENDING.value:
        raise InvalidStateError(
            f"Booking request is already {req.status}", booking_request_id=req.id, status=req.status
        )
    if binding.patient_id is None and binding.new_patient is None:
        raise InvalidStateError(
            "Please select or create a patient to link with this appointment", booking_request_id=req.id
        )

    owner_id = req.owner_id
    interval = request_interval(req)

    try:
        patient: Optional[Patient] = None
        if binding.patient_id is not None:
            patient = await get_patient(db, binding.patient_id)
            # Another clinic's patient is indistinguishable from a missing one
            if patient is None or patient.owner_id != owner_id:
                raise NotFoundError("Patient not found", patient_id=binding.patient_id)

        conflicts = await find_conflicts(db, owner_id, interval)
        if conflicts:
            logger.info(
                "booking_confirm_conflict",
                booking_request_id=req.id,
                interval=str(interval),
                conflicting_appointment_ids=[a.id for a in conflicts],
            )
            raise ConflictError(
                "This time slot is no longer available",
                booking_request_id=req.id,
                conflicting_appointment_ids=[a.id for a in conflicts],
            )

        patient_created = False
        if patient is None:
            patient = await insert_patient(
                db, commit=False, owner_id=owner_id, **binding.new_patient.model_dump()
            )
            patient_created = True

        appt = await insert_appointment(
            db,
            commit=False,
            owner_id=owner_id,
            patient_id=patient.id,
            title=_appointment_title(req.reason),
            date=interval.date,
            start_time=interval.start,
            end_time=interval.end,
            status=AppointmentStatus.SCHEDULED.value,
            notes=_appointment_notes(req.reason),
            is_virtual=req.is_virtual,
            meeting_id=req.meeting_id,
            meeting_url=req.meeting_url,
        )

        updated = await update_booking_request_status(
            db,
            req.id,
            BookingStatus.CONFIRMED.value,
            expected_status=BookingStatus.PENDING.value,
            appointment_id=appt.id,
            commit=False,
        )
        if not updated:
            # Someone else confirmed or rejected it since we read it
            raise InvalidStateError("Booking request is no longer pending", booking_request_id=req.id)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(req)
    await db.refresh(appt)
    logger.info(
        "booking_request_confirmed",
        booking_request_id=req.id,
        appointment_id=appt.id,
        patient_id=patient.id,
        patient_created=patient_created,
        owner_id=owner_id,
    )
    return ConfirmOutcome(booking_request=req, appointment=appt, patient=patient, patient_created=patient_created)


async def reject_booking_request(db: AsyncSession, request_id: int) -> BookingRequest:
    """
    Reject a pending request. Rejecting an already rejected request is a no-op;
    rejecting a confirmed one raises InvalidStateError.
    """
    req = await get_booking_request_or_404(db, request_id)

    if req.status == BookingStatus.REJECTED.value:
        logger.info("booking_request_reject_noop", booking_request_id=req.id)
        return req
    if req.status != BookingStatus.PENDING.value:
        raise InvalidStateError(
            f"Booking request is already {req.status}", booking_request_id=req.id, status=req.status
        )

    updated = await update_booking_request_status(
        db,
        req.id,
        BookingStatus.REJECTED.value,
        expected_status=BookingStatus.PENDING.value,
    )
    await db.refresh(req)
    if not updated and req.status != BookingStatus.REJECTED.value:
        raise InvalidStateError(
            f"Booking request is already {req.status}", booking_request_id=req.id, status=req.status
        )

    logger.info("booking_request_rejected", booking_request_id=req.id, owner_id=req.owner_id)
    return req
