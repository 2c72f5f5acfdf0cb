#!/usr/bin/env python3
"""
Tests for the booking request lifecycle: create, confirm, reject.
"""

import re
from datetime import date, time, timedelta

import pytest
import sqlalchemy as sa

from clinic_booking.core.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from clinic_booking.db.models import Appointment, AppointmentStatus, BookingStatus, Patient
from clinic_booking.schemas.booking_request import BookingRequestCreate, ConfirmBooking
from clinic_booking.schemas.patient import NewPatient
from clinic_booking.services.booking_requests import (
    booking_window,
    confirm_booking_request,
    create_booking_request,
    list_pending,
    new_meeting_ref,
    reject_booking_request,
    suggest_patient,
)

pytestmark = pytest.mark.essential

TODAY = date(2024, 5, 31)
DAY = date(2024, 6, 1)


def submission(**overrides):
    fields = dict(
        slug="maple",
        first_name="Sam",
        last_name="Walker",
        email="sam@example.com",
        phone="(587) 555-0123",
        date=DAY,
        start_time=time(9, 0),
        reason="Sore throat",
    )
    fields.update(overrides)
    return BookingRequestCreate(**fields)


async def count(db, model):
    return await db.scalar(sa.select(sa.func.count()).select_from(model))


@pytest.mark.unit
class TestHelpers:
    def test_booking_window(self):
        first, last = booking_window(TODAY)
        assert first == TODAY + timedelta(days=1)
        assert last == TODAY + timedelta(days=30)

    def test_meeting_ref_format(self):
        meeting_id, url = new_meeting_ref(now_ms=1717200000000)
        assert re.fullmatch(r"clinic-1717200000000-[a-z0-9]{5}", meeting_id)
        assert url == f"https://meet.jit.si/{meeting_id}"

    @pytest.mark.parametrize("email", ["sam@example..com", "sam@.example.com", "sam.@example.com", "sam@example"])
    def test_malformed_email_is_rejected(self, email):
        with pytest.raises(ValueError):
            submission(email=email)

    def test_email_is_trimmed(self):
        assert submission(email="  sam@example.com ").email == "sam@example.com"

    @pytest.mark.parametrize("email", ["", "   "])
    def test_blank_optional_email_is_absent(self, email):
        assert NewPatient(first_name="Sam", last_name="Walker", email=email).email is None


class TestCreate:
    async def test_creates_pending_request_for_slug_owner(self, db, seed):
        clinic = await seed.clinic(owner_id="owner-a", slug="maple")

        req = await create_booking_request(db, submission(), today=TODAY)
        assert req.status == BookingStatus.PENDING.value
        assert req.owner_id == "owner-a"
        assert req.clinic_id == clinic.id
        assert req.start_time == time(9, 0)
        assert req.end_time == time(9, 30)
        assert req.phone == "+15875550123"
        assert req.appointment_id is None
        assert req.meeting_id is None

    async def test_explicit_end_time_is_kept(self, db, seed):
        await seed.clinic(slug="maple")

        req = await create_booking_request(db, submission(end_time=time(10, 0)), today=TODAY)
        assert req.end_time == time(10, 0)

    async def test_virtual_request_gets_meeting_link(self, db, seed):
        await seed.clinic(slug="maple")

        req = await create_booking_request(db, submission(is_virtual=True), today=TODAY)
        assert re.fullmatch(r"clinic-\d+-[a-z0-9]{5}", req.meeting_id)
        assert req.meeting_url.endswith(req.meeting_id)

    async def test_unknown_or_disabled_slug(self, db, seed):
        await seed.clinic(slug="closed", enabled=False)

        with pytest.raises(NotFoundError):
            await create_booking_request(db, submission(slug="closed"), today=TODAY)
        with pytest.raises(NotFoundError):
            await create_booking_request(db, submission(slug="nowhere"), today=TODAY)

    async def test_date_outside_window_is_rejected(self, db, seed):
        await seed.clinic(slug="maple")

        with pytest.raises(ValidationError):
            await create_booking_request(db, submission(date=TODAY), today=TODAY)
        with pytest.raises(ValidationError):
            await create_booking_request(db, submission(date=TODAY + timedelta(days=31)), today=TODAY)

        last = await create_booking_request(db, submission(date=TODAY + timedelta(days=30)), today=TODAY)
        assert last.status == BookingStatus.PENDING.value

    async def test_creation_does_not_check_availability(self, db, seed):
        await seed.clinic(slug="maple")
        patient = await seed.patient()
        await seed.appointment(patient, DAY, time(9, 0), time(9, 30))

        req = await create_booking_request(db, submission(), today=TODAY)
        assert req.status == BookingStatus.PENDING.value


class TestConfirm:
    async def test_confirm_with_existing_patient(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        patient = await seed.patient()
        req = await seed.booking_request(clinic, DAY, reason="Sore throat")

        outcome = await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=patient.id))

        assert outcome.patient_created is False
        assert outcome.patient.id == patient.id
        assert outcome.booking_request.status == BookingStatus.CONFIRMED.value
        assert outcome.booking_request.appointment_id == outcome.appointment.id

        appt = outcome.appointment
        assert appt.owner_id == clinic.owner_id
        assert appt.patient_id == patient.id
        assert (appt.date, appt.start_time, appt.end_time) == (DAY, time(9, 0), time(9, 30))
        assert appt.status == AppointmentStatus.SCHEDULED.value
        assert appt.title == "Sore throat"
        assert appt.notes == "Booked through public booking page. Reason: Sore throat"

    async def test_confirm_with_new_patient(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        req = await seed.booking_request(clinic, DAY, reason=None)

        binding = ConfirmBooking(new_patient=NewPatient(first_name="Sam", last_name="Walker", phone="5875550123"))
        outcome = await confirm_booking_request(db, req.id, binding)

        assert outcome.patient_created is True
        assert outcome.patient.owner_id == clinic.owner_id
        assert outcome.patient.phone == "+15875550123"
        assert outcome.appointment.title == "Appointment"
        assert outcome.appointment.notes.endswith("Reason: Not specified")

    async def test_conflict_leaves_request_pending(self, db, seed):
        clinic = await seed.clinic(owner_id="owner-a", slug="maple")
        patient = await seed.patient()
        req = await seed.booking_request(clinic, DAY, time(9, 0), time(9, 30))
        existing = await seed.appointment(patient, DAY, time(9, 0), time(9, 30))
        existing_id = existing.id

        with pytest.raises(ConflictError) as exc:
            await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=patient.id))

        assert exc.value.details["conflicting_appointment_ids"] == [existing_id]
        await db.refresh(req)
        assert req.status == BookingStatus.PENDING.value
        assert req.appointment_id is None
        assert await count(db, Appointment) == 1

    async def test_conflict_does_not_leave_new_patient_behind(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        patient = await seed.patient()
        await seed.appointment(patient, DAY, time(9, 15), time(9, 45))
        req = await seed.booking_request(clinic, DAY)

        binding = ConfirmBooking(new_patient=NewPatient(first_name="Sam", last_name="Walker"))
        with pytest.raises(ConflictError):
            await confirm_booking_request(db, req.id, binding)

        assert await count(db, Patient) == 1

    async def test_cancelled_appointment_does_not_block(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        patient = await seed.patient()
        await seed.appointment(patient, DAY, time(9, 0), time(9, 30), status=AppointmentStatus.CANCELLED.value)
        req = await seed.booking_request(clinic, DAY)

        outcome = await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=patient.id))
        assert outcome.booking_request.status == BookingStatus.CONFIRMED.value

    async def test_virtual_meeting_carries_over(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        await create_booking_request(db, submission(is_virtual=True), today=TODAY)
        req = (await list_pending(db, clinic.owner_id))[0]
        patient = await seed.patient()

        outcome = await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=patient.id))
        assert outcome.appointment.is_virtual is True
        assert outcome.appointment.meeting_id == req.meeting_id
        assert outcome.appointment.meeting_url == req.meeting_url

    async def test_missing_binding_is_invalid(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        req = await seed.booking_request(clinic, DAY)

        with pytest.raises(InvalidStateError):
            await confirm_booking_request(db, req.id, ConfirmBooking())

    async def test_both_bindings_are_rejected_by_schema(self):
        with pytest.raises(ValueError):
            ConfirmBooking(patient_id=1, new_patient=NewPatient(first_name="A", last_name="B"))

    async def test_patient_of_another_owner_is_not_found(self, db, seed):
        clinic = await seed.clinic(owner_id="owner-a", slug="maple")
        stranger = await seed.patient(owner_id="owner-b")
        req = await seed.booking_request(clinic, DAY)

        with pytest.raises(NotFoundError):
            await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=stranger.id))
        await db.refresh(req)
        assert req.status == BookingStatus.PENDING.value

    async def test_unknown_request(self, db):
        with pytest.raises(NotFoundError):
            await confirm_booking_request(db, 999, ConfirmBooking(patient_id=1))

    @pytest.mark.parametrize("status", [BookingStatus.CONFIRMED.value, BookingStatus.REJECTED.value])
    async def test_terminal_requests_cannot_be_confirmed(self, db, seed, status):
        clinic = await seed.clinic(slug="maple")
        patient = await seed.patient()
        req = await seed.booking_request(clinic, DAY, status=status)

        with pytest.raises(InvalidStateError):
            await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=patient.id))
        assert await count(db, Appointment) == 0

    async def test_second_confirm_fails(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        patient = await seed.patient()
        req = await seed.booking_request(clinic, DAY)

        await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=patient.id))
        with pytest.raises(InvalidStateError):
            await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=patient.id))
        assert await count(db, Appointment) == 1

    async def test_confirm_loses_to_concurrent_reject(self, db, seed, session_factory):
        clinic = await seed.clinic(slug="maple")
        patient = await seed.patient()
        req = await seed.booking_request(clinic, DAY)
        req_id, patient_id = req.id, patient.id

        # `db` still holds the request as pending when the other session rejects it
        async with session_factory() as other:
            await reject_booking_request(other, req_id)

        with pytest.raises(InvalidStateError):
            await confirm_booking_request(db, req_id, ConfirmBooking(patient_id=patient_id))
        assert await count(db, Appointment) == 0
        await db.refresh(req)
        assert req.status == BookingStatus.REJECTED.value
        assert req.appointment_id is None


class TestReject:
    async def test_reject_pending(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        req = await seed.booking_request(clinic, DAY)

        rejected = await reject_booking_request(db, req.id)
        assert rejected.status == BookingStatus.REJECTED.value
        assert rejected.appointment_id is None

    async def test_reject_is_idempotent(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        req = await seed.booking_request(clinic, DAY, status=BookingStatus.REJECTED.value)
        before = req.updated_at

        again = await reject_booking_request(db, req.id)
        assert again.status == BookingStatus.REJECTED.value
        assert again.updated_at == before

    async def test_reject_confirmed_is_invalid(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        patient = await seed.patient()
        req = await seed.booking_request(clinic, DAY)
        await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=patient.id))

        with pytest.raises(InvalidStateError):
            await reject_booking_request(db, req.id)
        await db.refresh(req)
        assert req.status == BookingStatus.CONFIRMED.value

    async def test_rejected_request_cannot_be_confirmed(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        patient = await seed.patient()
        req = await seed.booking_request(clinic, DAY)
        await reject_booking_request(db, req.id)

        with pytest.raises(InvalidStateError):
            await confirm_booking_request(db, req.id, ConfirmBooking(patient_id=patient.id))


class TestQueries:
    async def test_list_pending_newest_first_and_scoped(self, db, seed):
        clinic = await seed.clinic(owner_id="owner-a", slug="maple")
        other = await seed.clinic(owner_id="owner-b", name="Other", slug="other")
        older = await seed.booking_request(clinic, DAY)
        await seed.booking_request(clinic, DAY, status=BookingStatus.REJECTED.value)
        await seed.booking_request(other, DAY)
        newer = await seed.booking_request(clinic, DAY, start=time(10, 0), end=time(10, 30))

        pending = await list_pending(db, "owner-a")
        assert [r.id for r in pending] == [newer.id, older.id]

    async def test_suggest_patient(self, db, seed):
        clinic = await seed.clinic(slug="maple")
        patient = await seed.patient(email="sam@example.com")
        req = await seed.booking_request(clinic, DAY, email="SAM@example.com", phone="+15875550999")

        match = await suggest_patient(db, req.id)
        assert match.id == patient.id
