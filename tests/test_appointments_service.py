#!/usr/bin/env python3
"""
Tests for staff appointment management on top of the availability engine.
"""

from datetime import time

import pytest

from clinic_booking.core.errors import ConflictError, NotFoundError
from clinic_booking.db.models import AppointmentStatus
from clinic_booking.schemas.appointment import AppointmentCreate, AppointmentUpdate
from clinic_booking.services.appointments import (
    create_appointment,
    edit_appointment,
    get_appointment_or_404,
    remove_appointment,
)

pytestmark = pytest.mark.essential


def new_appt(patient, day, start, end=None, **kw):
    return AppointmentCreate(
        owner_id=patient.owner_id, patient_id=patient.id, date=day, start_time=start, end_time=end, **kw
    )


class TestCreate:
    async def test_end_defaults_to_thirty_minutes(self, db, seed, day):
        patient = await seed.patient()

        appt = await create_appointment(db, new_appt(patient, day, time(9, 0)))
        assert appt.end_time == time(9, 30)
        assert appt.status == AppointmentStatus.SCHEDULED.value

    async def test_overlap_is_a_conflict(self, db, seed, day):
        patient = await seed.patient()
        await seed.appointment(patient, day, time(9, 0), time(10, 0))

        with pytest.raises(ConflictError):
            await create_appointment(db, new_appt(patient, day, time(9, 30), time(10, 30)))

    async def test_back_to_back_is_allowed(self, db, seed, day):
        patient = await seed.patient()
        await seed.appointment(patient, day, time(9, 0), time(10, 0))

        appt = await create_appointment(db, new_appt(patient, day, time(10, 0)))
        assert appt.start_time == time(10, 0)

    async def test_cancelled_entry_skips_the_check(self, db, seed, day):
        patient = await seed.patient()
        await seed.appointment(patient, day, time(9, 0), time(10, 0))

        appt = await create_appointment(
            db, new_appt(patient, day, time(9, 0), time(9, 30), status=AppointmentStatus.CANCELLED)
        )
        assert appt.status == AppointmentStatus.CANCELLED.value

    async def test_patient_must_belong_to_owner(self, db, seed, day):
        stranger = await seed.patient(owner_id="owner-b")
        payload = AppointmentCreate(owner_id="owner-a", patient_id=stranger.id, date=day, start_time=time(9, 0))

        with pytest.raises(NotFoundError):
            await create_appointment(db, payload)


class TestEdit:
    async def test_move_into_free_time(self, db, seed, day):
        patient = await seed.patient()
        appt = await seed.appointment(patient, day, time(9, 0), time(9, 30))

        moved = await edit_appointment(
            db, appt.id, AppointmentUpdate(start_time=time(9, 15), end_time=time(9, 45))
        )
        assert (moved.start_time, moved.end_time) == (time(9, 15), time(9, 45))

    async def test_move_onto_another_appointment_conflicts(self, db, seed, day):
        patient = await seed.patient()
        appt = await seed.appointment(patient, day, time(9, 0), time(9, 30))
        await seed.appointment(patient, day, time(10, 0), time(10, 30))

        with pytest.raises(ConflictError):
            await edit_appointment(db, appt.id, AppointmentUpdate(start_time=time(10, 0), end_time=time(10, 30)))

    async def test_reactivating_into_taken_slot_conflicts(self, db, seed, day):
        patient = await seed.patient()
        cancelled = await seed.appointment(
            patient, day, time(9, 0), time(9, 30), status=AppointmentStatus.CANCELLED.value
        )
        await seed.appointment(patient, day, time(9, 0), time(9, 30))

        with pytest.raises(ConflictError):
            await edit_appointment(db, cancelled.id, AppointmentUpdate(status=AppointmentStatus.SCHEDULED))

    async def test_status_change_in_place_is_fine(self, db, seed, day):
        patient = await seed.patient()
        appt = await seed.appointment(patient, day, time(9, 0), time(9, 30))

        done = await edit_appointment(db, appt.id, AppointmentUpdate(status=AppointmentStatus.COMPLETED))
        assert done.status == AppointmentStatus.COMPLETED.value

    async def test_cancelling_frees_the_slot(self, db, seed, day):
        patient = await seed.patient()
        appt = await seed.appointment(patient, day, time(9, 0), time(9, 30))
        await edit_appointment(db, appt.id, AppointmentUpdate(status=AppointmentStatus.CANCELLED))

        again = await create_appointment(db, new_appt(patient, day, time(9, 0)))
        assert again.id != appt.id


class TestDelete:
    async def test_remove(self, db, seed, day):
        patient = await seed.patient()
        appt = await seed.appointment(patient, day, time(9, 0), time(9, 30))
        appt_id = appt.id

        await remove_appointment(db, appt_id)
        with pytest.raises(NotFoundError):
            await get_appointment_or_404(db, appt_id)

    async def test_remove_unknown(self, db):
        with pytest.raises(NotFoundError):
            await remove_appointment(db, 404)
