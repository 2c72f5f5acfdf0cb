#!/usr/bin/env python3
"""
Tests for matching booking contact details to an existing patient.
"""

import pytest

from clinic_booking.services.patient_matcher import find_match

pytestmark = pytest.mark.essential


class TestFindMatch:
    async def test_email_is_case_insensitive(self, db, seed):
        patient = await seed.patient(email="a@x.com")

        match = await find_match(db, "owner-a", email="A@X.com")
        assert match is not None
        assert match.id == patient.id

    async def test_phone_matches_exactly(self, db, seed):
        patient = await seed.patient(phone="+15875550123")

        assert (await find_match(db, "owner-a", phone="+15875550123")).id == patient.id
        assert await find_match(db, "owner-a", phone="+15875550199") is None

    async def test_either_field_is_enough(self, db, seed):
        patient = await seed.patient(email="jane@example.com", phone="+15875550123")

        match = await find_match(db, "owner-a", email="nobody@example.com", phone="+15875550123")
        assert match.id == patient.id

    async def test_no_match_returns_none(self, db, seed):
        await seed.patient(email="jane@example.com")

        assert await find_match(db, "owner-a", email="other@example.com") is None
        assert await find_match(db, "owner-a") is None

    async def test_only_searches_the_owners_roster(self, db, seed):
        await seed.patient(owner_id="owner-b", email="a@x.com")

        assert await find_match(db, "owner-a", email="a@x.com") is None

    async def test_first_patient_wins_on_duplicates(self, db, seed):
        first = await seed.patient(first_name="First", email="dup@example.com")
        await seed.patient(first_name="Second", email="dup@example.com")

        match = await find_match(db, "owner-a", email="dup@example.com")
        assert match.id == first.id
