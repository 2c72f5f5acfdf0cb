#!/usr/bin/env python3
"""
Shared pytest fixtures: an in-memory SQLite database per test, a session on
it, an ASGI client wired to the same database, and small seed helpers.
"""

import os
import sys
from datetime import date, time

# Settings are read at import time, so the environment goes first
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_API_KEY = "test_api_key"
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["CLINIC_API_KEY"] = TEST_API_KEY

# Add the project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import clinic_booking.db.base  # noqa: F401  registers the models on Base.metadata
from clinic_booking.db.models import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
    BookingStatus,
    Clinic,
    Patient,
    PublicBookingSetting,
)
from clinic_booking.db.session import Base, get_session


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client against the app, with get_session pointed at the test database."""
    from clinic_booking.main import app

    async def _test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _test_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def api_headers():
    return {"X-API-Key": TEST_API_KEY}


class Seeder:
    """Insert rows directly, bypassing the services under test."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def clinic(self, owner_id="owner-a", name="Maple Family Clinic", slug=None, enabled=True):
        clinic = await self._save(Clinic(owner_id=owner_id, name=name, phone="+15875550100"))
        if slug is not None:
            await self._save(
                PublicBookingSetting(clinic_id=clinic.id, owner_id=owner_id, enabled=enabled, slug=slug)
            )
        return clinic

    async def patient(self, owner_id="owner-a", first_name="Jane", last_name="Doe", email=None, phone=None):
        return await self._save(
            Patient(owner_id=owner_id, first_name=first_name, last_name=last_name, email=email, phone=phone)
        )

    async def appointment(self, patient, day, start, end, status=AppointmentStatus.SCHEDULED.value, owner_id=None):
        return await self._save(
            Appointment(
                owner_id=owner_id or patient.owner_id,
                patient_id=patient.id,
                title="Checkup",
                date=day,
                start_time=start,
                end_time=end,
                status=status,
            )
        )

    async def booking_request(
        self,
        clinic,
        day,
        start=time(9, 0),
        end=time(9, 30),
        status=BookingStatus.PENDING.value,
        email="walkin@example.com",
        phone="+15875550123",
        reason="Sore throat",
    ):
        return await self._save(
            BookingRequest(
                clinic_id=clinic.id,
                owner_id=clinic.owner_id,
                first_name="Sam",
                last_name="Walker",
                email=email,
                phone=phone,
                date=day,
                start_time=start,
                end_time=end,
                reason=reason,
                status=status,
            )
        )


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def day():
    """A fixed clinic day used by the service-level tests."""
    return date(2024, 6, 1)


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Pure unit tests with no database")
    config.addinivalue_line("markers", "essential: Core functionality tests against an in-memory database")
    config.addinivalue_line("markers", "integration: HTTP-level tests through the ASGI app")
