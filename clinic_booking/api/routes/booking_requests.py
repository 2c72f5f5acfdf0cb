# clinic_booking/api/routes/booking_requests.py
"""
Booking request endpoints. Submission is public (the slug is the only
credential); listing and the staff transitions require the clinic API key.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.security import require_api_key
from clinic_booking.db.session import get_session
from clinic_booking.schemas.booking_request import (
    BookingRequestCreate,
    BookingRequestCreated,
    BookingRequestOut,
    ConfirmBooking,
    ConfirmResult,
    RejectResult,
)
from clinic_booking.schemas.patient import PatientOut
from clinic_booking.services.booking_requests import (
    confirm_booking_request,
    create_booking_request,
    get_booking_request_or_404,
    list_pending,
    reject_booking_request,
    suggest_patient,
)

router = APIRouter(prefix="/booking-requests", tags=["booking-requests"])


@router.post("", response_model=BookingRequestCreated, status_code=201)
async def submit_booking_request(payload: BookingRequestCreate, db: AsyncSession = Depends(get_session)):
    req = await create_booking_request(db, payload)
    return BookingRequestCreated(
        id=req.id,
        status=req.status,
        date=req.date,
        start_time=req.start_time,
        end_time=req.end_time,
        is_virtual=req.is_virtual,
        meeting_url=req.meeting_url,
    )


@router.get("", response_model=List[BookingRequestOut], dependencies=[Depends(require_api_key)])
async def list_pending_requests(
    owner_id: str = Query(..., min_length=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
):
    """Pending requests for one clinic owner, newest first."""
    return await list_pending(db, owner_id, limit=limit)


@router.get("/{request_id}", response_model=BookingRequestOut, dependencies=[Depends(require_api_key)])
async def get_request(request_id: int, db: AsyncSession = Depends(get_session)):
    return await get_booking_request_or_404(db, request_id)


@router.get(
    "/{request_id}/patient-match",
    response_model=Optional[PatientOut],
    dependencies=[Depends(require_api_key)],
)
async def get_patient_match(request_id: int, db: AsyncSession = Depends(get_session)):
    return await suggest_patient(db, request_id)


@router.post("/{request_id}/confirm", response_model=ConfirmResult, dependencies=[Depends(require_api_key)])
async def confirm_request(request_id: int, binding: ConfirmBooking, db: AsyncSession = Depends(get_session)):
    outcome = await confirm_booking_request(db, request_id, binding)
    return ConfirmResult(
        booking_request_id=outcome.booking_request.id,
        appointment_id=outcome.appointment.id,
        patient_id=outcome.patient.id,
        status=outcome.booking_request.status,
    )


@router.post("/{request_id}/reject", response_model=RejectResult, dependencies=[Depends(require_api_key)])
async def reject_request(request_id: int, db: AsyncSession = Depends(get_session)):
    req = await reject_booking_request(db, request_id)
    return RejectResult(booking_request_id=req.id, status=req.status)
