# Import every model so string relationships resolve no matter which module is loaded first
from clinic_booking.db.models.clinic import Clinic, PublicBookingSetting
from clinic_booking.db.models.patient import Patient
from clinic_booking.db.models.appointment import Appointment, AppointmentStatus
from clinic_booking.db.models.booking_request import BookingRequest, BookingStatus

__all__ = [
    "Clinic",
    "PublicBookingSetting",
    "Patient",
    "Appointment",
    "AppointmentStatus",
    "BookingRequest",
    "BookingStatus",
]
