"""Service layer utilities for the clinic API."""

from clinic_api.services.appointments import (
    AppointmentBooking,
    validate_booking,
    write_appointment,
)
from clinic_api.services.booking import BookingDefaults, BookingOrchestrator
from clinic_api.services.patients import PatientProfile, register_patient, validate_profile

__all__ = [
    "AppointmentBooking",
    "BookingDefaults",
    "BookingOrchestrator",
    "PatientProfile",
    "register_patient",
    "validate_booking",
    "validate_profile",
    "write_appointment",
]
