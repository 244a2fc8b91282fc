"""SQLAlchemy models for the clinic API."""

from clinic_api.models.appointment import Appointment, AppointmentState, Assistance
from clinic_api.models.headquarter import Headquarter
from clinic_api.models.package import Package
from clinic_api.models.service import Service
from clinic_api.models.user import User, UserRole

__all__ = [
    "Appointment",
    "AppointmentState",
    "Assistance",
    "Headquarter",
    "Package",
    "Service",
    "User",
    "UserRole",
]
