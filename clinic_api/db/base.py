"""Import SQLAlchemy models for Alembic's autogenerate feature."""

from clinic_api.models.base import Base
from clinic_api.models import (  # noqa: F401
    Appointment,
    Headquarter,
    Package,
    Service,
    User,
)

__all__ = [
    "Base",
    "Appointment",
    "Headquarter",
    "Package",
    "Service",
    "User",
]
