"""Patient registration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError

from clinic_api.core.errors import StorageWriteError, ValidationError
from clinic_api.db.session import Executor
from clinic_api.models import User, UserRole

logger = logging.getLogger(__name__)

REQUIRED_PROFILE_FIELDS = ("names", "last_names", "phone")


@dataclass(frozen=True)
class PatientProfile:
    """Profile fields submitted when booking for someone not yet registered."""

    names: str | None
    last_names: str | None
    phone: str | None
    address: str | None = None
    email: str | None = None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_profile(profile: PatientProfile) -> PatientProfile:
    """Return a normalized copy of ``profile`` or raise ``ValidationError``.

    Blank optional fields are stored as NULL rather than empty strings.
    """

    missing = [name for name in REQUIRED_PROFILE_FIELDS if not _clean(getattr(profile, name))]
    if missing:
        raise ValidationError(missing)

    return PatientProfile(
        names=_clean(profile.names),
        last_names=_clean(profile.last_names),
        phone=_clean(profile.phone),
        address=_clean(profile.address),
        email=_clean(profile.email),
    )


def register_patient(executor: Executor, profile: PatientProfile) -> int:
    """Insert an enabled PATIENT user and return the identifier storage assigned.

    Not idempotent: the same profile registered twice yields two patients.
    """

    statement = (
        insert(User)
        .values(
            names=profile.names,
            last_names=profile.last_names,
            phone=profile.phone,
            address=profile.address,
            email=profile.email,
            enabled=True,
            role=UserRole.PATIENT,
            profile_picture="",
        )
        .returning(User.id)
    )
    try:
        rows = executor.execute(statement)
    except SQLAlchemyError as exc:
        logger.warning("patient insert failed", extra={"error_type": type(exc).__name__})
        raise StorageWriteError("patient insert failed") from exc

    patient_id = rows[0].id
    logger.info("patient registered", extra={"patient_id": patient_id})
    return patient_id
