"""Appointment persistence."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, replace
from decimal import Decimal

from sqlalchemy import insert, literal, select
from sqlalchemy.exc import SQLAlchemyError

from clinic_api.core.errors import StorageWriteError, ValidationError
from clinic_api.db.session import Executor
from clinic_api.models import Appointment, User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_MINUTE = 0


@dataclass(frozen=True)
class AppointmentBooking:
    """Appointment fields of a booking request."""

    service_id: int | None
    price: Decimal | None
    state: str | None
    date: dt.date | None
    hour: int | None
    minute: int | None = None
    patient_id: int | None = None
    payment_method: str | None = None
    creation_date: dt.date | None = None

    def for_patient(self, patient_id: int) -> AppointmentBooking:
        return replace(self, patient_id=patient_id)


def validate_booking(
    booking: AppointmentBooking, *, require_patient: bool = True
) -> AppointmentBooking:
    """Return a normalized copy of ``booking`` or raise ``ValidationError``."""

    invalid: list[str] = []
    for name in ("service_id", "price", "date", "hour"):
        if getattr(booking, name) is None:
            invalid.append(name)

    state = booking.state.strip() if booking.state else ""
    if not state:
        invalid.append("state")
    if booking.price is not None and booking.price < 0:
        invalid.append("price")
    if booking.hour is not None and not 0 <= booking.hour <= 23:
        invalid.append("hour")
    if booking.minute is not None and not 0 <= booking.minute <= 59:
        invalid.append("minute")
    if require_patient and booking.patient_id is None:
        invalid.append("patient_id")

    if invalid:
        raise ValidationError(invalid)

    minute = DEFAULT_MINUTE if booking.minute is None else booking.minute
    payment_method = booking.payment_method.strip() if booking.payment_method else None
    return replace(booking, state=state, minute=minute, payment_method=payment_method or None)


def write_appointment(
    executor: Executor,
    booking: AppointmentBooking,
    *,
    therapist_id: int,
    headquarter_id: int,
) -> int:
    """Insert the appointment and return its generated identifier.

    The row is selected from the patient's own ``user`` row, so a
    ``patient_id`` that is unknown or belongs to a non-patient user inserts
    nothing and raises ``StorageWriteError``. ``hidden`` and
    ``from_package`` are always written as false.
    """

    if booking.patient_id is None:
        raise ValidationError(["patient_id"])

    values = {
        "service_id": booking.service_id,
        "price": booking.price,
        "state": booking.state,
        "date": booking.date,
        "hour": booking.hour,
        "minute": DEFAULT_MINUTE if booking.minute is None else booking.minute,
        "therapist_id": therapist_id,
        "headquarter_id": headquarter_id,
        "payment_method": booking.payment_method,
        "hidden": False,
        "from_package": False,
        "creation_date": booking.creation_date or dt.date.today(),
    }
    table = Appointment.__table__
    users = User.__table__
    patient_row = select(
        *(literal(value, table.c[name].type).label(name) for name, value in values.items()),
        users.c.id.label("patient_id"),
    ).where(users.c.id == booking.patient_id, users.c.role == UserRole.PATIENT)
    statement = (
        insert(table)
        .from_select([*values, "patient_id"], patient_row)
        .returning(table.c.id)
    )
    try:
        rows = executor.execute(statement)
    except SQLAlchemyError as exc:
        logger.warning(
            "appointment insert failed",
            extra={"patient_id": booking.patient_id, "error_type": type(exc).__name__},
        )
        raise StorageWriteError("appointment insert failed") from exc

    if not rows:
        logger.warning("appointment patient not found", extra={"patient_id": booking.patient_id})
        raise StorageWriteError("appointment patient not found")

    appointment_id = rows[0].id
    logger.info(
        "appointment written",
        extra={"appointment_id": appointment_id, "patient_id": booking.patient_id},
    )
    return appointment_id
