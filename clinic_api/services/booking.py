"""Booking workflow: existing-patient and new-patient appointment creation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from prometheus_client import Counter
from sqlalchemy.exc import SQLAlchemyError

from clinic_api.core.config import Settings
from clinic_api.core.errors import BookingFailed, StorageWriteError
from clinic_api.db.session import Executor, StorageGateway
from clinic_api.services.appointments import (
    AppointmentBooking,
    validate_booking,
    write_appointment,
)
from clinic_api.services.patients import PatientProfile, register_patient, validate_profile

logger = logging.getLogger(__name__)

BOOKING_COUNTER = Counter(
    "clinic_bookings_total",
    "Booking attempts by workflow and outcome.",
    ["workflow", "outcome"],
)

Registrar = Callable[[Executor, PatientProfile], int]


class Writer(Protocol):
    def __call__(
        self,
        executor: Executor,
        booking: AppointmentBooking,
        *,
        therapist_id: int,
        headquarter_id: int,
    ) -> int: ...


@dataclass(frozen=True)
class BookingDefaults:
    """Fixed references written on every booking.

    Placeholders until therapist assignment and multi-headquarter routing
    exist.
    """

    therapist_id: int = 1
    headquarter_id: int = 1

    @classmethod
    def from_settings(cls, settings: Settings) -> BookingDefaults:
        return cls(
            therapist_id=settings.default_therapist_id,
            headquarter_id=settings.default_headquarter_id,
        )


class BookingOrchestrator:
    """Compose patient registration and appointment writing over one gateway.

    Validation errors are raised before storage is touched. Storage failures
    surface as ``BookingFailed`` chained to the original error. Nothing is
    retried here.
    """

    def __init__(
        self,
        gateway: StorageGateway,
        defaults: BookingDefaults | None = None,
        *,
        registrar: Registrar = register_patient,
        writer: Writer = write_appointment,
    ) -> None:
        self.gateway = gateway
        self.defaults = defaults or BookingDefaults()
        self._register_patient = registrar
        self._write_appointment = writer

    def book_for_existing_patient(self, booking: AppointmentBooking) -> int:
        """Write one appointment for an already registered patient."""

        booking = validate_booking(booking, require_patient=True)
        try:
            appointment_id = self._write_appointment(
                self.gateway,
                booking,
                therapist_id=self.defaults.therapist_id,
                headquarter_id=self.defaults.headquarter_id,
            )
        except StorageWriteError as exc:
            BOOKING_COUNTER.labels(workflow="existing_patient", outcome="failed").inc()
            logger.error(
                "booking failed",
                extra={"workflow": "existing_patient", "patient_id": booking.patient_id},
            )
            raise BookingFailed("appointment could not be written") from exc

        BOOKING_COUNTER.labels(workflow="existing_patient", outcome="committed").inc()
        return appointment_id

    def book_with_new_patient(
        self, profile: PatientProfile, booking: AppointmentBooking
    ) -> int:
        """Register the patient and write the appointment atomically.

        Either both rows are committed or the whole transaction is rolled
        back; the caller retries from scratch.
        """

        profile = validate_profile(profile)
        booking = validate_booking(booking, require_patient=False)

        try:
            with self.gateway.begin() as tx:
                patient_id = self._register_patient(tx, profile)
                appointment_id = self._write_appointment(
                    tx,
                    booking.for_patient(patient_id),
                    therapist_id=self.defaults.therapist_id,
                    headquarter_id=self.defaults.headquarter_id,
                )
                tx.commit()
        except (StorageWriteError, SQLAlchemyError) as exc:
            BOOKING_COUNTER.labels(workflow="new_patient", outcome="aborted").inc()
            logger.error(
                "booking rolled back",
                extra={"workflow": "new_patient", "error_type": type(exc).__name__},
            )
            raise BookingFailed("patient and appointment could not be created") from exc

        BOOKING_COUNTER.labels(workflow="new_patient", outcome="committed").inc()
        logger.info(
            "booking committed",
            extra={"patient_id": patient_id, "appointment_id": appointment_id},
        )
        return appointment_id
