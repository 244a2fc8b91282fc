from __future__ import annotations

import dataclasses
import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from sqlalchemy import select

from clinic_api.core.config import Settings
from clinic_api.core.errors import BookingFailed, StorageWriteError, ValidationError
from clinic_api.db.session import TransactionState
from clinic_api.models import Appointment, User, UserRole
from clinic_api.services.appointments import write_appointment
from clinic_api.services.booking import BookingDefaults, BookingOrchestrator
from clinic_api.services.patients import PatientProfile


def patients(gateway) -> list:
    return gateway.execute(
        select(User.id, User.names, User.phone, User.address, User.email, User.enabled)
        .where(User.role == UserRole.PATIENT)
        .order_by(User.id)
    )


def appointments(gateway) -> list:
    return gateway.execute(
        select(
            Appointment.id,
            Appointment.patient_id,
            Appointment.minute,
            Appointment.hidden,
            Appointment.from_package,
            Appointment.therapist_id,
            Appointment.headquarter_id,
            Appointment.price,
        ).order_by(Appointment.id)
    )


class UntouchableGateway:
    """Fails the test if anything reaches storage."""

    def execute(self, *args, **kwargs):
        raise AssertionError("storage must not be touched")

    def begin(self):
        raise AssertionError("storage must not be touched")


def test_new_patient_booking_creates_patient_and_appointment(gateway, profile, booking):
    appointment_id = BookingOrchestrator(gateway).book_with_new_patient(profile, booking)

    [patient] = patients(gateway)
    [appointment] = appointments(gateway)
    assert appointment.id == appointment_id
    assert appointment.patient_id == patient.id
    assert patient.names == "Ana"
    assert patient.enabled is True


def test_new_patient_booking_applies_defaults(gateway, profile, booking):
    BookingOrchestrator(gateway).book_with_new_patient(profile, booking)

    [appointment] = appointments(gateway)
    assert appointment.minute == 0
    assert appointment.hidden is False
    assert appointment.from_package is False
    assert appointment.therapist_id == 1
    assert appointment.headquarter_id == 1
    assert appointment.price == Decimal("100")


def test_blank_optional_profile_fields_are_stored_as_null(gateway, booking):
    profile = PatientProfile(names="Ana", last_names="Ruiz", phone="555", address="  ", email="")

    BookingOrchestrator(gateway).book_with_new_patient(profile, booking)

    [patient] = patients(gateway)
    assert patient.address is None
    assert patient.email is None


def test_failure_after_patient_insert_rolls_back_patient(gateway, profile, booking):
    seen: list = []

    def failing_writer(executor, booking, **kwargs):
        seen.append((executor, booking.patient_id))
        raise StorageWriteError("appointment insert failed")

    orchestrator = BookingOrchestrator(gateway, writer=failing_writer)

    with pytest.raises(BookingFailed) as excinfo:
        orchestrator.book_with_new_patient(profile, booking)

    [(tx, patient_id)] = seen
    assert patient_id is not None
    assert tx.state is TransactionState.ABORTED
    assert isinstance(excinfo.value.__cause__, StorageWriteError)
    assert patients(gateway) == []
    assert appointments(gateway) == []


def test_invalid_service_rolls_back_whole_booking(gateway, profile, booking):
    booking = dataclasses.replace(booking, service_id=999)

    with pytest.raises(BookingFailed) as excinfo:
        BookingOrchestrator(gateway).book_with_new_patient(profile, booking)

    assert isinstance(excinfo.value.__cause__, StorageWriteError)
    assert patients(gateway) == []
    assert appointments(gateway) == []


def test_successful_booking_ends_committed(gateway, profile, booking):
    seen: list = []

    def recording_writer(executor, booking, **kwargs):
        seen.append(executor)
        return write_appointment(executor, booking, **kwargs)

    BookingOrchestrator(gateway, writer=recording_writer).book_with_new_patient(profile, booking)

    assert seen[0].state is TransactionState.COMMITTED


def test_duplicate_email_fails_without_leaving_an_appointment(gateway, booking):
    profile = PatientProfile(names="Ana", last_names="Ruiz", phone="555", email="ana@example.com")
    orchestrator = BookingOrchestrator(gateway)
    orchestrator.book_with_new_patient(profile, booking)

    with pytest.raises(BookingFailed):
        orchestrator.book_with_new_patient(profile, booking)

    assert len(patients(gateway)) == 1
    assert len(appointments(gateway)) == 1


def test_new_patient_booking_is_not_idempotent(gateway, profile, booking):
    orchestrator = BookingOrchestrator(gateway)

    first = orchestrator.book_with_new_patient(profile, booking)
    second = orchestrator.book_with_new_patient(profile, booking)

    assert first != second
    assert len({row.id for row in patients(gateway)}) == 2
    assert len(appointments(gateway)) == 2


def test_concurrent_bookings_keep_patient_pairing(gateway, booking):
    orchestrator = BookingOrchestrator(gateway)

    def book(index: int) -> int:
        profile = PatientProfile(
            names=f"Paciente{index}", last_names="Prueba", phone=str(1000 + index)
        )
        return orchestrator.book_with_new_patient(profile, booking)

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(book, range(16)))

    assert len(set(ids)) == 16
    rows = gateway.execute(
        select(Appointment.id, User.names, User.phone).join(
            User, User.id == Appointment.patient_id
        )
    )
    assert sorted(row.id for row in rows) == sorted(ids)
    for row in rows:
        index = int(row.names.removeprefix("Paciente"))
        assert row.phone == str(1000 + index)


@pytest.mark.parametrize(
    "changes, field",
    [
        ({"names": "   "}, "names"),
        ({"last_names": None}, "last_names"),
        ({"phone": ""}, "phone"),
    ],
)
def test_invalid_profile_is_rejected_before_storage(profile, booking, changes, field):
    profile = dataclasses.replace(profile, **changes)

    with pytest.raises(ValidationError) as excinfo:
        BookingOrchestrator(UntouchableGateway()).book_with_new_patient(profile, booking)

    assert excinfo.value.fields == [field]


@pytest.mark.parametrize(
    "changes, field",
    [
        ({"service_id": None}, "service_id"),
        ({"state": " "}, "state"),
        ({"hour": 24}, "hour"),
        ({"minute": 75}, "minute"),
        ({"price": Decimal("-1")}, "price"),
        ({"date": None}, "date"),
    ],
)
def test_invalid_booking_is_rejected_before_storage(profile, booking, changes, field):
    booking = dataclasses.replace(booking, **changes)

    with pytest.raises(ValidationError) as excinfo:
        BookingOrchestrator(UntouchableGateway()).book_with_new_patient(profile, booking)

    assert field in excinfo.value.fields


def test_existing_patient_booking_writes_one_appointment(gateway, profile, booking):
    orchestrator = BookingOrchestrator(gateway)
    orchestrator.book_with_new_patient(profile, booking)
    [patient] = patients(gateway)

    appointment_id = orchestrator.book_for_existing_patient(
        dataclasses.replace(booking, patient_id=patient.id, minute=30, date=dt.date(2024, 2, 1))
    )

    rows = appointments(gateway)
    assert len(rows) == 2
    assert rows[-1].id == appointment_id
    assert rows[-1].patient_id == patient.id
    assert rows[-1].minute == 30


def test_existing_patient_booking_requires_patient_id(booking):
    with pytest.raises(ValidationError) as excinfo:
        BookingOrchestrator(UntouchableGateway()).book_for_existing_patient(booking)

    assert excinfo.value.fields == ["patient_id"]


def test_existing_patient_booking_for_unknown_patient_fails(gateway, booking):
    with pytest.raises(BookingFailed) as excinfo:
        BookingOrchestrator(gateway).book_for_existing_patient(
            dataclasses.replace(booking, patient_id=4242)
        )

    assert isinstance(excinfo.value.__cause__, StorageWriteError)
    assert appointments(gateway) == []


def test_booking_defaults_come_from_settings():
    defaults = BookingDefaults.from_settings(
        Settings(default_therapist_id=7, default_headquarter_id=3)
    )

    assert defaults == BookingDefaults(therapist_id=7, headquarter_id=3)


def test_existing_patient_booking_rejects_non_patient_user(gateway, booking):
    with pytest.raises(BookingFailed) as excinfo:
        BookingOrchestrator(gateway).book_for_existing_patient(
            dataclasses.replace(booking, patient_id=1)
        )

    assert isinstance(excinfo.value.__cause__, StorageWriteError)
    assert appointments(gateway) == []
