"""Read-only queries behind the listing endpoints."""

from __future__ import annotations

from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.orm import aliased

from clinic_api.db.session import StorageGateway
from clinic_api.models import (
    Appointment,
    AppointmentState,
    Assistance,
    Package,
    Service,
    User,
    UserRole,
)

APPOINTMENT_COLUMNS = (
    Appointment.id,
    Appointment.service_id,
    Appointment.state,
    Appointment.date,
    Appointment.hour,
    Appointment.minute,
    Appointment.price,
    Appointment.headquarter_id,
    Appointment.patient_id,
    Appointment.therapist_id,
    Appointment.hidden,
    Appointment.payment_method,
    Appointment.assistance,
    Appointment.from_package,
    Appointment.order_id,
    Appointment.invoice_id,
    Appointment.creation_date,
)
APPOINTMENT_FIELDS = tuple(column.key for column in APPOINTMENT_COLUMNS)

SERVICE_COLUMNS = (
    Service.id,
    Service.name,
    Service.description,
    Service.price,
    Service.creation_date,
)

PACKAGE_COLUMNS = (
    Package.id,
    Package.service_id,
    Package.name,
    Package.sessions,
    Package.price,
    Package.creation_date,
)


def list_services(gateway: StorageGateway) -> list[dict[str, Any]]:
    rows = gateway.execute(select(*SERVICE_COLUMNS).order_by(Service.id))
    return [dict(row._mapping) for row in rows]


def get_service(gateway: StorageGateway, service_id: int) -> dict[str, Any] | None:
    rows = gateway.execute(select(*SERVICE_COLUMNS).where(Service.id == service_id))
    return dict(rows[0]._mapping) if rows else None


def list_packages(gateway: StorageGateway) -> list[dict[str, Any]]:
    rows = gateway.execute(select(*PACKAGE_COLUMNS).order_by(Package.id))
    return [dict(row._mapping) for row in rows]


def list_packages_by_service(
    gateway: StorageGateway, service_id: int
) -> list[dict[str, Any]]:
    """Return the packages sold for ``service_id``."""

    rows = gateway.execute(
        select(*PACKAGE_COLUMNS)
        .where(Package.service_id == service_id)
        .order_by(Package.id)
    )
    return [dict(row._mapping) for row in rows]


def get_appointment(
    gateway: StorageGateway, appointment_id: int
) -> dict[str, Any] | None:
    rows = gateway.execute(
        select(*APPOINTMENT_COLUMNS).where(Appointment.id == appointment_id)
    )
    return dict(rows[0]._mapping) if rows else None


def list_appointments_with_names(gateway: StorageGateway) -> list[dict[str, Any]]:
    """Return every appointment paired with patient, therapist and service names."""

    patient = aliased(User, name="patient")
    therapist = aliased(User, name="therapist")
    statement = (
        select(
            *APPOINTMENT_COLUMNS,
            patient.names.label("patient_names"),
            patient.last_names.label("patient_last_names"),
            patient.phone.label("patient_phone"),
            therapist.names.label("therapist_names"),
            therapist.last_names.label("therapist_last_names"),
            Service.name.label("service_name"),
        )
        .join(patient, patient.id == Appointment.patient_id)
        .join(therapist, therapist.id == Appointment.therapist_id)
        .join(Service, Service.id == Appointment.service_id)
        .order_by(Appointment.id)
    )
    rows = gateway.execute(statement)
    return [
        {
            "appointment": {field: row._mapping[field] for field in APPOINTMENT_FIELDS},
            "data": {
                "patient_names": row.patient_names,
                "patient_last_names": row.patient_last_names,
                "patient_phone": row.patient_phone,
                "therapist_names": row.therapist_names,
                "therapist_last_names": row.therapist_last_names,
                "service_name": row.service_name,
            },
        }
        for row in rows
    ]


def list_patients(gateway: StorageGateway) -> list[dict[str, Any]]:
    """Return patients with the date of their last attended, closed appointment."""

    statement = (
        select(
            User.id,
            User.names,
            User.last_names,
            User.phone,
            func.max(Appointment.date).label("last_appointment"),
        )
        .outerjoin(
            Appointment,
            and_(
                Appointment.patient_id == User.id,
                Appointment.state == AppointmentState.CLOSED.value,
                Appointment.assistance == Assistance.ATTENDED.value,
            ),
        )
        .where(User.role == UserRole.PATIENT)
        .group_by(User.id, User.names, User.last_names, User.phone)
        .order_by(User.id)
    )
    rows = gateway.execute(statement)
    return [
        {
            "user": {
                "id": row.id,
                "names": row.names,
                "last_names": row.last_names,
                "phone": row.phone,
            },
            "last_appointment": row.last_appointment,
        }
        for row in rows
    ]
