from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from clinic_api.db.base import Base
from clinic_api.db.session import StorageGateway, create_gateway, get_gateway
from clinic_api.main import app
from clinic_api.seed import seed
from clinic_api.services.appointments import AppointmentBooking
from clinic_api.services.patients import PatientProfile


@pytest.fixture()
def gateway(tmp_path) -> StorageGateway:
    """A seeded SQLite gateway: headquarter 1, therapist user 1, services 1..3."""

    gateway = create_gateway(
        f"sqlite:///{tmp_path / 'clinic.sqlite'}", connect_args={"timeout": 30}
    )
    Base.metadata.create_all(gateway.engine)
    seed(gateway)
    yield gateway
    gateway.dispose()


@pytest.fixture()
def client(gateway: StorageGateway) -> TestClient:
    app.dependency_overrides[get_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def profile() -> PatientProfile:
    return PatientProfile(names="Ana", last_names="Ruiz", phone="555")


@pytest.fixture()
def booking() -> AppointmentBooking:
    return AppointmentBooking(
        service_id=2,
        price=Decimal("100"),
        state="OPEN",
        date=dt.date(2024, 1, 1),
        hour=10,
        payment_method="CASH",
        creation_date=dt.date(2024, 1, 1),
    )

