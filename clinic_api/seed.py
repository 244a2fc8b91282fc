from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import insert, select

from clinic_api.core.config import settings
from clinic_api.db.session import StorageGateway, Transaction, create_gateway
from clinic_api.logging_utils import configure_logging
from clinic_api.models import Headquarter, Package, Service, User, UserRole

logger = logging.getLogger(__name__)

SERVICE_CATALOG: list[tuple[str, str, Decimal]] = [
    ("Fisioterapia", "Sesión de fisioterapia general", Decimal("100.00")),
    ("Masaje terapéutico", "Masaje descontracturante de 45 minutos", Decimal("80.00")),
    ("Evaluación inicial", "Primera evaluación con el terapeuta", Decimal("60.00")),
]

PACKAGES: list[tuple[str, str, int, Decimal]] = [
    ("Fisioterapia", "Paquete 5 sesiones", 5, Decimal("450.00")),
    ("Fisioterapia", "Paquete 10 sesiones", 10, Decimal("850.00")),
    ("Masaje terapéutico", "Paquete 4 masajes", 4, Decimal("280.00")),
]


def _check_default(field: str, created_id: int, configured_id: int) -> None:
    if created_id != configured_id:
        logger.warning(
            "seeded id differs from configured default",
            extra={"field": field, "created_id": created_id, "configured_id": configured_id},
        )
    else:
        logger.info("created default reference", extra={"field": field, "id": created_id})


def ensure_headquarter(tx: Transaction) -> int:
    rows = tx.execute(select(Headquarter.id).where(Headquarter.id == settings.default_headquarter_id))
    if rows:
        logger.info("headquarter already present", extra={"headquarter_id": rows[0].id})
        return rows[0].id

    rows = tx.execute(
        insert(Headquarter)
        .values(name="Sede principal", address=None)
        .returning(Headquarter.id)
    )
    _check_default("headquarter_id", rows[0].id, settings.default_headquarter_id)
    return rows[0].id


def ensure_default_therapist(tx: Transaction) -> int:
    """Create the placeholder therapist every booking is assigned to."""

    rows = tx.execute(select(User.id).where(User.id == settings.default_therapist_id))
    if rows:
        logger.info("therapist already present", extra={"therapist_id": rows[0].id})
        return rows[0].id

    rows = tx.execute(
        insert(User)
        .values(
            names="Terapeuta",
            last_names="Por asignar",
            phone="000",
            role=UserRole.THERAPIST,
            enabled=True,
            profile_picture="",
        )
        .returning(User.id)
    )
    _check_default("therapist_id", rows[0].id, settings.default_therapist_id)
    return rows[0].id


def ensure_services(tx: Transaction) -> dict[str, int]:
    created = 0
    services: dict[str, int] = {}
    for name, description, price in SERVICE_CATALOG:
        rows = tx.execute(select(Service.id).where(Service.name == name))
        if not rows:
            rows = tx.execute(
                insert(Service)
                .values(name=name, description=description, price=price)
                .returning(Service.id)
            )
            created += 1
        services[name] = rows[0].id

    logger.info("ensured services", extra={"created_count": created, "total": len(services)})
    return services


def ensure_packages(tx: Transaction, services: dict[str, int]) -> None:
    created = 0
    for service_name, name, sessions, price in PACKAGES:
        service_id = services[service_name]
        rows = tx.execute(
            select(Package.id).where(Package.service_id == service_id, Package.name == name)
        )
        if rows:
            continue
        tx.execute(
            insert(Package).values(
                service_id=service_id, name=name, sessions=sessions, price=price
            )
        )
        created += 1

    logger.info("ensured packages", extra={"created_count": created, "total": len(PACKAGES)})


def seed(gateway: StorageGateway) -> None:
    """Insert reference data the booking workflow relies on; safe to rerun."""

    with gateway.begin() as tx:
        ensure_headquarter(tx)
        ensure_default_therapist(tx)
        services = ensure_services(tx)
        ensure_packages(tx, services)
    logger.info("seed complete")


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    configure_logging(settings.log_level)
    gateway = create_gateway(settings.sqlalchemy_url)
    try:
        seed(gateway)
    except Exception:
        logger.exception("seed failed")
        raise
    finally:
        gateway.dispose()
