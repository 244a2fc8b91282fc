from sqlalchemy import func, select

from clinic_api.models import Headquarter, Package, Service, User, UserRole
from clinic_api.seed import seed


def count(gateway, model) -> int:
    return gateway.execute(select(func.count()).select_from(model))[0][0]


def test_seed_creates_default_references(gateway):
    [therapist] = gateway.execute(select(User.id, User.role).where(User.id == 1))
    [headquarter] = gateway.execute(select(Headquarter.id).where(Headquarter.id == 1))

    assert therapist.role is UserRole.THERAPIST
    assert headquarter.id == 1
    assert count(gateway, Service) == 3
    assert count(gateway, Package) == 3


def test_seed_is_safe_to_rerun(gateway):
    seed(gateway)

    assert count(gateway, User) == 1
    assert count(gateway, Headquarter) == 1
    assert count(gateway, Service) == 3
    assert count(gateway, Package) == 3
