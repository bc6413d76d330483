import pytest
import pytest_asyncio
from datetime import date
from unittest.mock import patch

from condo.models.db_models import CurrentUser, Role
from condo.services.audit_service import AuditService
from condo.services.auth_service import InMemoryAuthGateway
from condo.services.booking_service import BookingService
from condo.services.condominium_service import CondominiumService
from condo.services.memory_store import InMemoryRecordStore
from condo.services.storage_service import InMemoryPhotoStorage, StorageService
from condo.services.unit_service import UnitService

# "Today" for every test; booking days are compared against it
TODAY = date(2025, 1, 1)

ADMIN_PASSWORD = "admin-pass-123"
OPERATOR_PASSWORD = "porteiro-123"


def as_user(profile) -> CurrentUser:
    return CurrentUser(**profile.model_dump(include={"id", "email", "full_name", "role", "must_change_password"}))


@pytest.fixture(autouse=True)
def fixed_today():
    with patch("condo.services.booking_service.local_today", return_value=TODAY):
        yield TODAY


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def gateway(store):
    return InMemoryAuthGateway(store)


@pytest.fixture
def photos():
    return InMemoryPhotoStorage()


@pytest.fixture
def audit(store):
    return AuditService(store)


@pytest.fixture
def storage(store, photos):
    return StorageService(store, photos)


@pytest.fixture
def units(store, audit):
    return UnitService(store, audit)


@pytest.fixture
def condominium(store, audit):
    return CondominiumService(store, audit)


@pytest.fixture
def bookings(store, audit, units, condominium):
    return BookingService(store, audit, units, condominium)


@pytest_asyncio.fixture
async def admin(gateway):
    profile = await gateway.create_account("sindico@condo.test", ADMIN_PASSWORD, "Síndico", role=Role.ADMIN)
    return as_user(profile)


@pytest_asyncio.fixture
async def operator(gateway):
    profile = await gateway.create_account("portaria@condo.test", OPERATOR_PASSWORD, "Portaria")
    return as_user(profile)


@pytest_asyncio.fixture
async def unit_101(units, admin):
    return await units.create_unit(admin, {"unit_number": "101", "block": "A", "resident_name": "Maria Souza",
                                           "phone_number": "11999990000"})


@pytest_asyncio.fixture
async def unit_102(units, admin):
    return await units.create_unit(admin, {"unit_number": "102", "block": "A", "resident_name": "João Lima"})
