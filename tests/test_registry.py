import base64
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from condo.core.errors import ConflictError, PermissionDeniedError, ValidationError
from condo.models.db_models import ParcelStatus, Role
from condo.services.access_service import RentalGuestService, ServiceProviderService, _AccessLog
from condo.services.condominium_service import party_room_names, tower_names
from condo.services.parcel_service import ParcelService
from condo.services.storage_service import decode_data_url
from condo.services.user_service import UserService
from condo.services.vehicle_service import VehicleService, normalize_plate

PHOTO = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff\xe0fake-jpeg").decode()


@pytest.fixture
def vehicles(store, audit, units):
    return VehicleService(store, audit, units)


@pytest.fixture
def parcels(store, audit, storage, units):
    return ParcelService(store, audit, storage, units)


# --- Units ---

@pytest.mark.asyncio
async def test_units_search_and_delete_in_use(units, vehicles, admin, unit_101, unit_102):
    assert [u.unit_number for u in await units.list_units("joão")] == ["102"]
    assert len(await units.list_units("a")) == 2

    await vehicles.create_vehicle(admin, {"plate": "abc-1d23", "model": "Gol", "unit_id": unit_101.id})
    with pytest.raises(ConflictError):
        await units.delete_unit(admin, unit_101.id)

    await units.delete_unit(admin, unit_102.id)
    assert [u.unit_number for u in await units.list_units()] == ["101"]


@pytest.mark.asyncio
async def test_unit_validation(units, admin):
    with pytest.raises(ValidationError) as exc:
        await units.create_unit(admin, {"unit_number": " ", "resident_name": "Ana"})
    assert exc.value.field == "unit_number"


# --- Vehicles ---

def test_normalize_plate():
    assert normalize_plate(" abc-1d23 ") == "ABC1D23"
    assert normalize_plate(None) == ""


@pytest.mark.asyncio
async def test_vehicle_plate_is_unique(vehicles, admin, unit_101, unit_102):
    vehicle = await vehicles.create_vehicle(admin, {"plate": "ABC-1234", "model": "Gol", "unit_id": unit_101.id})
    assert vehicle.plate == "ABC1234"

    with pytest.raises(ConflictError) as exc:
        await vehicles.create_vehicle(admin, {"plate": "abc1234", "model": "Uno", "unit_id": unit_102.id})
    assert exc.value.message == "A placa ABC1234 já está cadastrada."
    assert exc.value.field == "plate"


@pytest.mark.asyncio
async def test_vehicle_validation(vehicles, admin, unit_101):
    with pytest.raises(ValidationError):
        await vehicles.create_vehicle(admin, {"plate": "---", "model": "Gol", "unit_id": unit_101.id})
    with pytest.raises(ValidationError):
        await vehicles.create_vehicle(admin, {"plate": "ABC1234567X", "model": "Gol", "unit_id": unit_101.id})
    with pytest.raises(ValidationError):
        await vehicles.create_vehicle(admin, {"plate": "ABC1234", "model": "Gol", "unit_id": unit_101.id,
                                              "type": "boat"})
    with pytest.raises(ValidationError):
        await vehicles.create_vehicle(admin, {"plate": "ABC1234", "model": "Gol"})


@pytest.mark.asyncio
async def test_search_plate(vehicles, admin, unit_101):
    for n in range(7):
        await vehicles.create_vehicle(admin, {"plate": f"QWE10{n}0", "model": "Onix", "unit_id": unit_101.id})
    await vehicles.create_vehicle(admin, {"plate": "ZZZ9999", "model": "HB20", "unit_id": unit_101.id})

    assert await vehicles.search_plate("q") == []
    hits = await vehicles.search_plate("qwe-1")
    assert len(hits) == 5
    assert hits[0].unit.phone_number == "11999990000"
    assert [h.plate for h in await vehicles.search_plate("zz")] == ["ZZZ9999"]


@pytest.mark.asyncio
async def test_vehicles_of_a_unit(vehicles, admin, unit_101, unit_102):
    await vehicles.create_vehicle(admin, {"plate": "AAA1111", "model": "Gol", "unit_id": unit_101.id})
    await vehicles.create_vehicle(admin, {"plate": "BBB2222", "model": "Uno", "unit_id": unit_102.id})

    listed = await vehicles.list_vehicles(unit_id=unit_102.id)
    assert [v.plate for v in listed] == ["BBB2222"]
    assert [v.plate for v in await vehicles.list_vehicles("maria")] == ["AAA1111"]


# --- Access control ---

@pytest.mark.asyncio
async def test_provider_exit_twice_is_conflict(store, audit, storage, units, operator, unit_101, photos):
    providers = ServiceProviderService(store, audit, storage, units)
    entry = await providers.register_entry(operator, {"name": "Carlos Eletricista", "company": "Luz Ltda",
                                                      "unit_id": unit_101.id, "photo": PHOTO})
    assert entry.photo_url.startswith("memory://storage/photos/providers/")
    assert len(photos.objects) == 1

    listing = await providers.list_entries()
    assert [e.id for e in listing["active"]] == [entry.id]

    left = await providers.register_exit(operator, entry.id)
    assert left.exit_time is not None
    with pytest.raises(ConflictError):
        await providers.register_exit(operator, entry.id)

    listing = await providers.list_entries()
    assert listing["active"] == []
    assert [e.id for e in listing["completed"]] == [entry.id]


def test_access_log_kinds_define_their_fields(store, audit, storage, units):
    with pytest.raises(TypeError):
        _AccessLog(store, audit, storage, units)


@pytest.mark.asyncio
async def test_guest_requires_unit(store, audit, storage, units, operator, unit_101):
    guests = RentalGuestService(store, audit, storage, units)
    with pytest.raises(ValidationError) as exc:
        await guests.register_entry(operator, {"name": "Hóspede"})
    assert exc.value.field == "unit_id"

    guest = await guests.register_entry(operator, {"name": "Hóspede", "unit_id": unit_101.id,
                                                   "vehicle_plate": "abc1234"})
    assert guest.vehicle_plate == "ABC1234"
    assert guest.photo_url is None


# --- Parcels ---

@pytest.mark.asyncio
async def test_parcel_lifecycle(parcels, store, operator, unit_101, unit_102):
    first = await parcels.register_parcel(operator, {"unit_id": unit_101.id, "description": "Caixa Amazon",
                                                     "protocol_number": "BR123"})
    await parcels.register_parcel(operator, {"unit_id": unit_102.id, "description": "Envelope"})
    assert await parcels.pending_count() == 2

    collected = await parcels.mark_collected(operator, first.id)
    assert collected.status == ParcelStatus.COLLECTED
    assert collected.collected_at is not None
    with pytest.raises(ConflictError):
        await parcels.mark_collected(operator, first.id)

    assert await parcels.pending_count() == 1
    assert [p.description for p in await parcels.list_parcels("collected")] == ["Caixa Amazon"]
    assert [p.description for p in await parcels.list_parcels(search="joão")] == ["Envelope"]
    assert [p.description for p in await parcels.list_parcels(search="br1")] == ["Caixa Amazon"]

    descriptions = [log["description"] for log in store.rows("system_logs")]
    assert "Registrou nova encomenda para unidade 101 (Bloco A). Descrição: Caixa Amazon." in descriptions


@pytest.mark.asyncio
async def test_parcel_validation(parcels, operator, unit_101):
    with pytest.raises(ValidationError):
        await parcels.register_parcel(operator, {"unit_id": unit_101.id, "description": "x"})
    with pytest.raises(ValidationError):
        await parcels.register_parcel(operator, {"description": "Caixa"})
    with pytest.raises(ValidationError):
        await parcels.list_parcels("lost")


# --- Photo storage ---

def test_decode_data_url():
    content, mime = decode_data_url(PHOTO)
    assert mime == "image/jpeg"
    assert content.startswith(b"\xff\xd8")

    with pytest.raises(ValidationError):
        decode_data_url("not-a-data-url")
    with pytest.raises(ValidationError):
        decode_data_url("data:image/png;base64,@@@")
    with pytest.raises(ValidationError):
        decode_data_url(PHOTO, max_bytes=4)


@pytest.mark.asyncio
async def test_cleanup_old_photos(store, storage, photos, unit_101):
    now = datetime(2025, 6, 1, tzinfo=timezone.utc)
    old = (now - timedelta(days=90)).isoformat()
    recent = (now - timedelta(days=5)).isoformat()

    async def parcel(photo_url, arrived_at):
        return await store.insert("parcels", {"unit_id": unit_101.id, "description": "Caixa",
                                              "photo_url": photo_url, "arrived_at": arrived_at})

    photos.objects["parcels/1.jpg"] = b"1"
    photos.objects["parcels/2.jpg"] = b"2"
    removable = await parcel(photos.public_url("parcels/1.jpg"), old)
    kept = await parcel(photos.public_url("parcels/2.jpg"), recent)
    broken = await parcel("https://elsewhere.example/image.jpg", old)

    result = await storage.cleanup_old_photos(now=now)

    assert result.total_found == 2
    assert result.deleted == 1
    assert len(result.errors) == 1 and broken["id"] in result.errors[0]
    assert "parcels/1.jpg" not in photos.objects
    assert (await store.get("parcels", removable["id"]))["photo_url"] is None
    assert (await store.get("parcels", kept["id"]))["photo_url"] is not None


@pytest.mark.asyncio
async def test_cleanup_continues_after_storage_failure(store, storage, photos, unit_101):
    now = datetime(2025, 6, 1, tzinfo=timezone.utc)
    old = (now - timedelta(days=61)).isoformat()
    for n in (1, 2):
        await store.insert("parcels", {"unit_id": unit_101.id, "description": "Caixa",
                                       "photo_url": photos.public_url(f"parcels/{n}.jpg"), "arrived_at": old})

    photos.remove = AsyncMock(side_effect=[RuntimeError("bucket offline"), None])
    result = await storage.cleanup_old_photos(now=now)

    assert result.total_found == 2
    assert result.deleted == 1
    assert "bucket offline" in result.errors[0]


# --- Settings, users, audit ---

@pytest.mark.asyncio
async def test_condominium_settings(condominium, admin):
    defaults = await condominium.get_settings()
    assert defaults.tower_prefix == "Bloco"
    assert party_room_names(defaults) == ["Salão de Festas"]

    saved = await condominium.update_settings(admin, {"name": "Residencial Ipê", "tower_count": 3,
                                                      "tower_naming": "letters", "party_room_count": 2,
                                                      "party_room_naming": "letters"})
    assert tower_names(saved) == ["Bloco A", "Bloco B", "Bloco C"]
    assert party_room_names(saved) == ["Salão de Festas A", "Salão de Festas B"]

    await condominium.update_settings(admin, {"name": "Residencial Ipê II"})
    assert (await condominium.get_settings()).name == "Residencial Ipê II"
    assert (await condominium.get_amenity_config()).instance_count == 2


@pytest.mark.asyncio
async def test_update_role_is_admin_only(store, audit, admin, operator):
    users = UserService(store, audit)
    with pytest.raises(PermissionDeniedError):
        await users.update_role(operator, admin.id, Role.OPERATOR)

    profile = await users.update_role(admin, operator.id, Role.ADMIN)
    assert profile.role == Role.ADMIN
    assert [u.email for u in await users.list_users()] == [admin.email, operator.email]

    entries = await audit.list_entries(search="portaria")
    assert entries[0].action == "UPDATE"
    assert entries[0].user.id == admin.id


@pytest.mark.asyncio
async def test_audit_listing_filters(audit, units, admin, unit_101):
    await units.delete_unit(admin, unit_101.id)
    assert [e.action for e in await audit.list_entries(action="DELETE")] == ["DELETE"]
    assert len(await audit.list_entries(action="all")) == 2
    assert await audit.list_entries(search="nada disso") == []
