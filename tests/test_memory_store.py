import pytest

from condo.core.errors import ConflictError, NotFoundError, ValidationError
from condo.services.db_service import Filter, Order, eq


@pytest.mark.asyncio
async def test_insert_fills_defaults_and_system_columns(store):
    unit = await store.insert("units", {"unit_number": "201", "resident_name": "Ana"})
    parcel = await store.insert("parcels", {"unit_id": unit["id"], "description": "Caixa",
                                            "arrived_at": "2025-01-01T10:00:00+00:00"})
    assert parcel["status"] == "pending"
    assert parcel["id"] and parcel["created_at"] and parcel["updated_at"]


@pytest.mark.asyncio
async def test_required_select_and_relation_checks(store):
    with pytest.raises(ValidationError) as exc:
        await store.insert("units", {"unit_number": "201"})
    assert exc.value.field == "resident_name"

    unit = await store.insert("units", {"unit_number": "201", "resident_name": "Ana"})
    with pytest.raises(ValidationError):
        await store.insert("party_room_bookings", {"booking_date": "2025-03-10", "period": "evening",
                                                   "unit_id": unit["id"]})
    with pytest.raises(ValidationError):
        await store.insert("party_room_bookings", {"booking_date": "2025-03-10", "period": "morning",
                                                   "unit_id": "missing"})
    with pytest.raises(ValidationError):
        await store.insert("units", {"unit_number": "202", "resident_name": "Bia", "floor": 2})


@pytest.mark.asyncio
async def test_unique_index(store):
    unit = await store.insert("units", {"unit_number": "201", "resident_name": "Ana"})
    await store.insert("vehicles", {"plate": "ABC1D23", "model": "Gol", "unit_id": unit["id"]})
    with pytest.raises(ConflictError):
        await store.insert("vehicles", {"plate": "ABC1D23", "model": "Uno", "unit_id": unit["id"]})


@pytest.mark.asyncio
async def test_slot_guard(store):
    unit = await store.insert("units", {"unit_number": "201", "resident_name": "Ana"})
    slot = {"booking_date": "2025-03-10", "party_room_id": 1, "unit_id": unit["id"]}

    await store.insert("party_room_bookings", {**slot, "period": "morning"})
    await store.insert("party_room_bookings", {**slot, "period": "afternoon"})
    with pytest.raises(ConflictError):
        await store.insert("party_room_bookings", {**slot, "period": "full_day"})

    # Another room of the same day is independent
    await store.insert("party_room_bookings", {**slot, "party_room_id": 2, "period": "full_day"})
    with pytest.raises(ConflictError):
        await store.insert("party_room_bookings", {**slot, "party_room_id": 2, "period": "morning"})


@pytest.mark.asyncio
async def test_delete_rules(store):
    unit = await store.insert("units", {"unit_number": "201", "resident_name": "Ana"})
    vehicle = await store.insert("vehicles", {"plate": "XYZ9876", "model": "Gol", "unit_id": unit["id"]})

    with pytest.raises(ConflictError):
        await store.delete("units", unit["id"])

    provider = await store.insert("service_providers", {"name": "Eletricista", "unit_id": unit["id"],
                                                        "entry_time": "2025-01-01T10:00:00+00:00"})
    await store.delete("vehicles", vehicle["id"])
    await store.delete("units", unit["id"])
    assert (await store.get("service_providers", provider["id"]))["unit_id"] is None

    with pytest.raises(NotFoundError):
        await store.delete("units", unit["id"])


@pytest.mark.asyncio
async def test_list_filters_order_and_count(store):
    for number, block in [("102", "B"), ("101", "A"), ("103", None)]:
        await store.insert("units", {"unit_number": number, "block": block, "resident_name": "Morador"})

    rows = await store.list("units", order=[Order(column="block")])
    assert [r["unit_number"] for r in rows] == ["101", "102", "103"]

    rows = await store.list("units", [Filter(op="ilike", column="unit_number", value="%2")])
    assert [r["unit_number"] for r in rows] == ["102"]
    rows = await store.list("units", [Filter(op="ilike", column="unit_number", value="1_3")])
    assert [r["unit_number"] for r in rows] == ["103"]
    rows = await store.list("units", [Filter(op="ilike", column="unit_number", value="10%")], limit=2)
    assert len(rows) == 2

    assert await store.count("units", [Filter(op="is_null", column="block")]) == 1
    assert await store.count("units", [eq("block", "A")]) == 1
    assert await store.first("units", [eq("unit_number", "999")]) is None
