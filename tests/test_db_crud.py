import pytest
import random
from datetime import date, timedelta

from condo.core.config import settings
from condo.core.errors import ConflictError, NotFoundError
from condo.services.db_service import SupabaseRecordStore, eq

# Real Integration Test with Supabase (schema applied with `python -m condo.schema apply`)
pytestmark = pytest.mark.skipif(
    not (settings.SUPABASE_URL and (settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY)),
    reason="Supabase credentials not configured",
)


@pytest.mark.asyncio
async def test_db_booking_cycle():
    store = SupabaseRecordStore(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY)

    # 1. Setup Data
    unit = await store.insert("units", {
        "unit_number": f"QA{random.randint(1000, 9999)}",
        "resident_name": "TEST_QA_RESIDENT",
    })
    # Far future day to avoid messing with the real calendar
    day = date.today() + timedelta(days=3650 + random.randint(0, 365))
    slot = {"booking_date": day, "party_room_id": 1, "unit_id": unit["id"]}

    try:
        # 2. Create Booking
        booking = await store.insert("party_room_bookings", {**slot, "period": "morning"})
        assert booking["booking_date"] == day.isoformat()

        # 3. The same slot and a full day are rejected by the database
        with pytest.raises(ConflictError):
            await store.insert("party_room_bookings", {**slot, "period": "morning"})
        with pytest.raises(ConflictError):
            await store.insert("party_room_bookings", {**slot, "period": "full_day"})

        # 4. Read it back
        rows = await store.list("party_room_bookings", [eq("booking_date", day), eq("party_room_id", 1)])
        assert [r["period"] for r in rows] == ["morning"]

        # 5. Delete twice
        await store.delete("party_room_bookings", booking["id"])
        with pytest.raises(NotFoundError):
            await store.delete("party_room_bookings", booking["id"])
    finally:
        for row in await store.list("party_room_bookings", [eq("unit_id", unit["id"])]):
            await store.delete("party_room_bookings", row["id"])
        await store.delete("units", unit["id"])
