from datetime import date, datetime

import pytest

from condo.core.dates import parse_day
from condo.core.errors import ValidationError
from condo.models.db_models import AmenityConfig, Booking, Occupancy, Period
from condo.services.availability import available_periods, classify_day, room_label, room_labels

DAY = date(2025, 3, 10)


def booking(period, room=1, day=DAY, unit="u1"):
    return Booking(booking_date=day, period=period, party_room_id=room, unit_id=unit)


def test_empty_day_offers_everything_in_order():
    assert available_periods(DAY, 1, []) == [Period.FULL_DAY, Period.MORNING, Period.AFTERNOON]


def test_full_day_blocks_the_room():
    assert available_periods(DAY, 1, [booking(Period.FULL_DAY)]) == []


def test_half_days_are_complementary():
    assert available_periods(DAY, 1, [booking(Period.MORNING)]) == [Period.AFTERNOON]
    assert available_periods(DAY, 1, [booking(Period.AFTERNOON)]) == [Period.MORNING]
    assert available_periods(DAY, 1, [booking(Period.MORNING), booking(Period.AFTERNOON)]) == []


def test_full_day_not_offered_once_a_half_is_taken():
    # The other half is still free, but a full day would fragment the day
    assert Period.FULL_DAY not in available_periods(DAY, 1, [booking(Period.MORNING)])
    assert Period.FULL_DAY not in available_periods(DAY, 1, [booking(Period.AFTERNOON)])


def test_other_days_and_rooms_are_ignored():
    others = [booking(Period.FULL_DAY, room=2), booking(Period.FULL_DAY, day=date(2025, 3, 11))]
    assert available_periods(DAY, 1, others) == [Period.FULL_DAY, Period.MORNING, Period.AFTERNOON]


def test_legacy_booking_without_room_counts_as_room_one():
    legacy = Booking(booking_date="2025-03-10", period="morning", party_room_id=None, unit_id="u1")
    assert available_periods(DAY, 1, [legacy]) == [Period.AFTERNOON]


def test_classify_day():
    assert classify_day(DAY, [], 1) == Occupancy.FREE
    assert classify_day(DAY, [booking(Period.MORNING)], 1) == Occupancy.PARTIAL
    assert classify_day(DAY, [booking(Period.MORNING), booking(Period.AFTERNOON)], 1) == Occupancy.FULL
    assert classify_day(DAY, [booking(Period.FULL_DAY)], 1) == Occupancy.FULL


def test_classify_day_needs_every_room_full():
    assert classify_day(DAY, [booking(Period.FULL_DAY, room=1)], 2) == Occupancy.PARTIAL
    both = [booking(Period.FULL_DAY, room=1), booking(Period.FULL_DAY, room=2)]
    assert classify_day(DAY, both, 2) == Occupancy.FULL


def test_room_labels():
    single = AmenityConfig(name="Salão de Festas")
    assert room_label(1, single) == "Salão de Festas"

    letters = AmenityConfig(name="Salão", instance_count=3, naming="letters")
    assert room_labels(letters) == ["Salão A", "Salão B", "Salão C"]

    numbers = AmenityConfig(name="Salão", instance_count=2, naming="numbers")
    assert room_label(2, numbers) == "Salão 2"


@pytest.mark.parametrize("value", ["2025-03-10garbage", "2025-03-10T23:30:00-03:00", "20250310", "2025-3-10",
                                   "2025-02-30", 20250310])
def test_parse_day_is_strict(value):
    with pytest.raises(ValidationError):
        parse_day(value)


def test_parse_day():
    assert parse_day("2025-03-10") == date(2025, 3, 10)
    assert parse_day(date(2025, 3, 10)) == date(2025, 3, 10)
    with pytest.raises(ValidationError):
        parse_day(datetime(2025, 3, 10, 12, 0))


def test_stored_booking_day_may_carry_a_time_part():
    booking = Booking(booking_date="2025-03-10 00:00:00.000Z", period="morning", unit_id="u1")
    assert booking.booking_date == date(2025, 3, 10)
