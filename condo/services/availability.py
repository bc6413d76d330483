"""
Party room availability.

A day of one room is split into morning and afternoon; a full-day booking
takes both. The rules:

* a full-day booking blocks the room for the whole day;
* morning and afternoon may coexist, each at most once;
* a full day is offered only while the day is completely free. Once any half
  is taken, full day is not offered again that day, even if the other half is
  still open.

Everything here is pure: callers pass the booking snapshot they fetched.
"""
from datetime import date
from typing import Iterable, List

from condo.models.db_models import AmenityConfig, Booking, Occupancy, Period

PERIOD_ORDER = [Period.FULL_DAY, Period.MORNING, Period.AFTERNOON]

PERIOD_LABELS = {
    Period.FULL_DAY: "Dia Inteiro",
    Period.MORNING: "Manhã (até 14h)",
    Period.AFTERNOON: "Tarde (14h às 23:59)",
}


def booked_periods(day: date, room_id: int, bookings: Iterable[Booking]) -> List[Period]:
    return [b.period for b in bookings if b.booking_date == day and b.party_room_id == room_id]


def available_periods(day: date, room_id: int, bookings: Iterable[Booking]) -> List[Period]:
    booked = booked_periods(day, room_id, bookings)

    if Period.FULL_DAY in booked:
        return []
    if Period.MORNING in booked and Period.AFTERNOON in booked:
        return []

    available = []
    if not booked:
        available.append(Period.FULL_DAY)
    if Period.MORNING not in booked:
        available.append(Period.MORNING)
    if Period.AFTERNOON not in booked:
        available.append(Period.AFTERNOON)
    return available


def is_day_fully_booked(day: date, bookings: Iterable[Booking], room_count: int) -> bool:
    bookings = list(bookings)
    return all(not available_periods(day, room, bookings) for room in range(1, max(room_count, 1) + 1))


def classify_day(day: date, bookings: Iterable[Booking], room_count: int) -> Occupancy:
    bookings = list(bookings)
    if is_day_fully_booked(day, bookings, room_count):
        return Occupancy.FULL
    if any(b.booking_date == day for b in bookings):
        return Occupancy.PARTIAL
    return Occupancy.FREE


def room_label(index: int, config: AmenityConfig) -> str:
    if config.instance_count <= 1:
        return config.name
    suffix = chr(ord("A") + index - 1) if config.naming == "letters" else str(index)
    return f"{config.name} {suffix}"


def room_labels(config: AmenityConfig) -> List[str]:
    return [room_label(i, config) for i in range(1, max(config.instance_count, 1) + 1)]
