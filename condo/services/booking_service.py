import calendar
from datetime import date
from typing import Dict, List, Optional

from condo.core.dates import format_day, local_today, parse_day
from condo.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from condo.core.logger import logger
from condo.models.api_models import DayAvailability, MonthCalendar, RoomAvailability
from condo.models.db_models import AuditAction, Booking, CurrentUser, Occupancy, Period
from condo.services.audit_service import AuditService
from condo.services.availability import PERIOD_LABELS, available_periods, classify_day, room_label
from condo.services.condominium_service import CondominiumService
from condo.services.db_service import Filter, Order, RecordStore
from condo.services.unit_service import UnitService, unit_map

BOOKINGS = "party_room_bookings"


class BookingService:
    """
    Party room bookings.

    The availability check before insert is a hint for the user; the store's
    uniqueness rule on (date, room, period) plus the slot guard decide who wins
    when two requests race for the same slot. The loser gets a ConflictError.
    """

    def __init__(self, store: RecordStore, audit: AuditService,
                 units: Optional[UnitService] = None, condominium: Optional[CondominiumService] = None):
        self.store = store
        self.audit = audit
        self.units = units or UnitService(store, audit)
        self.condominium = condominium or CondominiumService(store, audit)

    async def list_bookings(self, party_room_id: Optional[int] = None, start: Optional[date] = None,
                            end: Optional[date] = None, limit: Optional[int] = None) -> List[Booking]:
        filters = []
        if start:
            filters.append(Filter(op="gte", column="booking_date", value=start))
        if end:
            filters.append(Filter(op="lte", column="booking_date", value=end))
        rows = await self.store.list(BOOKINGS, filters,
                                     order=[Order(column="booking_date"), Order(column="created_at")])
        units = await unit_map(self.store)

        bookings = []
        for row in rows:
            booking = Booking.model_validate(row)
            # filtered here: legacy rows without a room count as room 1
            if party_room_id is not None and booking.party_room_id != party_room_id:
                continue
            booking.unit = units.get(booking.unit_id)
            bookings.append(booking)
        return bookings[:limit] if limit else bookings

    async def upcoming_bookings(self, limit: Optional[int] = None) -> List[Booking]:
        return await self.list_bookings(start=local_today(), limit=limit)

    async def get_available_periods(self, day, party_room_id: int = 1) -> List[Period]:
        day = parse_day(day)
        bookings = await self.list_bookings(start=day, end=day)
        return available_periods(day, party_room_id, bookings)

    async def day_availability(self, day) -> DayAvailability:
        day = parse_day(day)
        config = await self.condominium.get_amenity_config()
        bookings = await self.list_bookings(start=day, end=day)

        rooms = []
        for room_id in range(1, config.instance_count + 1):
            rooms.append(RoomAvailability(
                party_room_id=room_id,
                label=room_label(room_id, config),
                available=available_periods(day, room_id, bookings),
                bookings=[b for b in bookings if b.party_room_id == room_id],
            ))
        return DayAvailability(
            date=day,
            occupancy=classify_day(day, bookings, config.instance_count),
            rooms=rooms,
        )

    async def month_calendar(self, year: int, month: int) -> MonthCalendar:
        if not 1 <= month <= 12:
            raise ValidationError("Mês inválido.", field="month")
        last = calendar.monthrange(year, month)[1]
        first_day, last_day = date(year, month, 1), date(year, month, last)

        config = await self.condominium.get_amenity_config()
        bookings = await self.list_bookings(start=first_day, end=last_day)

        days: Dict[date, Occupancy] = {}
        for n in range(1, last + 1):
            day = date(year, month, n)
            days[day] = classify_day(day, [b for b in bookings if b.booking_date == day], config.instance_count)
        return MonthCalendar(year=year, month=month, days=days)

    async def create_booking(self, actor: CurrentUser, booking_date, unit_id: str, period,
                             party_room_id: int = 1) -> Booking:
        day = parse_day(booking_date, field="booking_date")
        try:
            period = Period(period)
        except ValueError:
            raise ValidationError("Selecione o período.", detail=str(period), field="period")

        logger.info(f"📥 Booking Request - Day: {day}, Room: {party_room_id}, Period: {period.value}")

        if day < local_today():
            raise ValidationError("Não é possível agendar em uma data passada.", field="booking_date")

        config = await self.condominium.get_amenity_config()
        if not 1 <= party_room_id <= config.instance_count:
            raise ValidationError("Salão inválido.", detail=str(party_room_id), field="party_room_id")

        unit = await self.units.find_unit(unit_id)
        if unit is None:
            raise ValidationError("Selecione uma unidade.", field="unit_id")

        available = await self.get_available_periods(day, party_room_id)
        if period not in available:
            logger.warning(f"⚠️ {period.value} unavailable on {day} room {party_room_id} (open: {[p.value for p in available]})")
            raise ConflictError("Este período não está disponível para a data selecionada.")

        try:
            row = await self.store.insert(BOOKINGS, {
                "booking_date": day,
                "period": period,
                "party_room_id": party_room_id,
                "unit_id": unit.id,
                "created_by": actor.id,
            })
        except ConflictError as e:
            # Lost the race against another booking for the same slot
            logger.warning(f"⚠️ Slot conflict on insert: {day} room {party_room_id} {period.value}")
            raise ConflictError("Este período já está reservado.", detail=e.detail)

        booking = Booking.model_validate(row)
        booking.unit = unit
        logger.info(f"✅ Booking {booking.id} created for unit {unit.unit_number}")

        await self.audit.append(
            actor.id, AuditAction.CREATE, BOOKINGS, booking.id,
            f"Realizou agendamento do {room_label(party_room_id, config)} para a unidade {unit.unit_number} "
            f"em {format_day(day)} ({PERIOD_LABELS[period]}).",
        )
        return booking

    async def cancel_booking(self, actor: CurrentUser, booking_id: str) -> None:
        if not actor.is_admin:
            raise PermissionDeniedError("Apenas administradores podem cancelar agendamentos.")

        try:
            booking = Booking.model_validate(await self.store.get(BOOKINGS, booking_id))
            await self.store.delete(BOOKINGS, booking_id)
        except NotFoundError as e:
            raise NotFoundError("Agendamento não encontrado.", detail=e.detail)
        logger.info(f"🗑️ Booking {booking_id} cancelled by {actor.id}")

        config = await self.condominium.get_amenity_config()
        units = await unit_map(self.store)
        unit = units.get(booking.unit_id)
        unit_number = unit.unit_number if unit else booking.unit_id
        await self.audit.append(
            actor.id, AuditAction.DELETE, BOOKINGS, booking_id,
            f"Cancelou agendamento do {room_label(booking.party_room_id, config)} para a unidade {unit_number} "
            f"em {format_day(booking.booking_date)}.",
        )
