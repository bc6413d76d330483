from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends

from condo.api.deps import get_bookings
from condo.core.security import get_current_user
from condo.models.api_models import BookingRequest, DayAvailability, MonthCalendar
from condo.models.db_models import Booking, CurrentUser, Period

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=List[Booking])
async def list_bookings(party_room_id: Optional[int] = None, start: Optional[date] = None,
                        end: Optional[date] = None, bookings=Depends(get_bookings)):
    return await bookings.list_bookings(party_room_id, start, end)


@router.get("/upcoming", response_model=List[Booking])
async def upcoming(limit: Optional[int] = None, bookings=Depends(get_bookings)):
    return await bookings.upcoming_bookings(limit)


@router.get("/availability", response_model=List[Period])
async def available_periods(day: str, party_room_id: int = 1, bookings=Depends(get_bookings)):
    return await bookings.get_available_periods(day, party_room_id)


@router.get("/day/{day}", response_model=DayAvailability)
async def day_availability(day: str, bookings=Depends(get_bookings)):
    return await bookings.day_availability(day)


@router.get("/calendar/{year}/{month}", response_model=MonthCalendar)
async def month_calendar(year: int, month: int, bookings=Depends(get_bookings)):
    return await bookings.month_calendar(year, month)


@router.post("", response_model=Booking, status_code=201)
async def create_booking(req: BookingRequest, user: CurrentUser = Depends(get_current_user),
                         bookings=Depends(get_bookings)):
    return await bookings.create_booking(user, req.booking_date, req.unit_id, req.period, req.party_room_id)


@router.delete("/{booking_id}")
async def cancel_booking(booking_id: str, user: CurrentUser = Depends(get_current_user),
                         bookings=Depends(get_bookings)):
    await bookings.cancel_booking(user, booking_id)
    return {"success": True, "message": "Agendamento cancelado."}
