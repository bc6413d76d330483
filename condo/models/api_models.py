from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from condo.models.db_models import (
    Booking,
    Occupancy,
    Parcel,
    Period,
    Role,
    ServiceProvider,
    UnitSummary,
    VehicleType,
)

# --- Incoming Request Models ---

class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class SignUpRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=2)


class PasswordResetRequest(BaseModel):
    email: str


class ChangePasswordRequest(BaseModel):
    new_password: str = Field(min_length=8)
    confirm_password: str


class UnitRequest(BaseModel):
    unit_number: str = Field(min_length=1)
    block: Optional[str] = None
    resident_name: str = Field(min_length=2)
    phone_number: Optional[str] = None


class VehicleRequest(BaseModel):
    unit_id: str = Field(min_length=1)
    plate: str = Field(min_length=1)
    model: str = Field(min_length=1, max_length=50)
    color: Optional[str] = None
    type: VehicleType = VehicleType.CAR


class ServiceProviderRequest(BaseModel):
    name: str = Field(min_length=2)
    document: Optional[str] = None
    company: Optional[str] = None
    unit_id: Optional[str] = None
    # camera capture as a data URL (data:image/jpeg;base64,...)
    photo: Optional[str] = None


class RentalGuestRequest(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    document: Optional[str] = Field(default=None, max_length=20)
    vehicle_plate: Optional[str] = Field(default=None, max_length=10)
    unit_id: str = Field(min_length=1)
    photo: Optional[str] = None


class ParcelRequest(BaseModel):
    unit_id: str = Field(min_length=1)
    description: str = Field(min_length=2, max_length=500)
    protocol_number: Optional[str] = None
    photo: Optional[str] = None


class BookingRequest(BaseModel):
    booking_date: date
    unit_id: str = Field(min_length=1)
    period: Period
    party_room_id: int = 1


class RoleUpdateRequest(BaseModel):
    role: Role


class CondominiumRequest(BaseModel):
    name: str = Field(min_length=1)
    cnpj: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    tower_count: int = Field(default=1, ge=1)
    tower_prefix: str = "Bloco"
    tower_naming: Literal["letters", "numbers"] = "letters"
    party_room_name: Optional[str] = None
    party_room_capacity: int = Field(default=50, ge=1)
    party_room_rules: Optional[str] = None
    party_room_count: int = Field(default=1, ge=1)
    party_room_naming: Literal["letters", "numbers"] = "numbers"

# --- Outgoing Response Models ---

class RoomAvailability(BaseModel):
    party_room_id: int
    label: str
    available: List[Period]
    bookings: List[Booking]


class DayAvailability(BaseModel):
    date: date
    occupancy: Occupancy
    rooms: List[RoomAvailability]


class MonthCalendar(BaseModel):
    year: int
    month: int
    days: Dict[date, Occupancy]


class DashboardStats(BaseModel):
    total_units: int
    total_vehicles: int
    pending_parcels: int
    active_providers: int
    active_guests: int


class Dashboard(BaseModel):
    stats: DashboardStats
    recent_parcels: List[Parcel]
    active_providers: List[ServiceProvider]
    upcoming_bookings: List[Booking]


class CleanupResult(BaseModel):
    total_found: int = 0
    deleted: int = 0
    errors: List[str] = Field(default_factory=list)


class PlateSearchResult(BaseModel):
    id: str
    plate: str
    model: str
    color: Optional[str] = None
    type: VehicleType
    unit: Optional[UnitSummary] = None
