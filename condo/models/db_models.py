from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from condo.core.dates import parse_stored_day


class Period(str, Enum):
    FULL_DAY = "full_day"
    MORNING = "morning"
    AFTERNOON = "afternoon"


class Occupancy(str, Enum):
    FREE = "free"
    PARTIAL = "partial"
    FULL = "full"


class Role(str, Enum):
    ADMIN = "admin"
    OPERATOR = "operator"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ParcelStatus(str, Enum):
    PENDING = "pending"
    COLLECTED = "collected"


class VehicleType(str, Enum):
    CAR = "car"
    MOTORCYCLE = "motorcycle"
    TRUCK = "truck"


class UnitSummary(BaseModel):
    id: str
    unit_number: str
    block: Optional[str] = None
    resident_name: str
    phone_number: Optional[str] = None

    @property
    def label(self) -> str:
        block = f"Bloco {self.block} - " if self.block else ""
        return f"{block}{self.unit_number} ({self.resident_name})"


class Unit(UnitSummary):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Vehicle(BaseModel):
    id: str
    plate: str
    model: str
    color: Optional[str] = None
    type: VehicleType = VehicleType.CAR
    unit_id: str
    unit: Optional[UnitSummary] = None


class ServiceProvider(BaseModel):
    id: str
    name: str
    document: Optional[str] = None
    company: Optional[str] = None
    photo_url: Optional[str] = None
    entry_time: datetime
    exit_time: Optional[datetime] = None
    unit_id: Optional[str] = None
    created_by: Optional[str] = None
    unit: Optional[UnitSummary] = None


class RentalGuest(BaseModel):
    id: str
    name: str
    document: Optional[str] = None
    vehicle_plate: Optional[str] = None
    photo_url: Optional[str] = None
    entry_time: datetime
    exit_time: Optional[datetime] = None
    unit_id: str
    created_by: Optional[str] = None
    unit: Optional[UnitSummary] = None


class Parcel(BaseModel):
    id: str
    protocol_number: Optional[str] = None
    description: str
    photo_url: Optional[str] = None
    status: ParcelStatus = ParcelStatus.PENDING
    arrived_at: datetime
    collected_at: Optional[datetime] = None
    unit_id: str
    created_by: Optional[str] = None
    unit: Optional[UnitSummary] = None


class Booking(BaseModel):
    id: Optional[str] = None
    booking_date: date
    period: Period
    party_room_id: int = 1
    unit_id: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    unit: Optional[UnitSummary] = None

    @field_validator("booking_date", mode="before")
    @classmethod
    def _day_only(cls, value):
        return parse_stored_day(value, field="booking_date")

    @field_validator("party_room_id", mode="before")
    @classmethod
    def _room_default(cls, value):
        # Rows created before multi-room support have no room
        return 1 if value in (None, "") else value


class Condominium(BaseModel):
    id: Optional[str] = None
    name: str = ""
    cnpj: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    tower_count: int = 1
    tower_prefix: str = "Bloco"
    tower_naming: str = "letters"
    party_room_name: str = "Salão de Festas"
    party_room_capacity: int = 50
    party_room_rules: Optional[str] = None
    party_room_count: int = 1
    party_room_naming: str = "numbers"

    @field_validator("tower_count", "party_room_count", "party_room_capacity", "tower_prefix",
                     "tower_naming", "party_room_name", "party_room_naming", mode="before")
    @classmethod
    def _fallback_to_default(cls, value, info):
        # Stored nulls/zeros fall back to the defaults
        if value in (None, "", 0):
            return cls.model_fields[info.field_name].default
        return value


class AmenityConfig(BaseModel):
    name: str = "Salão de Festas"
    capacity: int = 50
    rules: Optional[str] = None
    instance_count: int = 1
    naming: str = "numbers"


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role = Role.OPERATOR
    must_change_password: bool = False
    created_at: Optional[datetime] = None

    @field_validator("role", mode="before")
    @classmethod
    def _role_default(cls, value):
        return value or Role.OPERATOR


class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role = Role.OPERATOR
    must_change_password: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AuditEntry(BaseModel):
    id: str
    user_id: str
    action: str
    target_collection: Optional[str] = None
    target_id: Optional[str] = None
    description: str
    timestamp: Optional[datetime] = None
    created_at: Optional[datetime] = None
    user: Optional[UserProfile] = None


class AuthSession(BaseModel):
    user_id: str
    email: Optional[str] = None
    access_token: str
    refresh_token: str
    expires_at: Optional[int] = None  # epoch seconds
    role: Role = Role.OPERATOR
    must_change_password: bool = False
    issued_at: datetime = Field(default_factory=datetime.now)
