from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type, Union

from pydantic import BaseModel

from condo.core.dates import utc_now
from condo.core.errors import ConflictError, ValidationError
from condo.core.logger import logger
from condo.models.db_models import AuditAction, CurrentUser, RentalGuest, ServiceProvider
from condo.services.audit_service import AuditService
from condo.services.db_service import Order, RecordStore
from condo.services.storage_service import StorageService
from condo.services.unit_service import UnitService, unit_map

Visitor = Union[ServiceProvider, RentalGuest]


def _text(values: dict, key: str, max_length: Optional[int] = None, label: str = "") -> Optional[str]:
    value = (values.get(key) or "").strip() or None
    if value and max_length and len(value) > max_length:
        raise ValidationError(f"{label or key} muito longo.", field=key)
    return value


class _AccessLog(ABC):
    """Entry/exit log of people coming into the condominium."""
    collection: str
    model: Type[BaseModel]
    photo_folder: str
    unit_required: bool = False
    noun: str = ""

    def __init__(self, store: RecordStore, audit: AuditService, storage: StorageService,
                 units: Optional[UnitService] = None):
        self.store = store
        self.audit = audit
        self.storage = storage
        self.units = units or UnitService(store, audit)

    @abstractmethod
    def _fields(self, values: dict) -> dict:
        """Kind-specific columns of a new entry."""

    async def list_entries(self) -> Dict[str, List[Visitor]]:
        rows = await self.store.list(self.collection, order=[Order(column="entry_time", desc=True)])
        units = await unit_map(self.store)
        active, completed = [], []
        for row in rows:
            entry = self.model.model_validate(row)
            entry.unit = units.get(entry.unit_id) if entry.unit_id else None
            (completed if entry.exit_time else active).append(entry)
        return {"active": active, "completed": completed}

    async def register_entry(self, actor: CurrentUser, values: dict) -> Visitor:
        name = (values.get("name") or "").strip()
        if len(name) < 2:
            raise ValidationError("Nome é obrigatório.", field="name")
        if len(name) > 200:
            raise ValidationError("Nome muito longo.", field="name")
        unit = await self.units.find_unit(values.get("unit_id"))
        if unit is None and self.unit_required:
            raise ValidationError("Unidade é obrigatória.", field="unit_id")

        record = {
            "name": name,
            "unit_id": unit.id if unit else None,
            "entry_time": utc_now(),
            "created_by": actor.id,
        }
        record.update(self._fields(values))
        record["photo_url"] = await self.storage.upload_photo(self.photo_folder, values.get("photo"))

        entry = self.model.model_validate(await self.store.insert(self.collection, record))
        entry.unit = unit
        logger.info(f"🚪 Entry registered ({self.collection}): {entry.name}")
        await self.audit.append(actor.id, AuditAction.CREATE, self.collection, entry.id,
                                f"Registrou a entrada de {self.noun} {entry.name}"
                                f"{f' para a unidade {unit.unit_number}' if unit else ''}.")
        return entry

    async def register_exit(self, actor: CurrentUser, entry_id: str) -> Visitor:
        current = self.model.model_validate(await self.store.get(self.collection, entry_id))
        if current.exit_time:
            raise ConflictError(f"A saída de {current.name} já foi registrada.")
        entry = self.model.model_validate(
            await self.store.update(self.collection, entry_id, {"exit_time": utc_now()})
        )
        logger.info(f"👋 Exit registered ({self.collection}): {entry.name}")
        await self.audit.append(actor.id, AuditAction.UPDATE, self.collection, entry.id,
                                f"Registrou a saída de {self.noun} {entry.name}.")
        return entry


class ServiceProviderService(_AccessLog):
    collection = "service_providers"
    model = ServiceProvider
    photo_folder = "providers"
    noun = "prestador de serviço"

    def _fields(self, values):
        return {
            "document": _text(values, "document"),
            "company": _text(values, "company"),
        }


class RentalGuestService(_AccessLog):
    collection = "rental_guests"
    model = RentalGuest
    photo_folder = "guests"
    unit_required = True
    noun = "hóspede"

    def _fields(self, values):
        plate = _text(values, "vehicle_plate", 10, "Placa")
        return {
            "document": _text(values, "document", 20, "Documento"),
            "vehicle_plate": plate.upper() if plate else None,
        }
