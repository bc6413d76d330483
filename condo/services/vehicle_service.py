import re
from typing import List, Optional

from condo.core.errors import ConflictError, ValidationError
from condo.core.logger import logger
from condo.models.api_models import PlateSearchResult
from condo.models.db_models import AuditAction, CurrentUser, Vehicle, VehicleType
from condo.services.audit_service import AuditService
from condo.services.db_service import Filter, Order, RecordStore, eq
from condo.services.unit_service import UnitService, unit_map

VEHICLES = "vehicles"
PLATE_MAX = 10
SEARCH_LIMIT = 5


def normalize_plate(plate: str) -> str:
    """'abc-1d23 ' -> 'ABC1D23'"""
    return re.sub(r"[^A-Z0-9]", "", (plate or "").upper())


class VehicleService:
    def __init__(self, store: RecordStore, audit: AuditService, units: Optional[UnitService] = None):
        self.store = store
        self.audit = audit
        self.units = units or UnitService(store, audit)

    async def _clean(self, values: dict) -> dict:
        plate = normalize_plate(values.get("plate"))
        if not plate:
            raise ValidationError("Placa é obrigatória.", field="plate")
        if len(plate) > PLATE_MAX:
            raise ValidationError("Placa inválida.", field="plate")
        model = (values.get("model") or "").strip()
        if not model:
            raise ValidationError("Modelo é obrigatório.", field="model")
        try:
            vehicle_type = VehicleType(values.get("type") or VehicleType.CAR)
        except ValueError:
            raise ValidationError("Tipo de veículo inválido.", field="type")
        unit = await self.units.find_unit(values.get("unit_id"))
        if unit is None:
            raise ValidationError("Selecione uma unidade.", field="unit_id")
        return {
            "plate": plate,
            "model": model,
            "color": (values.get("color") or "").strip() or None,
            "type": vehicle_type,
            "unit_id": unit.id,
        }

    async def list_vehicles(self, search: str = "", unit_id: Optional[str] = None) -> List[Vehicle]:
        filters = [eq("unit_id", unit_id)] if unit_id else []
        rows = await self.store.list(VEHICLES, filters, order=[Order(column="plate")])
        units = await unit_map(self.store)
        vehicles = []
        term = search.strip().lower()
        for row in rows:
            vehicle = Vehicle.model_validate(row)
            vehicle.unit = units.get(vehicle.unit_id)
            if term:
                haystack = [vehicle.plate, vehicle.model]
                if vehicle.unit:
                    haystack += [vehicle.unit.unit_number, vehicle.unit.resident_name]
                if not any(term in h.lower() for h in haystack):
                    continue
            vehicles.append(vehicle)
        return vehicles

    async def search_plate(self, term: str) -> List[PlateSearchResult]:
        """Gate lookup: partial plate, at most five hits with the owner's contact."""
        needle = normalize_plate(term)
        if len(needle) < 2:
            return []
        rows = await self.store.list(VEHICLES, [Filter(op="ilike", column="plate", value=f"%{needle}%")],
                                     order=[Order(column="plate")], limit=SEARCH_LIMIT)
        units = await unit_map(self.store)
        return [
            PlateSearchResult(**{k: row.get(k) for k in ("id", "plate", "model", "color", "type")},
                              unit=units.get(row["unit_id"]))
            for row in rows
        ]

    async def create_vehicle(self, actor: CurrentUser, values: dict) -> Vehicle:
        clean = await self._clean(values)
        try:
            row = await self.store.insert(VEHICLES, clean)
        except ConflictError as e:
            raise ConflictError(f"A placa {clean['plate']} já está cadastrada.", detail=e.detail, field="plate")
        vehicle = Vehicle.model_validate(row)
        logger.info(f"🚗 Vehicle {vehicle.plate} registered")
        await self.audit.append(actor.id, AuditAction.CREATE, VEHICLES, vehicle.id,
                                f"Cadastrou o veículo {vehicle.plate} ({vehicle.model}).")
        return vehicle

    async def update_vehicle(self, actor: CurrentUser, vehicle_id: str, values: dict) -> Vehicle:
        clean = await self._clean(values)
        try:
            row = await self.store.update(VEHICLES, vehicle_id, clean)
        except ConflictError as e:
            raise ConflictError(f"A placa {clean['plate']} já está cadastrada.", detail=e.detail, field="plate")
        vehicle = Vehicle.model_validate(row)
        await self.audit.append(actor.id, AuditAction.UPDATE, VEHICLES, vehicle.id,
                                f"Atualizou o veículo {vehicle.plate}.")
        return vehicle

    async def delete_vehicle(self, actor: CurrentUser, vehicle_id: str) -> None:
        vehicle = Vehicle.model_validate(await self.store.get(VEHICLES, vehicle_id))
        await self.store.delete(VEHICLES, vehicle_id)
        await self.audit.append(actor.id, AuditAction.DELETE, VEHICLES, vehicle_id,
                                f"Excluiu o veículo {vehicle.plate}.")
