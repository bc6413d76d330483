from typing import List, Optional

from condo.core.dates import utc_now
from condo.core.errors import ConflictError, ValidationError
from condo.core.logger import logger
from condo.models.db_models import AuditAction, CurrentUser, Parcel, ParcelStatus
from condo.services.audit_service import AuditService
from condo.services.db_service import Order, RecordStore, eq
from condo.services.storage_service import StorageService
from condo.services.unit_service import UnitService, unit_map

PARCELS = "parcels"


class ParcelService:
    def __init__(self, store: RecordStore, audit: AuditService, storage: StorageService,
                 units: Optional[UnitService] = None):
        self.store = store
        self.audit = audit
        self.storage = storage
        self.units = units or UnitService(store, audit)

    async def list_parcels(self, status: str = "all", search: str = "", limit: Optional[int] = None) -> List[Parcel]:
        if status not in ("all", "pending", "collected"):
            raise ValidationError("Filtro de status inválido.", field="status")
        filters = [eq("status", status)] if status != "all" else []
        rows = await self.store.list(PARCELS, filters, order=[Order(column="arrived_at", desc=True)])
        units = await unit_map(self.store)

        parcels = []
        term = search.strip().lower()
        for row in rows:
            parcel = Parcel.model_validate(row)
            parcel.unit = units.get(parcel.unit_id)
            if term:
                haystack = [parcel.description, parcel.protocol_number or ""]
                if parcel.unit:
                    haystack += [parcel.unit.resident_name, parcel.unit.unit_number]
                if not any(term in h.lower() for h in haystack):
                    continue
            parcels.append(parcel)
        return parcels[:limit] if limit else parcels

    async def pending_count(self) -> int:
        return await self.store.count(PARCELS, [eq("status", ParcelStatus.PENDING)])

    async def register_parcel(self, actor: CurrentUser, values: dict) -> Parcel:
        description = (values.get("description") or "").strip()
        if len(description) < 2:
            raise ValidationError("Descrição é obrigatória.", field="description")
        if len(description) > 500:
            raise ValidationError("Descrição muito longa.", field="description")
        unit = await self.units.find_unit(values.get("unit_id"))
        if unit is None:
            raise ValidationError("Selecione uma unidade.", field="unit_id")

        photo_url = await self.storage.upload_photo("parcels", values.get("photo"))
        row = await self.store.insert(PARCELS, {
            "unit_id": unit.id,
            "description": description,
            "protocol_number": (values.get("protocol_number") or "").strip() or None,
            "photo_url": photo_url,
            "status": ParcelStatus.PENDING,
            "arrived_at": utc_now(),
            "created_by": actor.id,
        })
        parcel = Parcel.model_validate(row)
        parcel.unit = unit
        logger.info(f"📦 Parcel {parcel.id} registered for unit {unit.unit_number}")

        block = f" (Bloco {unit.block})" if unit.block else ""
        await self.audit.append(actor.id, AuditAction.CREATE, PARCELS, parcel.id,
                                f"Registrou nova encomenda para unidade {unit.unit_number}{block}. "
                                f"Descrição: {description}.")
        return parcel

    async def mark_collected(self, actor: CurrentUser, parcel_id: str) -> Parcel:
        current = Parcel.model_validate(await self.store.get(PARCELS, parcel_id))
        if current.status == ParcelStatus.COLLECTED:
            raise ConflictError("Esta encomenda já foi retirada.")

        row = await self.store.update(PARCELS, parcel_id, {
            "status": ParcelStatus.COLLECTED,
            "collected_at": utc_now(),
        })
        parcel = Parcel.model_validate(row)
        units = await unit_map(self.store)
        parcel.unit = units.get(parcel.unit_id)
        unit_number = parcel.unit.unit_number if parcel.unit else parcel.unit_id
        logger.info(f"✅ Parcel {parcel_id} collected")

        await self.audit.append(actor.id, AuditAction.UPDATE, PARCELS, parcel_id,
                                f"Confirmou a entrega da encomenda \"{parcel.description}\" "
                                f"para a unidade {unit_number}.")
        return parcel
