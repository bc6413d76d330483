from typing import Dict, List, Optional

from condo.core.errors import NotFoundError, ValidationError
from condo.core.logger import logger
from condo.models.db_models import AuditAction, CurrentUser, Unit, UnitSummary
from condo.services.audit_service import AuditService
from condo.services.db_service import Order, RecordStore

UNITS = "units"
UNIT_ORDER = [Order(column="block"), Order(column="unit_number")]


async def unit_map(store: RecordStore) -> Dict[str, UnitSummary]:
    """All units by id, for attaching a unit summary to dependent records."""
    return {row["id"]: UnitSummary.model_validate(row) for row in await store.list(UNITS)}


def _clean(values: dict) -> dict:
    unit_number = (values.get("unit_number") or "").strip()
    resident_name = (values.get("resident_name") or "").strip()
    if not unit_number:
        raise ValidationError("Número da unidade é obrigatório.", field="unit_number")
    if len(resident_name) < 2:
        raise ValidationError("Nome do morador é obrigatório.", field="resident_name")
    return {
        "unit_number": unit_number,
        "block": (values.get("block") or "").strip() or None,
        "resident_name": resident_name,
        "phone_number": (values.get("phone_number") or "").strip() or None,
    }


class UnitService:
    def __init__(self, store: RecordStore, audit: AuditService):
        self.store = store
        self.audit = audit

    async def list_units(self, search: str = "") -> List[Unit]:
        units = [Unit.model_validate(r) for r in await self.store.list(UNITS, order=UNIT_ORDER)]
        term = search.strip().lower()
        if not term:
            return units
        return [
            u for u in units
            if term in u.unit_number.lower()
            or term in u.resident_name.lower()
            or (u.block and term in u.block.lower())
        ]

    async def get_unit(self, unit_id: str) -> Unit:
        return Unit.model_validate(await self.store.get(UNITS, unit_id))

    async def find_unit(self, unit_id: Optional[str]) -> Optional[UnitSummary]:
        """Like get_unit, but a missing unit is a validation problem of the caller's input."""
        if not unit_id:
            return None
        try:
            return UnitSummary.model_validate(await self.store.get(UNITS, unit_id))
        except NotFoundError:
            raise ValidationError("Selecione uma unidade válida.", field="unit_id")

    async def create_unit(self, actor: CurrentUser, values: dict) -> Unit:
        row = await self.store.insert(UNITS, _clean(values))
        unit = Unit.model_validate(row)
        logger.info(f"🏠 Unit {unit.unit_number} created")
        await self.audit.append(actor.id, AuditAction.CREATE, UNITS, unit.id,
                                f"Cadastrou a unidade {unit.unit_number}"
                                f"{f' (Bloco {unit.block})' if unit.block else ''} - {unit.resident_name}.")
        return unit

    async def update_unit(self, actor: CurrentUser, unit_id: str, values: dict) -> Unit:
        row = await self.store.update(UNITS, unit_id, _clean(values))
        unit = Unit.model_validate(row)
        await self.audit.append(actor.id, AuditAction.UPDATE, UNITS, unit.id,
                                f"Atualizou os dados da unidade {unit.unit_number}.")
        return unit

    async def delete_unit(self, actor: CurrentUser, unit_id: str) -> None:
        unit = await self.get_unit(unit_id)
        await self.store.delete(UNITS, unit_id)
        logger.info(f"🗑️ Unit {unit.unit_number} deleted")
        await self.audit.append(actor.id, AuditAction.DELETE, UNITS, unit_id,
                                f"Excluiu a unidade {unit.unit_number}.")
