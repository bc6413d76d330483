from typing import Any, Dict, List

from condo.core.logger import logger
from condo.models.db_models import AmenityConfig, AuditAction, Condominium, CurrentUser
from condo.services.audit_service import AuditService
from condo.services.availability import room_labels
from condo.services.db_service import Order, RecordStore

CONDOMINIUM = "condominium"


def _names(count: int, prefix: str, naming: str) -> List[str]:
    names = []
    for i in range(max(count, 1)):
        suffix = chr(ord("A") + i) if naming == "letters" else str(i + 1)
        names.append(f"{prefix} {suffix}")
    return names


class CondominiumService:
    """The single settings row of the condominium (towers, party rooms)."""

    def __init__(self, store: RecordStore, audit: AuditService):
        self.store = store
        self.audit = audit

    async def get_settings(self) -> Condominium:
        row = await self.store.first(CONDOMINIUM, order=[Order(column="created_at")])
        if row is None:
            return Condominium()
        return Condominium.model_validate(row)

    async def update_settings(self, actor: CurrentUser, values: Dict[str, Any]) -> Condominium:
        """Updates the existing row, or creates it when the condominium has none yet."""
        current = await self.store.first(CONDOMINIUM, order=[Order(column="created_at")])
        if current:
            row = await self.store.update(CONDOMINIUM, current["id"], values)
            action = AuditAction.UPDATE
        else:
            row = await self.store.insert(CONDOMINIUM, values)
            action = AuditAction.CREATE
        logger.info(f"🏢 Condominium settings saved ({action.value})")

        await self.audit.append(actor.id, action, CONDOMINIUM, row["id"],
                                "Atualizou as informações do condomínio.")
        return Condominium.model_validate(row)

    async def get_amenity_config(self) -> AmenityConfig:
        settings = await self.get_settings()
        return AmenityConfig(
            name=settings.party_room_name,
            capacity=settings.party_room_capacity,
            rules=settings.party_room_rules,
            instance_count=settings.party_room_count,
            naming=settings.party_room_naming,
        )


def tower_names(settings: Condominium) -> List[str]:
    return _names(settings.tower_count, settings.tower_prefix, settings.tower_naming)


def party_room_names(settings: Condominium) -> List[str]:
    return room_labels(AmenityConfig(
        name=settings.party_room_name,
        instance_count=settings.party_room_count,
        naming=settings.party_room_naming,
    ))
