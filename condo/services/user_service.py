from typing import List

from condo.core.errors import PermissionDeniedError
from condo.core.logger import logger
from condo.models.db_models import AuditAction, CurrentUser, Role, UserProfile
from condo.services.audit_service import AuditService
from condo.services.db_service import Order, RecordStore

PROFILES = "profiles"
ROLE_LABELS = {Role.ADMIN: "Administrador", Role.OPERATOR: "Operador"}


class UserService:
    def __init__(self, store: RecordStore, audit: AuditService):
        self.store = store
        self.audit = audit

    async def list_users(self) -> List[UserProfile]:
        rows = await self.store.list(PROFILES, order=[Order(column="created_at")])
        return [UserProfile.model_validate(r) for r in rows]

    async def get_profile(self, user_id: str) -> UserProfile:
        return UserProfile.model_validate(await self.store.get(PROFILES, user_id))

    async def update_role(self, actor: CurrentUser, user_id: str, role) -> UserProfile:
        if not actor.is_admin:
            raise PermissionDeniedError("Apenas administradores podem alterar permissões.")
        role = Role(role)
        profile = UserProfile.model_validate(await self.store.update(PROFILES, user_id, {"role": role}))
        logger.info(f"🔑 Role of {user_id} set to {role.value} by {actor.id}")

        who = profile.full_name or profile.email or user_id
        await self.audit.append(actor.id, AuditAction.UPDATE, PROFILES, user_id,
                                f"Alterou a permissão de {who} para {ROLE_LABELS[role]}.")
        return profile
