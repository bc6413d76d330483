from typing import List, Optional

from condo.core.dates import utc_now
from condo.core.logger import logger
from condo.models.db_models import AuditAction, AuditEntry, UserProfile
from condo.services.db_service import Filter, Order, RecordStore

LOGS = "system_logs"


class AuditService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def append(self, actor_id: str, action: AuditAction, target_collection: Optional[str],
                     target_id: Optional[str], description: str) -> None:
        """
        Records who did what. Best effort: a failure here is logged and never
        blocks or rolls back the action being recorded.
        """
        try:
            await self.store.insert(LOGS, {
                "user_id": actor_id,
                "action": AuditAction(action),
                "target_collection": target_collection,
                "target_id": target_id,
                "description": description,
                # explicit instant, some deployments lack a reliable created column
                "timestamp": utc_now(),
            })
            logger.info(f"📝 Audit {AuditAction(action).value} {target_collection}/{target_id} by {actor_id}")
        except Exception as e:
            logger.error(f"❌ Error creating activity log ({getattr(action, 'value', action)} "
                         f"{target_collection}/{target_id}): {e}")

    async def list_entries(self, search: str = "", action: Optional[str] = None) -> List[AuditEntry]:
        filters = [Filter(op="eq", column="action", value=action)] if action and action != "all" else []
        rows = await self.store.list(LOGS, filters, order=[Order(column="timestamp", desc=True),
                                                            Order(column="created_at", desc=True)])
        profiles = {p["id"]: UserProfile.model_validate(p) for p in await self.store.list("profiles")}

        entries = []
        term = search.strip().lower()
        for row in rows:
            entry = AuditEntry.model_validate(row)
            entry.user = profiles.get(entry.user_id)
            if term:
                haystack = [entry.description]
                if entry.user:
                    haystack += [entry.user.full_name or "", entry.user.email or ""]
                if not any(term in h.lower() for h in haystack):
                    continue
            entries.append(entry)
        return entries
