from typing import List, Optional

from fastapi import APIRouter, Depends

from condo.api.deps import get_audit, get_condominium, get_storage, get_users
from condo.core.security import get_current_user, require_admin
from condo.models.api_models import CleanupResult, CondominiumRequest, RoleUpdateRequest
from condo.models.db_models import AmenityConfig, AuditEntry, Condominium, CurrentUser, UserProfile
from condo.services.condominium_service import party_room_names, tower_names

router = APIRouter()


@router.get("/users", response_model=List[UserProfile], dependencies=[Depends(require_admin)])
async def list_users(users=Depends(get_users)):
    return await users.list_users()


@router.put("/users/{user_id}/role", response_model=UserProfile)
async def update_role(user_id: str, req: RoleUpdateRequest, user: CurrentUser = Depends(require_admin),
                      users=Depends(get_users)):
    return await users.update_role(user, user_id, req.role)


@router.get("/logs", response_model=List[AuditEntry], dependencies=[Depends(require_admin)])
async def list_logs(search: str = "", action: Optional[str] = None, audit=Depends(get_audit)):
    return await audit.list_entries(search, action)


@router.get("/settings", dependencies=[Depends(get_current_user)])
async def get_settings(condominium=Depends(get_condominium)):
    current: Condominium = await condominium.get_settings()
    return {
        "settings": current,
        "tower_names": tower_names(current),
        "party_room_names": party_room_names(current),
    }


@router.put("/settings", response_model=Condominium)
async def update_settings(req: CondominiumRequest, user: CurrentUser = Depends(require_admin),
                          condominium=Depends(get_condominium)):
    values = req.model_dump()
    values["party_room_name"] = values["party_room_name"] or "Salão de Festas"
    return await condominium.update_settings(user, values)


@router.get("/amenity", response_model=AmenityConfig, dependencies=[Depends(get_current_user)])
async def amenity_config(condominium=Depends(get_condominium)):
    return await condominium.get_amenity_config()


@router.post("/photos/cleanup", response_model=CleanupResult, dependencies=[Depends(require_admin)])
async def cleanup_photos(storage=Depends(get_storage)):
    return await storage.cleanup_old_photos()
