from typing import List

from fastapi import APIRouter, Depends

from condo.api.deps import get_units, get_vehicles
from condo.core.security import get_current_user
from condo.models.api_models import UnitRequest
from condo.models.db_models import CurrentUser, Unit

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=List[Unit])
async def list_units(search: str = "", units=Depends(get_units)):
    return await units.list_units(search)


@router.get("/{unit_id}")
async def get_unit(unit_id: str, units=Depends(get_units), vehicles=Depends(get_vehicles)):
    unit = await units.get_unit(unit_id)
    return {"unit": unit, "vehicles": await vehicles.list_vehicles(unit_id=unit_id)}


@router.post("", response_model=Unit, status_code=201)
async def create_unit(req: UnitRequest, user: CurrentUser = Depends(get_current_user), units=Depends(get_units)):
    return await units.create_unit(user, req.model_dump())


@router.put("/{unit_id}", response_model=Unit)
async def update_unit(unit_id: str, req: UnitRequest, user: CurrentUser = Depends(get_current_user),
                      units=Depends(get_units)):
    return await units.update_unit(user, unit_id, req.model_dump())


@router.delete("/{unit_id}")
async def delete_unit(unit_id: str, user: CurrentUser = Depends(get_current_user), units=Depends(get_units)):
    await units.delete_unit(user, unit_id)
    return {"success": True}
