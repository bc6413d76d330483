from typing import List, Optional

from fastapi import APIRouter, Depends

from condo.api.deps import get_vehicles
from condo.core.security import get_current_user
from condo.models.api_models import PlateSearchResult, VehicleRequest
from condo.models.db_models import CurrentUser, Vehicle

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=List[Vehicle])
async def list_vehicles(search: str = "", unit_id: Optional[str] = None, vehicles=Depends(get_vehicles)):
    return await vehicles.list_vehicles(search, unit_id)


@router.get("/search", response_model=List[PlateSearchResult])
async def search_plate(plate: str = "", vehicles=Depends(get_vehicles)):
    return await vehicles.search_plate(plate)


@router.post("", response_model=Vehicle, status_code=201)
async def create_vehicle(req: VehicleRequest, user: CurrentUser = Depends(get_current_user),
                         vehicles=Depends(get_vehicles)):
    return await vehicles.create_vehicle(user, req.model_dump())


@router.put("/{vehicle_id}", response_model=Vehicle)
async def update_vehicle(vehicle_id: str, req: VehicleRequest, user: CurrentUser = Depends(get_current_user),
                         vehicles=Depends(get_vehicles)):
    return await vehicles.update_vehicle(user, vehicle_id, req.model_dump())


@router.delete("/{vehicle_id}")
async def delete_vehicle(vehicle_id: str, user: CurrentUser = Depends(get_current_user),
                         vehicles=Depends(get_vehicles)):
    await vehicles.delete_vehicle(user, vehicle_id)
    return {"success": True}
