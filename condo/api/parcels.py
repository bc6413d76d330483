from typing import List

from fastapi import APIRouter, Depends

from condo.api.deps import get_parcels
from condo.core.security import get_current_user
from condo.models.api_models import ParcelRequest
from condo.models.db_models import CurrentUser, Parcel

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=List[Parcel])
async def list_parcels(status: str = "all", search: str = "", parcels=Depends(get_parcels)):
    return await parcels.list_parcels(status, search)


@router.get("/pending/count")
async def pending_count(parcels=Depends(get_parcels)):
    return {"pending": await parcels.pending_count()}


@router.post("", response_model=Parcel, status_code=201)
async def register_parcel(req: ParcelRequest, user: CurrentUser = Depends(get_current_user),
                          parcels=Depends(get_parcels)):
    return await parcels.register_parcel(user, req.model_dump())


@router.post("/{parcel_id}/collect", response_model=Parcel)
async def mark_collected(parcel_id: str, user: CurrentUser = Depends(get_current_user),
                         parcels=Depends(get_parcels)):
    return await parcels.mark_collected(user, parcel_id)
