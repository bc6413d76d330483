from fastapi import APIRouter, Depends

from condo.api.deps import get_guests, get_providers
from condo.core.security import get_current_user
from condo.models.api_models import RentalGuestRequest, ServiceProviderRequest
from condo.models.db_models import CurrentUser, RentalGuest, ServiceProvider

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/providers")
async def list_providers(providers=Depends(get_providers)):
    return await providers.list_entries()


@router.post("/providers", response_model=ServiceProvider, status_code=201)
async def register_provider(req: ServiceProviderRequest, user: CurrentUser = Depends(get_current_user),
                            providers=Depends(get_providers)):
    return await providers.register_entry(user, req.model_dump())


@router.post("/providers/{entry_id}/exit", response_model=ServiceProvider)
async def provider_exit(entry_id: str, user: CurrentUser = Depends(get_current_user),
                        providers=Depends(get_providers)):
    return await providers.register_exit(user, entry_id)


@router.get("/guests")
async def list_guests(guests=Depends(get_guests)):
    return await guests.list_entries()


@router.post("/guests", response_model=RentalGuest, status_code=201)
async def register_guest(req: RentalGuestRequest, user: CurrentUser = Depends(get_current_user),
                         guests=Depends(get_guests)):
    return await guests.register_entry(user, req.model_dump())


@router.post("/guests/{entry_id}/exit", response_model=RentalGuest)
async def guest_exit(entry_id: str, user: CurrentUser = Depends(get_current_user), guests=Depends(get_guests)):
    return await guests.register_exit(user, entry_id)
