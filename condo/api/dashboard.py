from fastapi import APIRouter, Depends

from condo.api.deps import get_dashboard
from condo.core.security import get_current_user
from condo.models.api_models import Dashboard, DashboardStats

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=Dashboard)
async def dashboard(service=Depends(get_dashboard)):
    return await service.get_dashboard()


@router.get("/stats", response_model=DashboardStats)
async def stats(service=Depends(get_dashboard)):
    return await service.get_stats()
