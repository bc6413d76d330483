import asyncio

from condo.models.api_models import Dashboard, DashboardStats
from condo.models.db_models import ParcelStatus
from condo.services.db_service import Filter, RecordStore, eq
from condo.services.access_service import RentalGuestService, ServiceProviderService
from condo.services.booking_service import BookingService
from condo.services.parcel_service import ParcelService

RECENT = 5
STILL_INSIDE = [Filter(op="is_null", column="exit_time")]


class DashboardService:
    """Front desk overview: counters plus the latest items of each registry."""

    def __init__(self, store: RecordStore, parcels: ParcelService, providers: ServiceProviderService,
                 bookings: BookingService):
        self.store = store
        self.parcels = parcels
        self.providers = providers
        self.bookings = bookings

    async def get_stats(self) -> DashboardStats:
        units, vehicles, pending, providers, guests = await asyncio.gather(
            self.store.count("units"),
            self.store.count("vehicles"),
            self.store.count("parcels", [eq("status", ParcelStatus.PENDING)]),
            self.store.count(ServiceProviderService.collection, STILL_INSIDE),
            self.store.count(RentalGuestService.collection, STILL_INSIDE),
        )
        return DashboardStats(
            total_units=units,
            total_vehicles=vehicles,
            pending_parcels=pending,
            active_providers=providers,
            active_guests=guests,
        )

    async def get_dashboard(self) -> Dashboard:
        stats = await self.get_stats()
        recent_parcels = await self.parcels.list_parcels(limit=RECENT)
        providers = await self.providers.list_entries()
        upcoming = await self.bookings.upcoming_bookings(limit=RECENT)
        return Dashboard(
            stats=stats,
            recent_parcels=recent_parcels,
            active_providers=providers["active"][:RECENT],
            upcoming_bookings=upcoming,
        )
