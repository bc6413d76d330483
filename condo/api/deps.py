"""Services built per request from the backends the app was started with."""
from fastapi import Depends, Request

from condo.services.access_service import RentalGuestService, ServiceProviderService
from condo.services.audit_service import AuditService
from condo.services.booking_service import BookingService
from condo.services.condominium_service import CondominiumService
from condo.services.dashboard_service import DashboardService
from condo.services.parcel_service import ParcelService
from condo.services.storage_service import StorageService
from condo.services.unit_service import UnitService
from condo.services.user_service import UserService
from condo.services.vehicle_service import VehicleService


def get_store(request: Request):
    return request.app.state.store


def get_auth_gateway(request: Request):
    return request.app.state.auth


def get_audit(store=Depends(get_store)) -> AuditService:
    return AuditService(store)


def get_storage(request: Request, store=Depends(get_store)) -> StorageService:
    return StorageService(store, request.app.state.photos)


def get_units(store=Depends(get_store), audit=Depends(get_audit)) -> UnitService:
    return UnitService(store, audit)


def get_condominium(store=Depends(get_store), audit=Depends(get_audit)) -> CondominiumService:
    return CondominiumService(store, audit)


def get_vehicles(store=Depends(get_store), audit=Depends(get_audit), units=Depends(get_units)) -> VehicleService:
    return VehicleService(store, audit, units)


def get_bookings(store=Depends(get_store), audit=Depends(get_audit), units=Depends(get_units),
                 condominium=Depends(get_condominium)) -> BookingService:
    return BookingService(store, audit, units, condominium)


def get_providers(store=Depends(get_store), audit=Depends(get_audit), storage=Depends(get_storage),
                  units=Depends(get_units)) -> ServiceProviderService:
    return ServiceProviderService(store, audit, storage, units)


def get_guests(store=Depends(get_store), audit=Depends(get_audit), storage=Depends(get_storage),
               units=Depends(get_units)) -> RentalGuestService:
    return RentalGuestService(store, audit, storage, units)


def get_parcels(store=Depends(get_store), audit=Depends(get_audit), storage=Depends(get_storage),
                units=Depends(get_units)) -> ParcelService:
    return ParcelService(store, audit, storage, units)


def get_users(store=Depends(get_store), audit=Depends(get_audit)) -> UserService:
    return UserService(store, audit)


def get_dashboard(store=Depends(get_store), parcels=Depends(get_parcels), providers=Depends(get_providers),
                  bookings=Depends(get_bookings)) -> DashboardService:
    return DashboardService(store, parcels, providers, bookings)
