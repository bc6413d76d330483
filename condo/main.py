from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from condo.core.config import settings
from condo.core.errors import CondoError
from condo.api import access, admin, auth, bookings, dashboard, parcels, units, vehicles
from condo.core.logger import setup_logging, logger
from condo.services.auth_service import InMemoryAuthGateway, SupabaseAuthGateway
from condo.services.db_service import SupabaseRecordStore
from condo.services.memory_store import InMemoryRecordStore
from condo.services.storage_service import InMemoryPhotoStorage, SupabasePhotoStorage
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()


def build_backends(app: FastAPI):
    """Store, auth gateway and photo storage for the configured backend."""
    if settings.STORE_BACKEND == "memory":
        store = InMemoryRecordStore()
        app.state.store = store
        app.state.auth = InMemoryAuthGateway(store)
        app.state.photos = InMemoryPhotoStorage()
    else:
        # the server authorizes requests itself, so it talks to the store with the service key
        store = SupabaseRecordStore(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY)
        app.state.store = store
        app.state.auth = SupabaseAuthGateway(store)
        app.state.photos = SupabasePhotoStorage(store)
    logger.info(f"🗄️ Store backend: {settings.STORE_BACKEND}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME}")
    if not hasattr(app.state, "store"):
        build_backends(app)
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")
    await app.state.auth.close()
    await app.state.store.close()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)


@app.exception_handler(CondoError)
async def condo_exception_handler(request: Request, exc: CondoError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message} ({exc.detail})")
    else:
        logger.info(f"↩️ {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"🔥 UNHANDLED ERROR: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Erro interno do servidor.", "detail": "An unexpected error occurred. Please contact support."}
    )

# Include routers
app.include_router(auth.router, prefix=f"{settings.API_V1_STR}/auth", tags=["Auth"])
app.include_router(units.router, prefix=f"{settings.API_V1_STR}/units", tags=["Units"])
app.include_router(vehicles.router, prefix=f"{settings.API_V1_STR}/vehicles", tags=["Vehicles"])
app.include_router(access.router, prefix=f"{settings.API_V1_STR}/access", tags=["Access"])
app.include_router(parcels.router, prefix=f"{settings.API_V1_STR}/parcels", tags=["Parcels"])
app.include_router(bookings.router, prefix=f"{settings.API_V1_STR}/bookings", tags=["Bookings"])
app.include_router(admin.router, prefix=f"{settings.API_V1_STR}/admin", tags=["Admin"])
app.include_router(dashboard.router, prefix=f"{settings.API_V1_STR}/dashboard", tags=["Dashboard"])

@app.get("/")
async def health_check():
    return {'status': 'active', 'time': datetime.now().isoformat()}

@app.get("/health")
async def health_check_std():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("condo.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
