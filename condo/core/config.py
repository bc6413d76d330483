from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Condo Manager"
    API_V1_STR: str = "/api"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Record store: "supabase" or "memory" (local development / tests)
    STORE_BACKEND: str = "supabase"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    # Photos (camera captures of parcels, providers, guests)
    PHOTOS_BUCKET: str = "photos"
    PHOTO_MAX_BYTES: int = 5242880
    PHOTO_RETENTION_DAYS: int = 60

    # Calendar days are interpreted in this zone, never UTC-normalized
    TIMEZONE: str = "America/Sao_Paulo"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Schema reconciliation
    SCHEMA_SNAPSHOT_PATH: str = "supabase/schema_snapshot.json"
    MIGRATIONS_DIR: str = "supabase/migrations"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
