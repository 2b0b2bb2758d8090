from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Renovation Quote Pricing"

    # Hosted database (PostgREST) backing the rate catalog and quote records
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_KEY: Optional[str] = None

    CATALOG_SOURCE: Literal["supabase", "static"] = "supabase"
    CATALOG_TIMEOUT_SECONDS: float = 10.0
    CATALOG_FETCH_ATTEMPTS: int = 3

    QUOTE_CURRENCY: str = "CAD"
    DEPOSIT_REQUIRED_PCT: float = 25.0
    QUOTE_EXPIRY_DAYS: int = 30

    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"
    LOG_MAX_BYTES: int = 2_000_000
    LOG_BACKUP_COUNT: int = 3

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
