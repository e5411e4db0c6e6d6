"""Application configuration via Pydantic settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration object loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "WashBay Scheduling API"
    debug: bool = False
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")

    business_timezone: str = Field("America/Sao_Paulo", alias="BUSINESS_TIMEZONE")

    # Fallbacks used when the business_settings table has no row for a key.
    default_business_hours_start: str = Field("08:00", alias="DEFAULT_BUSINESS_HOURS_START")
    default_business_hours_end: str = Field("18:00", alias="DEFAULT_BUSINESS_HOURS_END")
    default_appointment_interval: int = Field(30, alias="DEFAULT_APPOINTMENT_INTERVAL", gt=0)
    default_max_concurrent_appointments: int = Field(3, alias="DEFAULT_MAX_CONCURRENT_APPOINTMENTS", ge=1)


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings = get_settings()
