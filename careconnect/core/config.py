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
        populate_by_name=True,
    )

    app_name: str = Field("CareConnect API", alias="APP_NAME")
    debug: bool = Field(False, alias="DEBUG")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = "HS256"
    jwt_expires_in_minutes: int = Field(60 * 24, alias="JWT_EXPIRES_IN")

    redis_url: str | None = Field(None, alias="REDIS_URL")
    cache_ttl_seconds: int = Field(60, alias="CACHE_TTL_SECONDS")

    default_timezone: str = Field("UTC", alias="DEFAULT_TIMEZONE")
    currency: str = Field("USD", alias="CURRENCY")
    default_slot_minutes: int = Field(60, alias="DEFAULT_SLOT_MINUTES", gt=0)
    max_availability_days: int = Field(31, alias="MAX_AVAILABILITY_DAYS", gt=0)


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings = get_settings()
