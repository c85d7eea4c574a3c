from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database
    database_url: str

    # Calendar basis used to derive appointment_day from appointment_date
    clinic_timezone: str = "UTC"

    # Daily token allocation
    token_allocation_max_attempts: int = Field(default=3, ge=1)

    # Length of one bookable slot in a doctor's working-hours grid
    slot_minutes: int = Field(default=30, ge=5, le=240)

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
