"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from HEALTHSYNC_* environment variables (or .env file)."""

    # --- App ---
    app_name: str = "HealthSync"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Sync endpoint ---
    sync_api_url: str
    sync_api_key: str  # bearer credential, never logged

    # --- Record store ---
    record_store_url: str
    record_store_token: str

    # --- HTTP ---
    request_timeout_seconds: float = 30.0

    model_config = {
        "env_prefix": "HEALTHSYNC_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
