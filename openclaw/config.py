"""Application configuration."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # so DATABASE_URL and database_url both work
        extra="ignore",
    )

    # Required: the service refuses to start without these
    database_url: str
    b2_key_id: str
    b2_app_key: str
    b2_bucket: str
    b2_endpoint: str
    b2_region: str

    # Gates the schema routes; unset disables them
    admin_token: str | None = None

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # Database pool and timeouts
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_timeout_seconds: float = 10.0

    # Object storage
    storage_timeout_seconds: float = 10.0

    # Feature flags
    enable_diagnostics: bool = True
    enable_run_api: bool = True
    auto_init_schema: bool = False

    @field_validator(
        "database_url", "b2_key_id", "b2_app_key", "b2_bucket", "b2_endpoint", "b2_region"
    )
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("admin_token")
    @classmethod
    def _blank_token_is_unset(cls, value: str | None) -> str | None:
        # An empty ADMIN_TOKEN= line must not become a token that matches ""
        if value is not None and not value.strip():
            return None
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
