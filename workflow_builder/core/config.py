"""Application configuration using Pydantic Settings.

Environment variables are loaded from .env files and system environment.
Canvas geometry and graph-format constants are not settings: they are part
of the stored document contract and live in ``services.workflow``.
"""

from functools import lru_cache
from typing import Any
from uuid import UUID

from pydantic import PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Returns Workflow Builder"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # CORS
    ALLOWED_ORIGINS: list[str] = ["http://localhost:5173"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v: Any) -> list[str]:
        """Parse ALLOWED_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, list):
            return v
        return ["http://localhost:5173"]

    # Database
    DATABASE_URL: PostgresDsn | None = None
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Tenancy (authentication is handled upstream)
    DEFAULT_TENANT_ID: UUID = UUID("00000000-0000-0000-0000-000000000001")

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None  # Defaults to logs/app.log
    LOG_JSON_FORMAT: bool = True
    LOG_SENSITIVE_FILTER: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


settings = get_settings()
