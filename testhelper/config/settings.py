"""Application settings loaded from environment variables."""
import os
from functools import lru_cache
from typing import List

from pydantic import BaseModel, Field


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    """Runtime configuration for the Test Helper backend."""

    app_name: str = "Test Helper"
    app_env: str = Field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    app_port: int = Field(default_factory=lambda: int(os.getenv("APP_PORT", "3001")))

    # Scenario/group persistence
    database_url: str = Field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./testhelper.db")
    )
    # Database the scenario tables are materialized into
    target_database_url: str = Field(
        default_factory=lambda: os.getenv("TARGET_DATABASE_URL", "sqlite+aiosqlite:///./testhelper_target.db")
    )

    cors_origins: List[str] = Field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ORIGINS", "http://localhost:3000"))
    )

    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json: bool = Field(default_factory=lambda: os.getenv("LOG_JSON", "false").lower() in ("1", "true", "yes"))

    proxy_default_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("PROXY_DEFAULT_TIMEOUT_MS", "30000"))
    )
    proxy_max_timeout_ms: int = 300000

    export_version: str = "1.0.0"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
