"""Centralized application configuration using Pydantic settings."""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration for the reservation service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    database_url: str = Field(
        default="sqlite:///./reservations.db",
        description="SQLAlchemy URL of the key-value table. Defaults to local SQLite for development.",
    )
    run_db_migrations: bool = Field(
        default=True,
        description="Whether the service should create the key-value table on startup.",
    )
    store_timeout_seconds: float = Field(default=5.0, gt=0, description="Upper bound (s) on a single store call")
    lock_timeout_seconds: float = Field(default=5.0, gt=0, description="Upper bound (s) on waiting for a resource lock")
    store_failure_threshold: int = Field(default=5, ge=1, description="Consecutive store failures before the breaker opens")
    store_recovery_timeout: int = Field(default=30, ge=1, description="Seconds the breaker stays open")
    utilization_cache_ttl: int = Field(default=30, ge=0, description="TTL (s) for cached utilization snapshots")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")
    default_rate_limit: str = Field(default="60/minute", description="Global rate limiting rule")
    rate_limiting_enabled: bool = Field(default=True, description="Toggle to disable SlowAPI limits (useful in tests)")
    log_dir: str = Field(default="logs", description="Directory for the audit log files")

    service_port: int = 8000


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the Settings object."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached Settings instance (useful for tests)."""

    get_settings.cache_clear()
