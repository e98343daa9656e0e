"""Application configuration."""

import os
from datetime import timedelta

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    public_base_url: str = "http://localhost:8000"
    session_duration_seconds: float = 600
    retention_days: float = 2
    code_length: int = 8
    sweep_interval_seconds: float = 300
    identifier_cache_ttl_seconds: int = 300
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def session_duration(self) -> timedelta:
        """Fixed lifetime of every session."""
        return timedelta(seconds=self.session_duration_seconds)

    @property
    def retention(self) -> timedelta:
        """How long sessions and submissions are kept."""
        return timedelta(days=self.retention_days)
