"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
The service never reads these values ambiently: a ``Settings`` instance is
injected into ``LemmyService`` so tests can run against several default instances.

Read-limited deployment:
    ``kbin.social`` cannot be queried through the Lemmy API. When a request
    resolves to it, the adapter connects to ``lemmy_kbin_default_instance``
    instead while still qualifying identifiers against the original host.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Federation
    # -------------------------------------------------------------------------
    lemmy_default_instance: str = Field(
        ..., description="Instance whose content is addressed without an @host suffix"
    )
    lemmy_kbin_default_instance: str | None = Field(
        default=None,
        description="Instance to connect to when a request resolves to the read-limited host",
    )
    lemmy_read_limited_instance: str = Field(
        default="kbin.social",
        description="Deployment that does not serve the Lemmy API (no search, no anonymous listings)",
    )
    lemmy_frontend_url: str = Field(
        default="https://lemmy.z.gripe",
        description="Base URL used for the canonical url of self posts",
    )

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    lemmy_request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout in seconds",
    )
    lemmy_max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts for rate limited or timed out requests",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=True,
        description="Render log events as JSON instead of console output",
    )

    @field_validator("lemmy_default_instance", "lemmy_kbin_default_instance", "lemmy_read_limited_instance")
    @classmethod
    def strip_scheme(cls, value: str | None) -> str | None:
        """Accept ``https://host/`` as well as a bare host name."""
        if value is None:
            return value
        value = value.strip()
        for prefix in ("https://", "http://"):
            if value.startswith(prefix):
                value = value[len(prefix):]
        return value.rstrip("/")

    @property
    def alternate_default_instance(self) -> str:
        """Instance contacted in place of the read-limited host."""
        return self.lemmy_kbin_default_instance or self.lemmy_default_instance

    @property
    def is_read_limited(self) -> bool:
        """Check if the deployment itself is pinned to the read-limited host."""
        return self.lemmy_default_instance == self.lemmy_read_limited_instance


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
