"""Unified settings composition for convenient access.

Usage:
    from gateway_service.core.settings import get_settings

    settings = get_settings()
    print(settings.app.port)
    print(settings.gateway.legacy_graphql_url)

Each nested settings class still respects its own env prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .app import AppSettings
from .gateway import GatewaySettings
from .logs import LoggingSettings


class Settings(BaseSettings):
    """Unified settings composing all domain settings."""

    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached unified settings."""
    return Settings()
