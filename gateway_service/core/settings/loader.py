"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Testing:
    In tests, clear the cache to force reload:
    get_gateway_settings.cache_clear()
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .gateway import GatewaySettings
from .logs import LoggingSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings.

    Returns:
        Validated and frozen AppSettings instance.
    """
    return AppSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_gateway_settings() -> GatewaySettings:
    """Get cached gateway composition settings.

    Returns:
        Validated and frozen GatewaySettings instance.
    """
    return GatewaySettings()
