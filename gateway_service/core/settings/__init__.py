"""Modular Pydantic Settings v2 configuration.

Import settings via cached loaders:
    from gateway_service.core.settings import get_gateway_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
"""

from __future__ import annotations

from .app import AppSettings
from .gateway import GatewaySettings
from .loader import get_app_settings, get_gateway_settings, get_logging_settings
from .logs import LoggingSettings
from .unified import Settings, get_settings

__all__ = [
    "AppSettings",
    "GatewaySettings",
    "LoggingSettings",
    "Settings",
    "get_app_settings",
    "get_gateway_settings",
    "get_logging_settings",
    "get_settings",
]
