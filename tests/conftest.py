"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: cache resets so env changes take effect
    - Legacy API Fixtures: in-memory legacy GraphQL server behind httpx.MockTransport
    - Function Runtime Fixtures: MockFunctionRuntime preloaded with packages
"""

from __future__ import annotations

import os

import pytest

from gateway_service.core.settings import (
    get_app_settings,
    get_gateway_settings,
    get_logging_settings,
    get_settings,
)
from gateway_service.features.gateway.functions.mock_runtime import MockFunctionRuntime
from tests.utils import LegacyGraphQLServer

# Ensure tests run without external infrastructure
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("GATEWAY_ENABLE_IO_FUNCTIONS", "false")

_SETTINGS_LOADERS = (get_app_settings, get_logging_settings, get_gateway_settings, get_settings)


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clear_settings_caches():
    """Reload settings for every test so monkeypatched env vars apply."""
    for loader in _SETTINGS_LOADERS:
        loader.cache_clear()
    yield
    for loader in _SETTINGS_LOADERS:
        loader.cache_clear()


# ============================================================================
# Legacy API Fixtures
# ============================================================================


@pytest.fixture
def legacy_server() -> LegacyGraphQLServer:
    """Legacy GraphQL API that passes the compatibility check."""
    return LegacyGraphQLServer()


# ============================================================================
# Function Runtime Fixtures
# ============================================================================


@pytest.fixture
def function_runtime() -> MockFunctionRuntime:
    """Runtime with one GraphQL package (pkgB) and one plain package."""
    runtime = MockFunctionRuntime()
    runtime.add_package(
        "test-ns",
        "pkgB",
        """
        extend type Query {
          greet(name: String): String @function(name: "greet")
        }
        """,
    )
    runtime.add_package("test-ns", "utilities", None)
    runtime.add_function("pkgB/greet", lambda params: f"Hello, {params.get('name') or 'you'}!")
    return runtime
