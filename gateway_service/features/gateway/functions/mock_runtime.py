"""Mock function runtime for testing without a real runtime API.

This module provides a MockFunctionRuntime that implements
FunctionRuntimeProtocol and keeps packages and functions in memory.

Usage in tests:
    from gateway_service.features.gateway.functions.mock_runtime import MockFunctionRuntime

    @pytest.fixture
    def runtime():
        runtime = MockFunctionRuntime()
        sdl = 'extend type Query { greet: String @function(name: "greet") }'
        runtime.add_package("ns", "pkgB", sdl)
        runtime.add_function("pkgB/greet", lambda params: "hi")
        return runtime
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass
class InvocationRecord:
    """Record of a function invocation for assertion in tests."""

    qualified_name: str
    params: dict[str, Any]


class MockFunctionRuntime:
    """In-memory function runtime.

    Attributes:
        packages: SDL per package name, per namespace. ``None`` marks a
            package that publishes no schema.
        functions: Handler per qualified function name. Handlers receive the
            params mapping and may be sync or async.
        call_history: Every invocation, in order.
        fail_listing: Set to True to make ``list_packages`` raise.
    """

    def __init__(self) -> None:
        self.packages: dict[str, dict[str, str | None]] = {}
        self.functions: dict[str, Callable[[dict[str, Any]], Any]] = {}
        self.call_history: list[InvocationRecord] = []
        self.fail_listing = False

    def add_package(self, namespace: str, package: str, schema: str | None) -> None:
        self.packages.setdefault(namespace, {})[package] = schema

    def add_function(self, qualified_name: str, handler: Callable[[dict[str, Any]], Any]) -> None:
        self.functions[qualified_name] = handler

    async def list_packages(self, namespace: str) -> list[str]:
        if self.fail_listing:
            raise httpx.ConnectError("Simulated runtime outage")
        return sorted(self.packages.get(namespace, {}))

    async def get_package_schema(self, namespace: str, package: str) -> str | None:
        return self.packages.get(namespace, {}).get(package)

    async def invoke(self, qualified_name: str, params: Mapping[str, Any]) -> Any:
        self.call_history.append(InvocationRecord(qualified_name, dict(params)))
        handler = self.functions.get(qualified_name)
        if handler is None:
            raise LookupError(f"Function '{qualified_name}' is not registered")
        result = handler(dict(params))
        if inspect.isawaitable(result):
            result = await result
        logger.debug("Mock function invoked", extra={"function": qualified_name})
        return result


__all__ = ["InvocationRecord", "MockFunctionRuntime"]
