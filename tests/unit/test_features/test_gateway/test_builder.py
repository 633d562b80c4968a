"""Tests for wiring the tiers together at startup."""

from __future__ import annotations

import asyncio
import logging

import pytest
from graphql import graphql

from gateway_service.core.exceptions import (
    CompositionError,
    MonolithCompatibilityError,
    MonolithUnreachableError,
)
from gateway_service.core.settings import GatewaySettings
from gateway_service.features.gateway.builder import GatewaySchemaBuilder
from gateway_service.features.gateway.context import GatewayContext
from gateway_service.features.gateway.fragments import PrecedenceTier
from gateway_service.features.gateway.functions.mock_runtime import MockFunctionRuntime
from gateway_service.features.gateway.functions.runtime import FunctionRuntimeClient
from gateway_service.features.gateway.monolith.proxy import MonolithProxyBuilder
from tests.utils import LEGACY_URL, OUTDATED_LEGACY_SDL, LegacyGraphQLServer

FUNCTIONS = {"enable_io_functions": True, "io_namespace": "test-ns"}


@pytest.mark.unit
class TestGatewaySchemaBuilderSetup:
    """Construction from settings."""

    def test_runtime_client_created_when_functions_enabled(self) -> None:
        builder = GatewaySchemaBuilder(GatewaySettings(**FUNCTIONS))

        assert isinstance(builder.function_runtime, FunctionRuntimeClient)

    def test_no_runtime_when_functions_disabled(self) -> None:
        assert GatewaySchemaBuilder(GatewaySettings()).function_runtime is None

    def test_local_packages_discovered(self) -> None:
        fragment = GatewaySchemaBuilder(GatewaySettings()).collect_local()

        assert fragment.tier is PrecedenceTier.LOCAL
        assert ("Query", "hello") in fragment.field_resolvers
        assert ("Query", "storeInfo") in fragment.field_resolvers
        assert "store" in fragment.data_sources


@pytest.mark.unit
@pytest.mark.asyncio
class TestGatewaySchemaBuilderBuild:
    """Composition of every enabled tier."""

    async def test_local_only(self) -> None:
        composed = await GatewaySchemaBuilder(GatewaySettings()).build()

        assert composed.tiers == (PrecedenceTier.LOCAL,)
        result = await graphql(
            composed.schema,
            "{ hello storeInfo { code currency } }",
            context_value=GatewayContext(data_sources=dict(composed.data_sources)),
        )
        assert result.errors is None
        assert result.data == {
            "hello": "world",
            "storeInfo": {"code": "default", "currency": "USD"},
        }

    async def test_local_and_remote_functions(self, function_runtime: MockFunctionRuntime) -> None:
        builder = GatewaySchemaBuilder(
            GatewaySettings(**FUNCTIONS), function_runtime=function_runtime
        )
        composed = await builder.build()

        result = await graphql(
            composed.schema,
            "{ hello greet }",
            context_value=GatewayContext(function_runtime=builder.function_runtime),
        )

        assert result.errors is None
        assert result.data == {"hello": "world", "greet": "Hello, you!"}
        assert [call.qualified_name for call in function_runtime.call_history] == ["pkgB/greet"]

    async def test_all_tiers(
        self, function_runtime: MockFunctionRuntime, legacy_server: LegacyGraphQLServer
    ) -> None:
        builder = GatewaySchemaBuilder(
            GatewaySettings(legacy_graphql_url=LEGACY_URL, **FUNCTIONS),
            function_runtime=function_runtime,
            monolith_builder=MonolithProxyBuilder(transport=legacy_server.transport),
        )
        composed = await builder.build()

        assert composed.tiers == (
            PrecedenceTier.LOCAL,
            PrecedenceTier.REMOTE_FUNCTION,
            PrecedenceTier.MONOLITH,
        )
        query_fields = composed.schema.query_type.fields
        assert {"hello", "storeInfo", "greet", "products", "storeConfig"} <= set(query_fields)
        assert composed.field_tiers[("Query", "storeConfig")] is PrecedenceTier.MONOLITH

    async def test_outdated_legacy_api_aborts(self, caplog: pytest.LogCaptureFixture) -> None:
        server = LegacyGraphQLServer(OUTDATED_LEGACY_SDL)
        builder = GatewaySchemaBuilder(
            GatewaySettings(legacy_graphql_url=LEGACY_URL),
            monolith_builder=MonolithProxyBuilder(transport=server.transport),
        )

        with caplog.at_level(logging.ERROR), pytest.raises(MonolithCompatibilityError):
            await builder.build()

        assert "Schema composition failed" in caplog.text

    async def test_unreachable_legacy_api_aborts(self, legacy_server: LegacyGraphQLServer) -> None:
        legacy_server.status_code = 502
        builder = GatewaySchemaBuilder(
            GatewaySettings(legacy_graphql_url=LEGACY_URL),
            monolith_builder=MonolithProxyBuilder(transport=legacy_server.transport),
        )

        with pytest.raises(MonolithUnreachableError):
            await builder.build()

    async def test_runtime_outage_aborts(self, function_runtime: MockFunctionRuntime) -> None:
        function_runtime.fail_listing = True
        builder = GatewaySchemaBuilder(
            GatewaySettings(**FUNCTIONS), function_runtime=function_runtime
        )

        with pytest.raises(CompositionError):
            await builder.build()


class _UnreachableMonolith:
    async def build(self, endpoint_url: str):
        raise MonolithUnreachableError(endpoint_url, ConnectionError("refused"))


class _HangingMonolith:
    def __init__(self) -> None:
        self.cancelled = False

    async def build(self, endpoint_url: str):
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise


@pytest.mark.unit
@pytest.mark.asyncio
class TestConcurrentTierFailures:
    """Failures while the remote tiers are collected side by side."""

    async def test_every_failure_is_reported(
        self, function_runtime: MockFunctionRuntime, caplog: pytest.LogCaptureFixture
    ) -> None:
        function_runtime.fail_listing = True
        builder = GatewaySchemaBuilder(
            GatewaySettings(legacy_graphql_url=LEGACY_URL, **FUNCTIONS),
            function_runtime=function_runtime,
            monolith_builder=_UnreachableMonolith(),
        )

        with caplog.at_level(logging.ERROR), pytest.raises(CompositionError):
            await builder.build()

        assert "Failed listing GraphQL packages" in caplog.text
        assert "Failed introspecting remote legacy schema" in caplog.text

    async def test_failure_cancels_the_other_tier(
        self, function_runtime: MockFunctionRuntime
    ) -> None:
        function_runtime.fail_listing = True
        monolith = _HangingMonolith()
        builder = GatewaySchemaBuilder(
            GatewaySettings(legacy_graphql_url=LEGACY_URL, **FUNCTIONS),
            function_runtime=function_runtime,
            monolith_builder=monolith,
        )

        with pytest.raises(CompositionError) as exc_info:
            await builder.build()

        assert exc_info.value.type == "remote-functions-unavailable"
        assert monolith.cancelled is True
