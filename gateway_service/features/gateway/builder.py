"""Startup wiring of the three schema tiers.

Tiers are collected and composed in a fixed precedence order:

1. LOCAL: in-process packages, always present.
2. REMOTE_FUNCTION: packages published to the function runtime, when enabled.
   They win over local packages so logic moved out of the legacy application
   can still extend its types.
3. MONOLITH: the legacy GraphQL API, when its URL is configured. It always
   wins; extending legacy types belongs in the legacy application itself.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from gateway_service.core.exceptions import CompositionError
from gateway_service.features.gateway.composer import ComposedSchema, compose
from gateway_service.features.gateway.functions.collector import RemoteFunctionCollector
from gateway_service.features.gateway.functions.runtime import FunctionRuntimeClient
from gateway_service.features.gateway.local import get_all_packages, merge_package_configs
from gateway_service.features.gateway.monolith.proxy import MonolithProxyBuilder
from gateway_service.infra.metrics import schema_composed_fields

if TYPE_CHECKING:
    from collections.abc import Coroutine, Sequence
    from typing import Any

    from gateway_service.core.settings import GatewaySettings
    from gateway_service.features.gateway.fragments import SchemaFragment
    from gateway_service.features.gateway.functions.runtime import FunctionRuntimeProtocol
    from gateway_service.features.gateway.local import LocalPackageConfig

logger = logging.getLogger(__name__)

__all__ = ["GatewaySchemaBuilder"]


class GatewaySchemaBuilder:
    """Collects every enabled tier and composes them into one schema.

    Example:
        builder = GatewaySchemaBuilder(get_gateway_settings())
        composed = await builder.build()
        print(composed.sdl)
    """

    def __init__(
        self,
        settings: GatewaySettings,
        *,
        function_runtime: FunctionRuntimeProtocol | None = None,
        monolith_builder: MonolithProxyBuilder | None = None,
        local_packages: Sequence[LocalPackageConfig] | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            settings: Gateway composition settings.
            function_runtime: Runtime used to discover and invoke functions.
                Defaults to an HTTP client built from settings when the
                remote function tier is enabled.
            monolith_builder: Proxy builder for the legacy API.
            local_packages: Local packages to use instead of discovering them
                from ``settings.local_packages_module``.
        """
        self.settings = settings
        self._local_packages = local_packages
        self._monolith_builder = monolith_builder or MonolithProxyBuilder(
            timeout=settings.request_timeout,
            include_descriptions=settings.monolith_introspection_descriptions,
        )
        if function_runtime is None and settings.functions_enabled:
            function_runtime = FunctionRuntimeClient(
                settings.io_api_host,
                settings.io_namespace or "",
                auth=settings.get_io_auth(),
                timeout=settings.request_timeout,
                annotation_key=settings.io_schema_annotation,
            )
        self._function_runtime = function_runtime

    @property
    def function_runtime(self) -> FunctionRuntimeProtocol | None:
        """Runtime that ``@function`` fields are dispatched to at request time."""
        return self._function_runtime

    def collect_local(self) -> SchemaFragment:
        """Discover and merge local packages into the LOCAL fragment."""
        configs = self._local_packages
        if configs is None:
            configs = get_all_packages(self.settings.local_packages_module)
        merged = merge_package_configs(configs)
        logger.info(
            "Found %d local package(s)", len(merged.names), extra={"packages": list(merged.names)}
        )
        return merged.to_fragment()

    async def collect_remote(self) -> SchemaFragment:
        """Collect the REMOTE_FUNCTION fragment from the configured namespace."""
        if self._function_runtime is None:
            raise CompositionError(
                "Remote functions are enabled but no function runtime is configured",
                type="remote-functions-unavailable",
            )
        collector = RemoteFunctionCollector(self._function_runtime)
        return await collector.collect_fragment(self.settings.io_namespace or "")

    async def collect_monolith(self) -> SchemaFragment:
        """Introspect the legacy API into the MONOLITH fragment."""
        url = self.settings.legacy_graphql_url or ""
        logger.info("Introspecting legacy GraphQL API at %s", url)
        return await self._monolith_builder.build(url)

    async def collect_remote_tiers(self) -> list[SchemaFragment]:
        """Collect the enabled remote tiers concurrently, in precedence order.

        A failing tier cancels the other one.

        Raises:
            CompositionError: The first failure; any further failures are
                logged before it is raised.
        """
        pending: list[Coroutine[Any, Any, SchemaFragment]] = []
        if self.settings.functions_enabled:
            pending.append(self.collect_remote())
        if self.settings.monolith_enabled:
            pending.append(self.collect_monolith())

        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(coroutine) for coroutine in pending]
        except ExceptionGroup as eg:
            failures, unexpected = eg.split(CompositionError)
            if unexpected is not None or failures is None:
                raise
            first, *others = failures.exceptions
            for other in others:
                logger.error(
                    "Schema composition failed: %s",
                    other.detail,
                    extra={"error_type": other.type},
                )
            raise first from None
        return [task.result() for task in tasks]

    async def build(self) -> ComposedSchema:
        """Collect every enabled tier and compose the schema.

        Remote tiers are fetched concurrently; the merge order does not
        depend on which one answers first.

        Raises:
            CompositionError: Any error from the taxonomy, after logging it.
        """
        try:
            fragments = [self.collect_local(), *await self.collect_remote_tiers()]
            composed = compose(fragments)
        except CompositionError as e:
            logger.error(
                "Schema composition failed: %s", e.detail, extra={"error_type": e.type}
            )
            raise

        for tier, count in composed.field_counts().items():
            schema_composed_fields.labels(tier=tier).set(count)
        return composed

