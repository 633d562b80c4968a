"""Monolith tier: a proxy schema built from the legacy API's introspection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from graphql import (
    GraphQLError,
    GraphQLInputObjectType,
    GraphQLObjectType,
    OperationType,
    build_client_schema,
    get_introspection_query,
    print_schema,
)

from gateway_service.core.exceptions import (
    MonolithCompatibilityError,
    MonolithUnreachableError,
)
from gateway_service.features.gateway.fragments import (
    FieldKey,
    PrecedenceTier,
    RemoteDelegate,
    SchemaFragment,
)
from gateway_service.features.gateway.monolith.executor import MonolithExecutor

if TYPE_CHECKING:
    from graphql import GraphQLSchema

logger = logging.getLogger(__name__)

__all__ = [
    "MINIMUM_LEGACY_VERSION",
    "REQUIRED_FILTER_FIELD",
    "REQUIRED_FILTER_INPUT_TYPE",
    "MonolithProxyBuilder",
    "check_compatibility",
]

# Marker type the legacy API only exposes from the minimum supported release on
REQUIRED_FILTER_INPUT_TYPE = "ProductAttributeFilterInput"
REQUIRED_FILTER_FIELD = "sku"
MINIMUM_LEGACY_VERSION = "2.3.4"


def check_compatibility(schema: GraphQLSchema) -> None:
    """Verify the introspected legacy schema is a supported release.

    Raises:
        MonolithCompatibilityError: If the filter input type or its ``sku``
            field is missing.
    """
    filter_input = schema.get_type(REQUIRED_FILTER_INPUT_TYPE)
    if not isinstance(filter_input, GraphQLInputObjectType):
        raise MonolithCompatibilityError(
            f'Could not find required type "{REQUIRED_FILTER_INPUT_TYPE}" in the legacy '
            f"GraphQL schema. Version {MINIMUM_LEGACY_VERSION} or later is required",
            missing_type=REQUIRED_FILTER_INPUT_TYPE,
            minimum_version=MINIMUM_LEGACY_VERSION,
        )
    if REQUIRED_FILTER_FIELD not in filter_input.fields:
        raise MonolithCompatibilityError(
            f'Type "{REQUIRED_FILTER_INPUT_TYPE}" has no "{REQUIRED_FILTER_FIELD}" field. '
            f"Version {MINIMUM_LEGACY_VERSION} or later of the legacy application is required",
            missing_type=REQUIRED_FILTER_INPUT_TYPE,
            missing_field=REQUIRED_FILTER_FIELD,
            minimum_version=MINIMUM_LEGACY_VERSION,
        )


def _root_operations(schema: GraphQLSchema) -> dict[str, OperationType]:
    roots = {}
    if schema.query_type is not None:
        roots[schema.query_type.name] = OperationType.QUERY
    if schema.mutation_type is not None:
        roots[schema.mutation_type.name] = OperationType.MUTATION
    return roots


def delegate_resolvers(
    schema: GraphQLSchema, executor: MonolithExecutor
) -> dict[FieldKey, RemoteDelegate]:
    """One pass-through delegate for every field of every legacy object type.

    Subscription fields are left out: the legacy API is only reached over
    plain HTTP requests.
    """
    roots = _root_operations(schema)
    subscription = schema.subscription_type.name if schema.subscription_type else None

    resolvers: dict[FieldKey, RemoteDelegate] = {}
    for type_name, graphql_type in schema.type_map.items():
        if type_name.startswith("__") or type_name == subscription:
            continue
        if not isinstance(graphql_type, GraphQLObjectType):
            continue
        delegate = RemoteDelegate(
            executor=executor,
            remote_schema=schema,
            root_operation=roots.get(type_name),
        )
        for field_name in graphql_type.fields:
            resolvers[(type_name, field_name)] = delegate
    return resolvers


class MonolithProxyBuilder:
    """Builds the MONOLITH tier fragment from a live legacy endpoint.

    Example:
        builder = MonolithProxyBuilder(timeout=10.0)
        fragment = await builder.build("https://shop.example.com/graphql")
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        include_descriptions: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._include_descriptions = include_descriptions
        self._transport = transport

    async def introspect(self, executor: MonolithExecutor) -> GraphQLSchema:
        """Fetch and rebuild the legacy schema.

        Raises:
            MonolithUnreachableError: On any transport, HTTP, or decoding
                failure, or if the introspection result is unusable.
        """
        query = get_introspection_query(descriptions=self._include_descriptions)
        try:
            body = await executor.execute(query, operation_name="IntrospectionQuery")
            if body.get("errors"):
                messages = "; ".join(
                    str(error.get("message", error)) if isinstance(error, dict) else str(error)
                    for error in body["errors"]
                )
                raise ValueError(f"introspection returned errors: {messages}")
            data = body.get("data")
            if not isinstance(data, dict):
                raise ValueError("introspection response has no data")
            return build_client_schema(data)
        except (httpx.HTTPError, ValueError, TypeError, KeyError, GraphQLError) as e:
            raise MonolithUnreachableError(executor.endpoint_url, e) from e

    async def build(self, endpoint_url: str) -> SchemaFragment:
        """Introspect the legacy API and wrap it as a proxy fragment.

        The compatibility check runs before any fragment is produced.

        Args:
            endpoint_url: GraphQL endpoint of the legacy application.

        Returns:
            The MONOLITH tier fragment.

        Raises:
            MonolithUnreachableError: If introspection fails.
            MonolithCompatibilityError: If the legacy release is too old.
        """
        executor = MonolithExecutor(
            endpoint_url, timeout=self._timeout, transport=self._transport
        )
        schema = await self.introspect(executor)
        check_compatibility(schema)

        resolvers = delegate_resolvers(schema, executor)
        logger.info(
            "Built legacy GraphQL proxy schema",
            extra={
                "endpoint_url": endpoint_url,
                "types": len(schema.type_map),
                "fields": len(resolvers),
            },
        )
        return SchemaFragment(
            tier=PrecedenceTier.MONOLITH,
            type_definitions=(print_schema(schema),),
            field_resolvers=resolvers,
            source=endpoint_url,
        )
