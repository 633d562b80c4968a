"""Binding resolver strategies onto an executable schema.

Each strategy variant maps to one graphql-core resolver shape:

- ``LocalFunction``: the package's own ``(parent, info, **args)`` callable.
- ``RemoteDelegate`` on a root field: forward the selection to the legacy API.
- ``RemoteDelegate`` on a nested field: read the value the root call returned.
- ``ExternalFunctionCall``: invoke the qualified function on the runtime.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from graphql import GraphQLError, GraphQLObjectType, default_field_resolver

from gateway_service.features.gateway.fragments import (
    ExternalFunctionCall,
    LocalFunction,
    RemoteDelegate,
    ResolverStrategy,
)
from gateway_service.features.gateway.monolith.delegation import delegate_to_monolith

if TYPE_CHECKING:
    from graphql import GraphQLFieldResolver, GraphQLResolveInfo, GraphQLSchema

    from gateway_service.features.gateway.fragments import FieldKey

logger = logging.getLogger(__name__)

__all__ = ["PARENT_PARAMETER", "bind_resolvers", "resolver_for"]

# Action parameter carrying the parent object of an @function field
PARENT_PARAMETER = "__parent"


def _proxied_value_resolver(source: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
    if isinstance(source, Mapping):
        response_key = info.path.key
        if response_key in source:
            return source[response_key]
    return default_field_resolver(source, info, **args)


def _root_delegate_resolver(strategy: RemoteDelegate) -> GraphQLFieldResolver:
    async def resolve(source: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        return await delegate_to_monolith(strategy, info)

    return resolve


def _function_call_resolver(strategy: ExternalFunctionCall) -> GraphQLFieldResolver:
    async def resolve(source: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        runtime = getattr(info.context, "function_runtime", None)
        if runtime is None:
            raise GraphQLError(
                f"Function '{strategy.qualified_name}' cannot be called: "
                "no function runtime is configured"
            )
        params = dict(args)
        if isinstance(source, Mapping):
            params[PARENT_PARAMETER] = dict(source)
        return await runtime.invoke(strategy.qualified_name, params)

    return resolve


def resolver_for(strategy: ResolverStrategy) -> GraphQLFieldResolver:
    """Turn a resolver strategy into a graphql-core field resolver."""
    match strategy:
        case LocalFunction(handler=handler):
            return handler
        case RemoteDelegate() if strategy.is_root:
            return _root_delegate_resolver(strategy)
        case RemoteDelegate():
            return _proxied_value_resolver
        case ExternalFunctionCall():
            return _function_call_resolver(strategy)
    raise TypeError(f"Unsupported resolver strategy: {strategy!r}")


def bind_resolvers(schema: GraphQLSchema, resolvers: Mapping[FieldKey, ResolverStrategy]) -> None:
    """Attach a resolver to every object field that has a strategy.

    Strategies for fields that did not survive composition, or that live on
    interfaces and input types, are ignored. Fields without a strategy keep
    graphql-core's default property resolver.
    """
    bound = 0
    for (type_name, field_name), strategy in resolvers.items():
        graphql_type = schema.get_type(type_name)
        if not isinstance(graphql_type, GraphQLObjectType):
            continue
        graphql_field = graphql_type.fields.get(field_name)
        if graphql_field is None:
            continue
        graphql_field.resolve = resolver_for(strategy)
        bound += 1
    logger.debug("Bound field resolvers", extra={"bound": bound, "strategies": len(resolvers)})
