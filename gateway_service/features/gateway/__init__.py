"""GraphQL schema composition gateway.

Composes the local, remote function and legacy API tiers into one
executable schema.
"""

from gateway_service.features.gateway.builder import GatewaySchemaBuilder
from gateway_service.features.gateway.composer import ComposedSchema, compose
from gateway_service.features.gateway.context import GatewayContext
from gateway_service.features.gateway.fragments import (
    ExternalFunctionCall,
    LocalFunction,
    PrecedenceTier,
    RemoteDelegate,
    ResolverStrategy,
    SchemaFragment,
)

__all__ = [
    "ComposedSchema",
    "ExternalFunctionCall",
    "GatewayContext",
    "GatewaySchemaBuilder",
    "LocalFunction",
    "PrecedenceTier",
    "RemoteDelegate",
    "ResolverStrategy",
    "SchemaFragment",
    "compose",
]
