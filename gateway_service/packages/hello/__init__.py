"""Greeting example package."""

from __future__ import annotations

from typing import Any

from graphql import GraphQLResolveInfo

from gateway_service.features.gateway.local import LocalPackageConfig

TYPE_DEFS = '''
type Query {
  """Static greeting served by the gateway itself."""
  hello: String
}
'''


def resolve_hello(parent: Any, info: GraphQLResolveInfo) -> str:
    return "world"


PACKAGE = LocalPackageConfig(
    name="hello",
    type_defs=TYPE_DEFS,
    resolvers={"Query": {"hello": resolve_hello}},
)
