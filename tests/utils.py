"""Test utilities and helper functions.

Usage:
    from tests.utils import LEGACY_URL, LegacyGraphQLServer

    server = LegacyGraphQLServer()
    builder = MonolithProxyBuilder(transport=server.transport)
    fragment = await builder.build(LEGACY_URL)
"""

from __future__ import annotations

import json
from typing import Any

import httpx
from graphql import build_schema, graphql_sync, introspection_from_schema

LEGACY_URL = "http://legacy.test/graphql"

LEGACY_SDL = """
input FilterEqualTypeInput {
  eq: String
}

input ProductAttributeFilterInput {
  sku: FilterEqualTypeInput
  name: FilterEqualTypeInput
}

interface ProductInterface {
  sku: String
  name: String
}

type SimpleProduct implements ProductInterface {
  sku: String
  name: String
  weight: Float
}

type Products {
  items: [ProductInterface]
  total_count: Int
}

type StoreConfig {
  code: String
  base_currency_code: String
}

type Query {
  products(filter: ProductAttributeFilterInput): Products
  storeConfig: StoreConfig
}

type Mutation {
  createEmptyCart: String
}
"""

# Legacy release that predates the product filter input
OUTDATED_LEGACY_SDL = """
type Query {
  storeConfig: String
}
"""

CATALOG = [
    {"__typename": "SimpleProduct", "sku": "24-MB01", "name": "Joust Duffle Bag", "weight": 1.0},
    {
        "__typename": "SimpleProduct",
        "sku": "24-MB04",
        "name": "Strive Shoulder Pack",
        "weight": 2.5,
    },
]


def _products(_info: Any, filter: dict[str, Any] | None = None) -> dict[str, Any]:
    items = CATALOG
    wanted = ((filter or {}).get("sku") or {}).get("eq")
    if wanted:
        items = [item for item in CATALOG if item["sku"] == wanted]
    return {"items": items, "total_count": len(items)}


LEGACY_ROOT = {
    "products": _products,
    "storeConfig": {"code": "default", "base_currency_code": "EUR"},
    "createEmptyCart": "cart-123",
}


class LegacyGraphQLServer:
    """In-memory stand-in for the legacy GraphQL endpoint.

    Executes every request against its SDL and records the bodies it received
    so tests can assert on what the gateway forwarded.
    """

    def __init__(self, sdl: str = LEGACY_SDL) -> None:
        self.schema = build_schema(sdl)
        self.requests: list[dict[str, Any]] = []
        self.status_code = 200
        self.override_body: dict[str, Any] | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="unavailable")
        if body.get("operationName") == "IntrospectionQuery":
            return httpx.Response(200, json={"data": introspection_from_schema(self.schema)})
        if self.override_body is not None:
            return httpx.Response(200, json=self.override_body)
        result = graphql_sync(
            self.schema,
            body["query"],
            root_value=LEGACY_ROOT,
            variable_values=body.get("variables"),
            operation_name=body.get("operationName"),
        )
        return httpx.Response(200, json=result.formatted)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def forwarded(self) -> list[dict[str, Any]]:
        """Request bodies other than the startup introspection."""
        return [r for r in self.requests if r.get("operationName") != "IntrospectionQuery"]
