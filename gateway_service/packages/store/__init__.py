"""Store information package backed by a data source."""

from __future__ import annotations

from typing import Any

from graphql import GraphQLResolveInfo

from gateway_service.features.gateway.local import LocalPackageConfig
from gateway_service.packages.store.data_source import StoreInfoDataSource

DATA_SOURCE_NAME = "store"

TYPE_DEFS = '''
type StoreInfo {
  code: String!
  name: String!
  currency: String!
  locales: [String!]!
}

extend type Query {
  storeInfo: StoreInfo
}
'''


def resolve_store_info(parent: Any, info: GraphQLResolveInfo) -> dict[str, Any]:
    store: StoreInfoDataSource = info.context.data_sources[DATA_SOURCE_NAME]
    return store.get_store_info()


PACKAGE = LocalPackageConfig(
    name="store",
    type_defs=TYPE_DEFS,
    resolvers={"Query": {"storeInfo": resolve_store_info}},
    data_sources={DATA_SOURCE_NAME: StoreInfoDataSource()},
)
