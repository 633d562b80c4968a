"""Legacy GraphQL API tier."""

from gateway_service.features.gateway.monolith.executor import MonolithExecutor
from gateway_service.features.gateway.monolith.proxy import (
    MINIMUM_LEGACY_VERSION,
    REQUIRED_FILTER_FIELD,
    REQUIRED_FILTER_INPUT_TYPE,
    MonolithProxyBuilder,
    check_compatibility,
)

__all__ = [
    "MINIMUM_LEGACY_VERSION",
    "REQUIRED_FILTER_FIELD",
    "REQUIRED_FILTER_INPUT_TYPE",
    "MonolithExecutor",
    "MonolithProxyBuilder",
    "check_compatibility",
]
