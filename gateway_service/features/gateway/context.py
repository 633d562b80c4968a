"""GraphQL context for request-scoped dependencies.

The context is created fresh for each GraphQL request and provides:
- The incoming HTTP request
- Data sources declared by local packages
- The function runtime used by ``@function`` fields
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starlette.requests import Request

    from gateway_service.features.gateway.functions.runtime import FunctionRuntimeProtocol


@dataclass
class GatewayContext:
    """Request context passed to every resolver as ``info.context``.

    Example usage in a local resolver:
        def resolve_store_info(parent, info):
            store = info.context.data_sources["store"]
            return store.get_store_info()
    """

    request: Request | None = None
    data_sources: dict[str, Any] = field(default_factory=dict)
    function_runtime: FunctionRuntimeProtocol | None = None
    correlation_id: str | None = None


__all__ = ["GatewayContext"]
