"""Remote function tier."""

from gateway_service.features.gateway.functions.collector import (
    REMOTE_BASE_TYPE_DEFS,
    RemoteFunctionCollector,
    RemoteFunctionPackageDescriptor,
)
from gateway_service.features.gateway.functions.mock_runtime import MockFunctionRuntime
from gateway_service.features.gateway.functions.runtime import (
    FunctionRuntimeClient,
    FunctionRuntimeProtocol,
)

__all__ = [
    "REMOTE_BASE_TYPE_DEFS",
    "FunctionRuntimeClient",
    "FunctionRuntimeProtocol",
    "MockFunctionRuntime",
    "RemoteFunctionCollector",
    "RemoteFunctionPackageDescriptor",
]
