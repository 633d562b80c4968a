"""Function runtime client with observability.

This module provides the protocol the gateway needs from a function runtime
and a real implementation against an OpenWhisk-style REST API that:
- Uses httpx for async HTTP operations
- Includes OpenTelemetry tracing for every invocation
- Records Prometheus metrics for monitoring
- Raises on transport and HTTP errors
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx
from opentelemetry import trace

from gateway_service.features.gateway.directives import NAMESPACE_SEPARATOR
from gateway_service.infra.metrics import delegated_call_duration_seconds, delegated_calls_total

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ORIGIN = "function"


@runtime_checkable
class FunctionRuntimeProtocol(Protocol):
    """Protocol for function runtime operations.

    It enables:
    - Unit testing with MockFunctionRuntime
    - Dependency injection in the schema builder and request context
    """

    async def list_packages(self, namespace: str) -> list[str]:
        """List the names of every package published under a namespace."""
        ...

    async def get_package_schema(self, namespace: str, package: str) -> str | None:
        """Return the GraphQL SDL a package publishes.

        Returns:
            The SDL, or None when the package is not a GraphQL package.
        """
        ...

    async def invoke(self, qualified_name: str, params: Mapping[str, Any]) -> Any:
        """Invoke a function by its package-qualified name and return its result."""
        ...


class FunctionRuntimeClient:
    """HTTP client for the function runtime REST API.

    Example:
        client = FunctionRuntimeClient(
            api_host="https://adobeioruntime.net",
            namespace="my-namespace",
            auth=("user", "password"),
        )
        packages = await client.list_packages("my-namespace")
        result = await client.invoke("catalog/getPrice", {"sku": "24-MB01"})
    """

    def __init__(
        self,
        api_host: str,
        namespace: str,
        *,
        auth: tuple[str, str] | None = None,
        timeout: float = 30.0,
        annotation_key: str = "graphql-schema",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the runtime client.

        Args:
            api_host: Base URL of the runtime API.
            namespace: Namespace functions are invoked in.
            auth: Basic auth pair built from the runtime API key.
            timeout: Transport timeout in seconds.
            annotation_key: Package annotation carrying the GraphQL SDL.
            transport: Optional httpx transport, used by tests.
        """
        self.api_host = api_host.rstrip("/")
        self.namespace = namespace
        self.annotation_key = annotation_key
        self._auth = auth
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport

        logger.debug(
            "FunctionRuntimeClient initialized",
            extra={"api_host": self.api_host, "namespace": namespace},
        )

    def _namespace_url(self, namespace: str) -> str:
        return f"{self.api_host}/api/v1/namespaces/{quote(namespace, safe='')}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=self._auth,
            timeout=self._timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    async def list_packages(self, namespace: str) -> list[str]:
        """List package names published under the namespace.

        Raises:
            httpx.HTTPError: On transport failures and non-2xx responses.
        """
        async with self._client() as client:
            response = await client.get(f"{self._namespace_url(namespace)}/packages")
            response.raise_for_status()
            packages = response.json()
        return sorted(package["name"] for package in packages)

    async def get_package_schema(self, namespace: str, package: str) -> str | None:
        """Read the SDL annotation of one package.

        Raises:
            httpx.HTTPError: On transport failures and non-2xx responses.
        """
        async with self._client() as client:
            response = await client.get(
                f"{self._namespace_url(namespace)}/packages/{quote(package, safe='')}"
            )
            response.raise_for_status()
            details = response.json()

        for annotation in details.get("annotations") or ():
            if annotation.get("key") == self.annotation_key:
                value = annotation.get("value")
                return value if isinstance(value, str) and value.strip() else None
        return None

    async def invoke(self, qualified_name: str, params: Mapping[str, Any]) -> Any:
        """Invoke a function and wait for its result.

        Args:
            qualified_name: ``package/function`` path of the action.
            params: Action parameters.

        Returns:
            The action's JSON result.

        Raises:
            httpx.HTTPError: On transport failures and non-2xx responses.
        """
        action_path = "/".join(
            quote(part, safe="") for part in qualified_name.split(NAMESPACE_SEPARATOR)
        )
        url = f"{self._namespace_url(self.namespace)}/actions/{action_path}"

        start_time = time.perf_counter()
        with tracer.start_as_current_span("functions.invoke") as span:
            span.set_attribute("function.name", qualified_name)
            span.set_attribute("function.namespace", self.namespace)

            try:
                async with self._client() as client:
                    response = await client.post(
                        url,
                        params={"blocking": "true", "result": "true"},
                        json=dict(params),
                    )
                    span.set_attribute("http.status_code", response.status_code)
                    response.raise_for_status()
                    result = response.json()
            except (httpx.HTTPError, ValueError) as e:
                span.record_exception(e)
                delegated_calls_total.labels(origin=ORIGIN, status="error").inc()
                logger.warning(
                    "Function invocation failed",
                    extra={"function": qualified_name, "error": str(e)},
                )
                raise
            finally:
                delegated_call_duration_seconds.labels(origin=ORIGIN).observe(
                    time.perf_counter() - start_time
                )

            delegated_calls_total.labels(origin=ORIGIN, status="success").inc()
            logger.debug("Function invoked", extra={"function": qualified_name})
            return result


__all__ = ["FunctionRuntimeClient", "FunctionRuntimeProtocol"]
