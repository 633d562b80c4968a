"""HTTP executor for the legacy GraphQL API.

This module provides the one outbound call the monolith tier makes:
- Uses httpx for async HTTP operations
- Includes OpenTelemetry tracing for every request
- Records Prometheus metrics for monitoring
- Raises on transport and HTTP errors; GraphQL errors are returned in the body
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import httpx
from opentelemetry import trace

from gateway_service.infra.metrics import delegated_call_duration_seconds, delegated_calls_total

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ORIGIN = "monolith"


class MonolithExecutor:
    """Posts GraphQL requests to the legacy endpoint.

    A fresh ``httpx.AsyncClient`` is opened per call, so the executor holds
    no connection state and is safe to share between the introspection step
    and every request-time delegation.

    Example:
        executor = MonolithExecutor("https://shop.example.com/graphql")
        body = await executor.execute("{ storeConfig { code } }")
    """

    def __init__(
        self,
        endpoint_url: str,
        *,
        timeout: float = 30.0,
        headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            endpoint_url: GraphQL endpoint of the legacy application.
            timeout: Transport timeout in seconds.
            headers: Extra headers sent with every request.
            transport: Optional httpx transport, used by tests.
        """
        self.endpoint_url = endpoint_url
        self._timeout = httpx.Timeout(timeout)
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._transport = transport

    def __repr__(self) -> str:
        return f"MonolithExecutor(endpoint_url={self.endpoint_url!r})"

    async def execute(
        self,
        query: str,
        variables: Mapping[str, Any] | None = None,
        operation_name: str | None = None,
    ) -> dict[str, Any]:
        """Send one GraphQL request and return the decoded response body.

        Args:
            query: GraphQL document to send.
            variables: Variable values referenced by the document.
            operation_name: Operation to run when the document has several.

        Returns:
            The JSON body, with ``data`` and/or ``errors`` keys.

        Raises:
            httpx.HTTPError: On transport failures and non-2xx responses.
            ValueError: If the response body is not a JSON object.
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = dict(variables)
        if operation_name:
            payload["operationName"] = operation_name

        start_time = time.perf_counter()
        with tracer.start_as_current_span("monolith.execute") as span:
            span.set_attribute("http.url", self.endpoint_url)
            if operation_name:
                span.set_attribute("graphql.operation.name", operation_name)

            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout,
                    headers=self._headers,
                    transport=self._transport,
                ) as client:
                    response = await client.post(self.endpoint_url, json=payload)
                    span.set_attribute("http.status_code", response.status_code)
                    response.raise_for_status()
                    body = response.json()

                if not isinstance(body, dict):
                    raise ValueError(
                        f"Expected a JSON object from {self.endpoint_url}, "
                        f"got {type(body).__name__}"
                    )
            except (httpx.HTTPError, ValueError) as e:
                span.record_exception(e)
                delegated_calls_total.labels(origin=ORIGIN, status="error").inc()
                logger.warning(
                    "Legacy GraphQL request failed",
                    extra={"endpoint_url": self.endpoint_url, "error": str(e)},
                )
                raise
            finally:
                delegated_call_duration_seconds.labels(origin=ORIGIN).observe(
                    time.perf_counter() - start_time
                )

            delegated_calls_total.labels(origin=ORIGIN, status="success").inc()
            if body.get("errors"):
                span.set_attribute("graphql.errors", len(body["errors"]))
            return body
