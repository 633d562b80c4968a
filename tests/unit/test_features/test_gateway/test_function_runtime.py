"""Tests for the function runtime HTTP client."""

from __future__ import annotations

import json

import httpx
import pytest

from gateway_service.features.gateway.functions.mock_runtime import MockFunctionRuntime
from gateway_service.features.gateway.functions.runtime import (
    FunctionRuntimeClient,
    FunctionRuntimeProtocol,
)

API_HOST = "https://runtime.test"
PACKAGE_SDL = 'extend type Query { greet: String @function(name: "greet") }'


class RuntimeAPI:
    """Records requests and answers like the runtime REST API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/v1/namespaces/test-ns/packages":
            return httpx.Response(200, json=[{"name": "pkgB"}, {"name": "pkgA"}])
        if path == "/api/v1/namespaces/test-ns/packages/pkgB":
            annotations = [{"key": "graphql-schema", "value": PACKAGE_SDL}]
            return httpx.Response(200, json={"name": "pkgB", "annotations": annotations})
        if path == "/api/v1/namespaces/test-ns/packages/pkgA":
            return httpx.Response(200, json={"name": "pkgA", "annotations": []})
        if path == "/api/v1/namespaces/test-ns/actions/pkgB/greet":
            params = json.loads(request.content)
            return httpx.Response(200, json={"greeting": f"Hello, {params['name']}!"})
        return httpx.Response(404, json={"error": "not found"})

    def client(self) -> FunctionRuntimeClient:
        return FunctionRuntimeClient(
            API_HOST,
            "test-ns",
            auth=("user", "secret"),
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def runtime_api() -> RuntimeAPI:
    return RuntimeAPI()


@pytest.mark.unit
@pytest.mark.asyncio
class TestFunctionRuntimeClient:
    """REST calls made by the runtime client."""

    async def test_list_packages_sorted(self, runtime_api: RuntimeAPI) -> None:
        assert await runtime_api.client().list_packages("test-ns") == ["pkgA", "pkgB"]

    async def test_package_schema_from_annotation(self, runtime_api: RuntimeAPI) -> None:
        client = runtime_api.client()

        assert await client.get_package_schema("test-ns", "pkgB") == PACKAGE_SDL
        assert await client.get_package_schema("test-ns", "pkgA") is None

    async def test_invoke_blocks_for_result(self, runtime_api: RuntimeAPI) -> None:
        result = await runtime_api.client().invoke("pkgB/greet", {"name": "Ada"})

        assert result == {"greeting": "Hello, Ada!"}
        request = runtime_api.requests[-1]
        assert request.method == "POST"
        assert request.url.params["blocking"] == "true"
        assert request.url.params["result"] == "true"
        assert request.headers["authorization"].startswith("Basic ")

    async def test_invoke_http_error_propagates(self, runtime_api: RuntimeAPI) -> None:
        with pytest.raises(httpx.HTTPStatusError):
            await runtime_api.client().invoke("pkgB/missing", {})

    def test_implements_protocol(self, runtime_api: RuntimeAPI) -> None:
        assert isinstance(runtime_api.client(), FunctionRuntimeProtocol)
        assert isinstance(MockFunctionRuntime(), FunctionRuntimeProtocol)
