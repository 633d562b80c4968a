"""Tests for the GraphQL HTTP endpoint and observability routes."""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi import FastAPI

from gateway_service.app.main import create_app
from gateway_service.core.settings import GatewaySettings
from gateway_service.features.gateway.builder import GatewaySchemaBuilder
from gateway_service.features.gateway.functions.mock_runtime import MockFunctionRuntime


@pytest.fixture
async def app(function_runtime: MockFunctionRuntime) -> FastAPI:
    """Application with a composed schema, without running the lifespan."""
    app = create_app()
    builder = GatewaySchemaBuilder(
        GatewaySettings(enable_io_functions=True, io_namespace="test-ns"),
        function_runtime=function_runtime,
    )
    app.state.gateway = await builder.build()
    app.state.function_runtime = builder.function_runtime
    return app


@pytest.fixture
async def client(app: FastAPI):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://gateway.test") as client:
        yield client


@pytest.mark.unit
@pytest.mark.asyncio
class TestGraphQLEndpoint:
    """GraphQL over HTTP."""

    async def test_post_query(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/graphql",
            json={
                "query": "query Greeting($name: String) { hello greet(name: $name) }",
                "variables": {"name": "Ada"},
                "operationName": "Greeting",
            },
        )

        assert response.status_code == 200
        assert response.json() == {"data": {"hello": "world", "greet": "Hello, Ada!"}}

    async def test_get_query(self, client: httpx.AsyncClient) -> None:
        response = await client.get(
            "/graphql",
            params={"query": "{ storeInfo { code } }", "variables": json.dumps({})},
        )

        assert response.status_code == 200
        assert response.json() == {"data": {"storeInfo": {"code": "default"}}}

    async def test_graphql_errors_are_returned_with_200(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/graphql", json={"query": "{ missingField }"})

        assert response.status_code == 200
        body = response.json()
        assert body["data"] is None
        assert "missingField" in body["errors"][0]["message"]

    async def test_invalid_body(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/graphql", json={"variables": {}})

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["type"] == "invalid-graphql-request"

    async def test_get_rejects_mutations(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/graphql", params={"query": "mutation { hello }"})

        assert response.status_code == 405
        assert response.json()["type"] == "method-not-allowed"

    async def test_get_rejects_malformed_variables(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/graphql", params={"query": "{ hello }", "variables": "{"})

        assert response.status_code == 400
        assert "not valid JSON" in response.json()["detail"]

    async def test_schema_not_ready(self, app: FastAPI, client: httpx.AsyncClient) -> None:
        app.state.gateway = None

        response = await client.post("/graphql", json={"query": "{ hello }"})

        assert response.status_code == 503
        assert response.json()["type"] == "schema-not-ready"


@pytest.mark.unit
@pytest.mark.asyncio
class TestObservabilityRoutes:
    """Health and metrics."""

    async def test_health_reports_tiers(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["tiers"] == ["LOCAL", "REMOTE_FUNCTION"]
        assert body["fields"]["REMOTE_FUNCTION"] >= 1

    async def test_health_while_starting(self, app: FastAPI, client: httpx.AsyncClient) -> None:
        app.state.gateway = None

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json() == {"status": "starting"}

    async def test_metrics(self, client: httpx.AsyncClient) -> None:
        await client.post("/graphql", json={"query": "{ greet }"})

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "gateway_schema_composed_fields" in response.text
