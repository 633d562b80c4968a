"""HTTP routes: the GraphQL endpoint, health and metrics."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse
from graphql import GraphQLSyntaxError, OperationType, get_operation_ast, graphql, parse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, ConfigDict, Field

from gateway_service.core.exceptions import (
    AppException,
    BadRequestException,
    SchemaNotReadyException,
)
from gateway_service.features.gateway.composer import ComposedSchema
from gateway_service.features.gateway.context import GatewayContext
from gateway_service.infra.metrics import REGISTRY

if TYPE_CHECKING:
    from fastapi import FastAPI

    from gateway_service.core.settings import AppSettings

logger = logging.getLogger(__name__)


class GraphQLRequest(BaseModel):
    """GraphQL-over-HTTP request body."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(min_length=1)
    variables: dict[str, Any] | None = None
    operation_name: str | None = Field(default=None, alias="operationName")


def get_composed_schema(request: Request) -> ComposedSchema:
    """Dependency returning the schema composed at startup."""
    composed = getattr(request.app.state, "gateway", None)
    if composed is None:
        raise SchemaNotReadyException(instance=request.url.path)
    return composed


ComposedSchemaDep = Annotated[ComposedSchema, Depends(get_composed_schema)]


async def execute_request(
    request: Request, composed: ComposedSchema, body: GraphQLRequest
) -> JSONResponse:
    """Run one GraphQL request against the composed schema."""
    context = GatewayContext(
        request=request,
        data_sources=dict(composed.data_sources),
        function_runtime=getattr(request.app.state, "function_runtime", None),
        correlation_id=request.headers.get("x-request-id"),
    )
    result = await graphql(
        composed.schema,
        source=body.query,
        variable_values=body.variables,
        operation_name=body.operation_name,
        context_value=context,
    )
    if result.errors:
        logger.debug(
            "GraphQL request completed with errors",
            extra={"operation": body.operation_name, "errors": len(result.errors)},
        )
    return JSONResponse(content=result.formatted)


def _is_query_operation(query: str, operation_name: str | None) -> bool:
    try:
        document = parse(query)
    except GraphQLSyntaxError:
        # Reported through the regular GraphQL error response
        return True
    operation = get_operation_ast(document, operation_name)
    return operation is None or operation.operation is OperationType.QUERY


def create_graphql_router(graphql_path: str) -> APIRouter:
    """GraphQL endpoint served at ``graphql_path`` over POST and GET."""
    router = APIRouter(tags=["graphql"])

    @router.post(graphql_path)
    async def graphql_post(
        request: Request, body: GraphQLRequest, composed: ComposedSchemaDep
    ) -> JSONResponse:
        return await execute_request(request, composed, body)

    @router.get(graphql_path)
    async def graphql_get(
        request: Request,
        composed: ComposedSchemaDep,
        query: Annotated[str, Query(min_length=1)],
        variables: Annotated[str | None, Query()] = None,
        operation_name: Annotated[str | None, Query(alias="operationName")] = None,
    ) -> JSONResponse:
        if not _is_query_operation(query, operation_name):
            raise AppException(
                status_code=405,
                detail="Only query operations can be sent with GET; use POST for mutations",
                type="method-not-allowed",
                title="Method Not Allowed",
                instance=request.url.path,
            )
        try:
            parsed_variables = json.loads(variables) if variables else None
        except json.JSONDecodeError as e:
            raise BadRequestException(detail=f"'variables' is not valid JSON: {e}") from e
        if parsed_variables is not None and not isinstance(parsed_variables, dict):
            raise BadRequestException(detail="'variables' must be a JSON object")

        body = GraphQLRequest(
            query=query, variables=parsed_variables, operation_name=operation_name
        )
        return await execute_request(request, composed, body)

    return router


observability_router = APIRouter(tags=["observability"])


@observability_router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Readiness: the schema has been composed and is being served."""
    composed = getattr(request.app.state, "gateway", None)
    if composed is None:
        return JSONResponse(status_code=503, content={"status": "starting"})
    return JSONResponse(
        content={
            "status": "ok",
            "tiers": [tier.name for tier in composed.tiers],
            "fields": composed.field_counts(),
        }
    )


@observability_router.get("/metrics")
async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


def setup_routers(app: FastAPI, app_settings: AppSettings) -> None:
    """Attach every router to the application."""
    app.include_router(create_graphql_router(app_settings.graphql_path))
    app.include_router(observability_router)
    logger.debug("Routers configured", extra={"graphql_path": app_settings.graphql_path})
