"""Application lifespan management.

Startup Order:
1. Core (logging) - always runs first
2. Schema composition - local, remote function and legacy tiers; any
   failure aborts startup

The composed schema is built exactly once and stored on ``app.state``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from gateway_service.core.settings import (
    get_app_settings,
    get_gateway_settings,
    get_logging_settings,
)
from gateway_service.features.gateway.builder import GatewaySchemaBuilder
from gateway_service.infra.logging.config import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Compose the schema before serving, refuse to start if it fails.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    app_settings = get_app_settings()
    setup_logging(log_settings=get_logging_settings(), force=True)
    logger.info(
        "Application starting",
        extra={"service": app_settings.service_name, "environment": app_settings.environment},
    )

    builder = GatewaySchemaBuilder(get_gateway_settings())
    composed = await builder.build()

    app.state.gateway = composed
    app.state.function_runtime = builder.function_runtime
    logger.info(
        "GraphQL gateway ready",
        extra={"path": app_settings.graphql_path, "tiers": [t.name for t in composed.tiers]},
    )

    yield

    logger.info("Application shutting down")
    app.state.gateway = None
    app.state.function_runtime = None
