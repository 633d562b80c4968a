"""Global exception handlers for FastAPI application."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gateway_service.core.exceptions import AppException, BadRequestException

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert an ``AppException`` into an RFC 7807 Problem Details response."""
    logger.warning(
        "Application exception occurred",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )
    problem_data = exc.to_problem_details()
    problem_data.setdefault("instance", str(request.url))
    return JSONResponse(
        status_code=exc.status_code,
        content=problem_data,
        media_type="application/problem+json",
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed GraphQL request bodies as 400 problem details."""
    errors = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    bad_request = BadRequestException(
        detail="Request body is not a valid GraphQL request",
        type="invalid-graphql-request",
        extra={"errors": errors},
    )
    return await app_exception_handler(request, bad_request)


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the exception handlers on the application."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    logger.debug("Exception handlers configured")
