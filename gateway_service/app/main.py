"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from gateway_service.app.exception_handlers import configure_exception_handlers
from gateway_service.app.lifespan import lifespan
from gateway_service.app.router import setup_routers
from gateway_service.core.settings import get_settings


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Settings are loaded once and cached via LRU cache. The composed schema is
    built by the lifespan, before the first request is served.

    Returns:
        Configured FastAPI application instance.
    """
    app_settings = get_settings().app

    app = FastAPI(
        title=app_settings.title,
        version=app_settings.version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    configure_exception_handlers(app)
    setup_routers(app, app_settings)

    return app


# Application instance for uvicorn
app = create_app()
