"""Server management commands."""

import sys

import click

from gateway_service.cli.utils import error, info
from gateway_service.core.settings import get_app_settings, get_logging_settings


@click.group(name="server")
def server() -> None:
    """Server management commands."""


@server.command()
@click.option(
    "--host",
    default=None,
    help="Host to bind (default: from settings)",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to bind (default: from settings)",
)
@click.option(
    "--reload/--no-reload",
    default=False,
    help="Enable auto-reload on code changes",
)
def run(host: str | None, port: int | None, reload: bool) -> None:
    """Run the gateway with uvicorn.

    The schema is composed during startup; the server exits if composition
    fails.
    """
    import uvicorn

    settings = get_app_settings()
    log_settings = get_logging_settings()
    host = host or settings.host
    port = port or settings.port

    info(f"Serving GraphQL at http://{host}:{port}{settings.graphql_path}")
    try:
        uvicorn.run(
            "gateway_service.app.main:app",
            host=host,
            port=port,
            reload=reload,
            access_log=settings.debug,
            log_level=log_settings.level.lower(),
        )
    except KeyboardInterrupt:
        info("Shutting down server...")
    except SystemExit as e:
        if e.code:
            error("Server stopped: schema composition failed during startup")
        raise
