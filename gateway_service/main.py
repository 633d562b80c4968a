"""Main entry point for gateway-service.

Runs the CLI; ``python -m gateway_service.main --server`` runs the server
directly with settings from configuration.
"""

from __future__ import annotations

import sys
from typing import NoReturn


def run_fastapi_server() -> NoReturn:
    """Run the FastAPI application server."""
    import uvicorn

    from gateway_service.core.settings import get_app_settings, get_logging_settings

    settings = get_app_settings()
    log_settings = get_logging_settings()

    uvicorn.run(
        "gateway_service.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        access_log=settings.debug,
        log_level=log_settings.level.lower(),
    )
    sys.exit(0)


def main() -> NoReturn:
    """Route to the server when ``--server`` is given, otherwise to the CLI."""
    if "--server" in sys.argv:
        sys.argv.remove("--server")
        run_fastapi_server()

    from gateway_service.cli.main import main as cli_main

    cli_main()
    sys.exit(0)


if __name__ == "__main__":
    main()
