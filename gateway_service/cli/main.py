"""Main CLI entry point for gateway-service commands."""

import click

from gateway_service import __version__
from gateway_service.cli.commands import schema, server
from gateway_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="gateway-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """GraphQL Gateway CLI.

    \b
    Command Groups:
      schema     Compose and inspect the gateway schema
      server     Run the gateway

    \b
    Quick Start:
      gateway-service schema check      # Compose with current settings
      gateway-service schema print      # Print the composed SDL
      gateway-service server run        # Serve the composed schema
    """
    ctx.ensure_object(dict)


cli.add_command(schema.schema)
cli.add_command(server.server)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
