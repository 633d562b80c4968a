"""Schema composition commands."""

from pathlib import Path
import sys

import click

from gateway_service.cli.utils import coro, error, header, info, success, tier_summary
from gateway_service.core.exceptions import CompositionError
from gateway_service.core.settings import get_gateway_settings
from gateway_service.features.gateway.builder import GatewaySchemaBuilder
from gateway_service.features.gateway.composer import ComposedSchema


async def _compose() -> ComposedSchema:
    settings = get_gateway_settings()
    try:
        return await GatewaySchemaBuilder(settings).build()
    except CompositionError as e:
        error(f"Schema composition failed: {e.detail}")
        sys.exit(1)


@click.group(name="schema")
def schema() -> None:
    """Compose and inspect the gateway schema."""


@schema.command(name="print")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the SDL to a file instead of stdout",
)
@coro
async def print_schema(output: Path | None) -> None:
    """Compose the schema with current settings and print its SDL."""
    composed = await _compose()
    if output is None:
        click.echo(composed.sdl)
        return
    output.write_text(composed.sdl + "\n", encoding="utf-8")
    success(f"Schema written to {output}")


@schema.command()
@coro
async def check() -> None:
    """Compose the schema and report what each tier contributed."""
    info("Composing schema...")
    composed = await _compose()

    header("Composed schema")
    tier_summary(len(composed.types), composed.field_counts())
    success("Schema composed successfully")
