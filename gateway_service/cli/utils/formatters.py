"""Output formatting for CLI commands.

Status lines go to stderr so that ``schema print`` can be piped; only data
(SDL, summaries) is written to stdout.
"""

from collections.abc import Mapping

import click


def success(message: str) -> None:
    """Print a success message in green."""
    click.secho(f"✓ {message}", fg="green", err=True)


def error(message: str) -> None:
    """Print an error message in red."""
    click.secho(f"✗ {message}", fg="red", err=True)


def warning(message: str) -> None:
    """Print a warning message in yellow."""
    click.secho(f"⚠ {message}", fg="yellow", err=True)


def info(message: str) -> None:
    click.secho(f"ℹ {message}", fg="blue", err=True)


def header(message: str) -> None:
    click.secho(f"\n{message}", fg="cyan", bold=True)


def tier_summary(type_count: int, field_counts: Mapping[str, int]) -> None:
    """Print the number of types and the fields each tier contributed.

    Tiers that took part without contributing a field are flagged, since
    every one of their declarations was overridden by a later tier.
    """
    click.echo(f"  Types: {type_count}")
    width = max((len(tier) for tier in field_counts), default=0)
    for tier, count in field_counts.items():
        click.echo(f"  {tier:<{width}}  {count} field(s)")
        if count == 0:
            warning(f"{tier} contributed no fields to the composed schema")
