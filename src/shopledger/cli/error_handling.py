"""CLI error handling helpers."""

import click

from shopledger.domain.entities import StockCheckLine
from shopledger.domain.errors import (
    DomainError,
    PartialCommit,
    StockUnavailable,
    StockWarning,
    ValidationError,
)


def echo_stock_lines(lines: tuple[StockCheckLine, ...], err: bool = False) -> None:
    """Print one row per stock check line."""
    for line in lines:
        label = line.name or f"item {line.item_id}"
        click.echo(
            f"  {line.availability.value.upper():12s} {label}: available {line.available}, "
            f"requested {line.requested}",
            err=err,
        )


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if isinstance(error, (StockUnavailable, StockWarning)):
        click.echo(f"Error: {error.title}", err=True)
        echo_stock_lines(error.lines, err=True)
    elif isinstance(error, ValidationError) and len(error.problems) > 1:
        click.echo("Error: invalid input", err=True)
        for problem in error.problems:
            click.echo(f"  - {problem}", err=True)
    elif isinstance(error, PartialCommit):
        click.echo(f"Error: {error}", err=True)
        for line in error.failed_lines:
            click.echo(f"  - item {line.item_id}: deduct {line.quantity} manually", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
