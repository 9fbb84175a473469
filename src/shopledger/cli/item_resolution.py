"""CLI helpers for item resolution."""

from __future__ import annotations

import click
from shopledger.domain.entities import LineRequest
from shopledger.domain.stock import StockService
from shopledger.utils.amount_parser import parse_line_spec
from shopledger.utils.item_resolver import resolve_item


def resolve_item_or_exit(ctx: click.Context, stock_service: StockService, shop_id: str, item: str | int) -> int:
    """Resolve item name or ID, or exit with a CLI error."""
    try:
        return resolve_item(stock_service, shop_id, item)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_lines_or_exit(
    ctx: click.Context, stock_service: StockService, shop_id: str, specs: tuple[str, ...]
) -> list[LineRequest]:
    """Turn ``ITEM:QTY`` options into line requests, or exit with a CLI error."""
    if not specs:
        click.echo("Error: at least one --line ITEM:QUANTITY is required", err=True)
        ctx.exit(1)
    lines = []
    for spec in specs:
        try:
            item, quantity = parse_line_spec(spec)
        except ValueError as exc:
            click.echo(f"Error: {exc}", err=True)
            ctx.exit(1)
        item_id = resolve_item_or_exit(ctx, stock_service, shop_id, item)
        lines.append(LineRequest(item_id=item_id, quantity=quantity))
    return lines
