"""Stock item commands."""

import click
from shopledger.cli.error_handling import handle_domain_error
from shopledger.cli.item_resolution import resolve_item_or_exit
from shopledger.domain.errors import DomainError
from shopledger.domain.stock import StockService
from shopledger.utils.amount_parser import parse_amount


@click.group()
def item_group():
    """Manage stock items."""
    pass


@item_group.command("add")
@click.argument("name", metavar="ITEM_NAME")
@click.option("--price", required=True, help="Unit price (e.g., 1500 or 1 500)")
@click.option("--quantity", type=int, default=0, show_default=True, help="Units in stock")
@click.option("--category", help="Item category")
@click.pass_context
def add_item(ctx, name: str, price: str, quantity: int, category: str | None):
    """Add an item to the shop's stock.

    Examples:
        shopledger item add "Phone X" --price 1000 --quantity 5
        shopledger item add "Charger" --price 500 --quantity 20 --category Accessories
    """
    db = ctx.obj["db"]
    service = StockService(db, max_attempts=ctx.obj["settings"].stock_retry_attempts)

    try:
        item_price = parse_amount(price)
    except ValueError as e:
        click.echo(f"Error: Invalid price: {e}", err=True)
        ctx.exit(1)

    try:
        item_id = service.create_item(
            shop_id=ctx.obj["shop_id"], name=name, price=item_price, quantity=quantity, category=category
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created item '{name}' (ID: {item_id})")


@item_group.command("list")
@click.pass_context
def list_items(ctx):
    """List the shop's items with stock levels."""
    service = StockService(ctx.obj["db"])

    items = service.list_items(ctx.obj["shop_id"])
    if not items:
        click.echo("No items found.")
        return

    click.echo("\nItems:")
    click.echo("-" * 72)
    for item in items:
        flag = " (out of stock)" if item.quantity <= 0 else ""
        click.echo(
            f"ID: {item.id:3d} | {item.name:24s} | {item.category or '-':14s} | "
            f"{item.price:>10,.2f} | Qty: {item.quantity}{flag}"
        )


@item_group.command("set-quantity")
@click.argument("item", metavar="ITEM")
@click.argument("quantity", type=int)
@click.pass_context
def set_quantity(ctx, item: str, quantity: int):
    """Correct the stock count of an item.

    ITEM can be an item name or ID.
    """
    service = StockService(ctx.obj["db"])
    item_id = resolve_item_or_exit(ctx, service, ctx.obj["shop_id"], item)

    try:
        service.set_quantity(item_id, quantity)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Item {item_id} quantity set to {quantity}")


def register_commands(cli):
    """Register item commands with main CLI."""
    cli.add_command(item_group, name="item")
