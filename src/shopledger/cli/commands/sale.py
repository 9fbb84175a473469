"""Direct sale commands."""

import click
from shopledger.cli.error_handling import echo_stock_lines, handle_domain_error
from shopledger.cli.item_resolution import resolve_item_or_exit
from shopledger.domain.errors import DomainError, StockWarning
from shopledger.domain.sales import DEFAULT_SALES_LIMIT, SalesLog
from shopledger.domain.stock import StockService
from shopledger.utils.date_parser import PERIODS, get_date_range, parse_date


def _sales_log(ctx) -> SalesLog:
    db = ctx.obj["db"]
    stock_service = StockService(db, max_attempts=ctx.obj["settings"].stock_retry_attempts)
    return SalesLog(db, cache=ctx.obj["cache"], stock_service=stock_service)


@click.group()
def sale_group():
    """Record and list direct sales."""
    pass


@sale_group.command("record")
@click.argument("item", metavar="ITEM")
@click.argument("quantity", type=int, default=1)
@click.option("--date", "sale_date", default="today", show_default=True, help="Sale date")
@click.option("--user", "user_id", help="Staff member recording the sale")
@click.option("--yes", "assume_yes", is_flag=True, help="Accept insufficient stock without prompting")
@click.pass_context
def record_sale(ctx, item: str, quantity: int, sale_date: str, user_id: str | None, assume_yes: bool):
    """Sell QUANTITY units of ITEM at its current price.

    ITEM can be an item name or ID.
    """
    sales_log = _sales_log(ctx)
    shop_id = ctx.obj["shop_id"]
    item_id = resolve_item_or_exit(ctx, sales_log.stock_service, shop_id, item)

    try:
        when = parse_date(sale_date)
    except ValueError as e:
        click.echo(f"Error: Invalid sale date: {e}", err=True)
        ctx.exit(1)

    try:
        try:
            sale = sales_log.record_sale(shop_id, item_id, quantity, sale_date=when, user_id=user_id, confirmed=assume_yes)
        except StockWarning as warning:
            click.echo("Warning: less stock than requested:")
            echo_stock_lines(warning.lines)
            if not click.confirm("Record the sale anyway?"):
                click.echo("Sale not recorded.")
                return
            sale = sales_log.record_sale(shop_id, item_id, quantity, sale_date=when, user_id=user_id, confirmed=True)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recorded sale {sale.id}: {sale.quantity} x {sale.item_name} = {sale.total_price:,.2f}")


@sale_group.command("list")
@click.option("--limit", type=int, default=DEFAULT_SALES_LIMIT, show_default=True, help="Number of recent sales")
@click.option("--period", type=click.Choice(PERIODS), help="Only sales within this period")
@click.option("--start-date", help="Start date (inclusive)")
@click.option("--end-date", help="End date (inclusive)")
@click.pass_context
def list_sales(ctx, limit: int, period: str | None, start_date: str | None, end_date: str | None):
    """List the shop's sales, newest first."""
    sales_log = _sales_log(ctx)
    shop_id = ctx.obj["shop_id"]

    if period and (start_date or end_date):
        click.echo("Error: --period cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    try:
        if period:
            start, end = get_date_range(period)
        else:
            start = parse_date(start_date) if start_date else None
            end = parse_date(end_date) if end_date else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    if start is None and end is None:
        sales = sales_log.list_sales(shop_id, limit=limit)
    else:
        sales = sales_log.sales_by_period(shop_id, start, end)[:limit]

    if not sales:
        click.echo("No sales found.")
        return

    click.echo("\nSales:")
    click.echo("-" * 72)
    for sale in sales:
        click.echo(
            f"{sale.sale_date} | ID: {sale.id:3d} | {sale.item_name:24s} | "
            f"{sale.quantity:3d} x {sale.unit_price:>10,.2f} = {sale.total_price:>12,.2f}"
        )
    click.echo(f"Total: {sum(s.total_price for s in sales):,.2f}")


def register_commands(cli):
    """Register sale commands with main CLI."""
    cli.add_command(sale_group, name="sale")
