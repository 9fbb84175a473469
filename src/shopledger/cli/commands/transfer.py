"""Stock transfer commands."""

from pathlib import Path

import click
from shopledger.cli.error_handling import handle_domain_error
from shopledger.cli.item_resolution import resolve_item_or_exit
from shopledger.domain.entities import TransferKind
from shopledger.domain.errors import DomainError
from shopledger.domain.stock import StockService
from shopledger.domain.transfers import (
    CACHED_TRANSFER_LIMIT,
    DEFAULT_TRANSFER_LIMIT,
    TransferLog,
    export_transfers_csv,
)


def _transfer_log(ctx) -> TransferLog:
    db = ctx.obj["db"]
    stock_service = StockService(db, max_attempts=ctx.obj["settings"].stock_retry_attempts)
    return TransferLog(db, cache=ctx.obj["cache"], stock_service=stock_service)


@click.group()
def transfer_group():
    """Move stock to another shop or remove it."""
    pass


@transfer_group.command("record")
@click.argument("item", metavar="ITEM")
@click.argument("quantity", type=int)
@click.option("--to", "to_shop_id", help="Destination shop")
@click.option("--remove", is_flag=True, help="Take the units out of stock instead of transferring them")
@click.option("--user", "user_id", help="Staff member moving the stock")
@click.pass_context
def record_transfer(ctx, item: str, quantity: int, to_shop_id: str | None, remove: bool, user_id: str | None):
    """Move QUANTITY units of ITEM out of the current shop.

    ITEM can be an item name or ID.

    Examples:
        shopledger --shop depot transfer record Charger 5 --to main
        shopledger transfer record Charger 1 --remove
    """
    if remove and to_shop_id:
        click.echo("Error: --remove cannot be combined with --to.", err=True)
        ctx.exit(1)

    transfer_log = _transfer_log(ctx)
    shop_id = ctx.obj["shop_id"]
    item_id = resolve_item_or_exit(ctx, transfer_log.stock_service, shop_id, item)
    kind = TransferKind.REMOVE if remove else TransferKind.TRANSFER

    try:
        transfer = transfer_log.record_transfer(
            shop_id, item_id, quantity, kind=kind, to_shop_id=to_shop_id, user_id=user_id
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if transfer.kind == TransferKind.TRANSFER:
        click.echo(f"Transferred {transfer.quantity} x {transfer.item_name} to {transfer.to_shop_id}")
    else:
        click.echo(f"Removed {transfer.quantity} x {transfer.item_name} from stock")


@transfer_group.command("list")
@click.option(
    "--limit",
    type=click.IntRange(1, CACHED_TRANSFER_LIMIT),
    default=DEFAULT_TRANSFER_LIMIT,
    show_default=True,
    help="Number of recent transfers",
)
@click.pass_context
def list_transfers(ctx, limit: int):
    """List recent transfers out of or into the current shop."""
    transfers = _transfer_log(ctx).list_transfers(ctx.obj["shop_id"], limit=limit)
    if not transfers:
        click.echo("No transfers found.")
        return

    click.echo("\nTransfers:")
    click.echo("-" * 80)
    for transfer in transfers:
        destination = transfer.to_shop_id or "-"
        click.echo(
            f"{transfer.created_at:%Y-%m-%d} | ID: {transfer.id:3d} | {transfer.kind.value:8s} | "
            f"{transfer.item_name:24s} | {transfer.quantity:4d} | {transfer.shop_id} -> {destination}"
        )


@transfer_group.command("stats")
@click.pass_context
def transfer_stats(ctx):
    """Show transfer counts of the current shop."""
    stats = _transfer_log(ctx).transfer_stats(ctx.obj["shop_id"])
    click.echo(f"Transfers: {stats.total}")
    click.echo(f"  Today: {stats.today}")
    click.echo(f"  Last 7 days: {stats.this_week}")
    for kind, count in stats.by_kind.items():
        click.echo(f"  {kind.value}: {count}")


@transfer_group.command("export")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write CSV to this file")
@click.pass_context
def export_transfers(ctx, output: str | None):
    """Export the current shop's recent transfers as CSV."""
    transfers = _transfer_log(ctx).list_transfers(ctx.obj["shop_id"], limit=CACHED_TRANSFER_LIMIT)
    content = export_transfers_csv(transfers)
    if output is None:
        click.echo(content, nl=False)
        return
    Path(output).write_text(content, encoding="utf-8")
    click.echo(f"Exported transfers to {output}")


def register_commands(cli):
    """Register transfer commands with main CLI."""
    cli.add_command(transfer_group, name="transfer")
