"""Main CLI entry point."""

import click
from shopledger.config import Settings
from shopledger.database.factories import create_sqlite_database
from shopledger.domain.cache import LocalReadCache
from shopledger.logging_config import reset_logging, setup_logging

# Import and register all commands at module level
from shopledger.cli.commands import (
    item,
    credit,
    sale,
    transfer,
    number,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SHOPLEDGER_DB_PATH environment variable)",
    envvar="SHOPLEDGER_DB_PATH",
)
@click.option(
    "--shop",
    "shop_id",
    help="Shop identifier (overrides SHOPLEDGER_SHOP environment variable)",
    envvar="SHOPLEDGER_SHOP",
)
@click.option(
    "--counter-path",
    type=click.Path(),
    help="Path to the local document counter file",
    envvar="SHOPLEDGER_COUNTER_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    envvar="SHOPLEDGER_LOG_LEVEL",
    help="Log level for JSON logs written to stderr",
)
@click.pass_context
def cli(ctx, db_path: str | None, shop_id: str | None, counter_path: str | None, log_level: str | None):
    """Shopledger - shop stock, credit and document numbering.

    Record customer credits against shop stock, take partial payments until
    they are settled, log direct sales, move stock between shops and issue
    quote/invoice numbers.
    """
    ctx.ensure_object(dict)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    setup_logging(log_level or settings.log_level)
    ctx.call_on_close(reset_logging)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path or settings.db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)
        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.obj["shop_id"] = shop_id or settings.shop_id
        ctx.obj["cache"] = LocalReadCache(ttl_seconds=settings.cache_ttl_seconds)
        ctx.obj["counter_path"] = counter_path


# Register all commands
item.register_commands(cli)
credit.register_commands(cli)
sale.register_commands(cli)
transfer.register_commands(cli)
number.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
