"""Quote and invoice numbering commands."""

import click
from shopledger.cli.error_handling import handle_domain_error
from shopledger.config import Settings
from shopledger.database.factories import create_local_counter_store
from shopledger.domain.entities import DocumentKind
from shopledger.domain.errors import DomainError
from shopledger.domain.numbering import DocumentNumberSequencer

KINDS = [kind.value for kind in DocumentKind]


def _sequencer(ctx) -> DocumentNumberSequencer:
    settings: Settings = ctx.obj["settings"]
    path = ctx.obj.get("counter_path") or settings.resolved_counter_path()
    return DocumentNumberSequencer(create_local_counter_store(path), epoch=settings.numbering_epoch)


@click.group()
def number_group():
    """Issue quote and invoice numbers."""
    pass


@number_group.command("preview")
@click.argument("kind", type=click.Choice(KINDS))
@click.pass_context
def preview_number(ctx, kind: str):
    """Show the next number for KIND without reserving it."""
    try:
        click.echo(_sequencer(ctx).preview(kind))
    except DomainError as e:
        handle_domain_error(ctx, e)


@number_group.command("commit")
@click.argument("kind", type=click.Choice(KINDS))
@click.pass_context
def commit_number(ctx, kind: str):
    """Reserve and print the next number for KIND.

    Run this once per finalized document; every call consumes a number.
    """
    try:
        click.echo(_sequencer(ctx).commit(kind))
    except DomainError as e:
        handle_domain_error(ctx, e)


@number_group.command("counters")
@click.pass_context
def show_counters(ctx):
    """Show the current counters for the active epoch."""
    sequencer = _sequencer(ctx)
    try:
        counters = sequencer.current_counters()
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Epoch: {sequencer.epoch}")
    for kind, value in counters.items():
        click.echo(f"  {kind}: {value}")


@number_group.command("reset")
@click.argument("kind", type=click.Choice(KINDS), required=False)
@click.option("--yes", "assume_yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reset_counters(ctx, kind: str | None, assume_yes: bool):
    """Reset the counter for KIND, or all counters, in the active epoch."""
    target = kind or "all"
    if not assume_yes and not click.confirm(f"Reset {target} counters? Numbers already issued may be reused."):
        click.echo("Reset cancelled.")
        return
    try:
        _sequencer(ctx).reset(kind)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reset {target} counters")


def register_commands(cli):
    """Register numbering commands with main CLI."""
    cli.add_command(number_group, name="number")
