"""Customer credit commands."""

from pathlib import Path

import click
from shopledger.cli.error_handling import echo_stock_lines, handle_domain_error
from shopledger.cli.item_resolution import resolve_lines_or_exit
from shopledger.domain.entities import Credit, CreditStatus, CustomerInfo, Payment, StockOutcome
from shopledger.domain.errors import DomainError, StockWarning
from shopledger.domain.ledger import CreditLedger, export_credits_csv
from shopledger.domain.stock import StockService
from shopledger.utils.amount_parser import parse_amount
from shopledger.utils.date_parser import parse_date


def _ledger(ctx) -> CreditLedger:
    db = ctx.obj["db"]
    stock_service = StockService(db, max_attempts=ctx.obj["settings"].stock_retry_attempts)
    return CreditLedger(db, cache=ctx.obj["cache"], stock_service=stock_service)


def _parse_date_or_exit(ctx, value: str, label: str):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def _parse_amount_or_exit(ctx, value: str, label: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def _echo_credit_summary(credit: Credit) -> None:
    click.echo(
        f"ID: {credit.id:3d} | {credit.customer.full_name:24s} | {credit.status.value:9s} | "
        f"Total: {credit.total_amount:>10,.2f} | Paid: {credit.paid_amount:>10,.2f} | "
        f"Remaining: {credit.remaining_amount:>10,.2f}"
    )


def _echo_credit_list(credits: list[Credit], empty_message: str) -> None:
    if not credits:
        click.echo(empty_message)
        return
    click.echo("\nCredits:")
    click.echo("-" * 100)
    for credit in credits:
        _echo_credit_summary(credit)


@click.group()
def credit_group():
    """Manage customer credits."""
    pass


@credit_group.command("check")
@click.option("--line", "lines", multiple=True, help="Item and quantity as ITEM:QTY (repeatable)")
@click.pass_context
def check_stock(ctx, lines: tuple[str, ...]):
    """Check requested items against current stock without saving anything.

    Examples:
        shopledger credit check --line "Phone X:2" --line 3:1
    """
    ledger = _ledger(ctx)
    requests = resolve_lines_or_exit(ctx, ledger.stock_service, ctx.obj["shop_id"], lines)
    result = ledger.check_stock(requests)

    echo_stock_lines(result.lines)
    if result.outcome == StockOutcome.BLOCKING:
        click.echo("Result: blocked, some items are out of stock")
        ctx.exit(1)
    elif result.outcome == StockOutcome.WARN:
        click.echo("Result: requires confirmation, some items are short")
    else:
        click.echo("Result: ok")


@credit_group.command("create")
@click.option("--name", required=True, help="Customer last name")
@click.option("--first-name", required=True, help="Customer first name")
@click.option("--address", required=True, help="Customer address")
@click.option("--phone", help="Customer phone number")
@click.option("--appointment", help="Appointment date (YYYY-MM-DD, 'tomorrow', 'in 2 weeks')")
@click.option("--line", "lines", multiple=True, help="Item and quantity as ITEM:QTY (repeatable)")
@click.option("--payment", help="Initial payment amount")
@click.option("--payment-date", default="today", show_default=True, help="Initial payment date")
@click.option("--comment", help="Comment for the initial payment")
@click.option("--yes", "assume_yes", is_flag=True, help="Accept insufficient stock without prompting")
@click.pass_context
def create_credit(
    ctx,
    name: str,
    first_name: str,
    address: str,
    phone: str | None,
    appointment: str | None,
    lines: tuple[str, ...],
    payment: str | None,
    payment_date: str,
    comment: str | None,
    assume_yes: bool,
):
    """Create a credit for a customer.

    Items with no stock block the credit. Items with less stock than
    requested need confirmation; the requested quantity is then deducted
    in full.

    Examples:
        shopledger credit create --name Doe --first-name Jane --address "12 Main St" \\
            --line "Phone X:2" --line Charger:1 --payment 1000
    """
    ledger = _ledger(ctx)
    shop_id = ctx.obj["shop_id"]
    requests = resolve_lines_or_exit(ctx, ledger.stock_service, shop_id, lines)

    customer = CustomerInfo(name=name, first_name=first_name, address=address, phone=phone)
    appointment_date = _parse_date_or_exit(ctx, appointment, "appointment date") if appointment else None

    initial_payment = None
    if payment is not None:
        initial_payment = Payment(
            amount=_parse_amount_or_exit(ctx, payment, "payment amount"),
            date=_parse_date_or_exit(ctx, payment_date, "payment date"),
            comment=comment or "Initial payment",
        )

    def create(confirmed: bool) -> Credit:
        return ledger.create(
            shop_id=shop_id,
            customer=customer,
            lines=requests,
            appointment_date=appointment_date,
            initial_payment=initial_payment,
            confirmed=confirmed,
        )

    try:
        try:
            credit = create(confirmed=assume_yes)
        except StockWarning as warning:
            click.echo("Warning: some items have less stock than requested:")
            echo_stock_lines(warning.lines)
            if not click.confirm("Create the credit anyway?"):
                click.echo("Credit not created.")
                return
            credit = create(confirmed=True)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created credit {credit.id} for {credit.customer.full_name}")
    click.echo(f"  Total: {credit.total_amount:,.2f}")
    click.echo(f"  Paid: {credit.paid_amount:,.2f}")
    click.echo(f"  Remaining: {credit.remaining_amount:,.2f}")
    click.echo(f"  Status: {credit.status.value}")


@credit_group.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in CreditStatus]),
    help="Only show credits with this status",
)
@click.pass_context
def list_credits(ctx, status: str | None):
    """List the shop's credits, newest first."""
    ledger = _ledger(ctx)
    credits = ledger.list_credits(ctx.obj["shop_id"], CreditStatus(status) if status else None)
    _echo_credit_list(credits, "No credits found.")


@credit_group.command("show")
@click.argument("credit_id", type=int)
@click.pass_context
def show_credit(ctx, credit_id: int):
    """Show a credit with its lines and payments."""
    try:
        credit = _ledger(ctx).require(credit_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Credit {credit.id} - {credit.customer.full_name}")
    click.echo(f"  Address: {credit.customer.address}")
    if credit.customer.phone:
        click.echo(f"  Phone: {credit.customer.phone}")
    if credit.appointment_date:
        click.echo(f"  Appointment: {credit.appointment_date}")
    click.echo(f"  Status: {credit.status.value}{' (closed)' if credit.closed else ''}")
    click.echo("\n  Items:")
    for line in credit.lines:
        click.echo(
            f"    {line.name:24s} {line.quantity:4d} x {line.unit_price:>10,.2f} = {line.line_total:>12,.2f}"
        )
    click.echo(f"  Total: {credit.total_amount:,.2f}")
    click.echo("\n  Payments:")
    if not credit.payments:
        click.echo("    (none)")
    for p in credit.payments:
        click.echo(f"    {p.date}  {p.amount:>12,.2f}  {p.comment or ''}")
    click.echo(f"  Paid: {credit.paid_amount:,.2f}")
    click.echo(f"  Remaining: {credit.remaining_amount:,.2f}")


@credit_group.command("pay")
@click.argument("credit_id", type=int)
@click.argument("amount")
@click.option("--date", "payment_date", default="today", show_default=True, help="Payment date")
@click.option("--comment", help="Payment comment")
@click.pass_context
def pay_credit(ctx, credit_id: int, amount: str, payment_date: str, comment: str | None):
    """Record a payment on a credit.

    Examples:
        shopledger credit pay 3 1500
        shopledger credit pay 3 500 --date yesterday --comment "cash"
    """
    ledger = _ledger(ctx)
    payment_amount = _parse_amount_or_exit(ctx, amount, "payment amount")
    when = _parse_date_or_exit(ctx, payment_date, "payment date")

    try:
        credit = ledger.add_payment(credit_id, payment_amount, payment_date=when, comment=comment)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recorded payment of {payment_amount:,.2f} on credit {credit_id}")
    click.echo(f"  Remaining: {credit.remaining_amount:,.2f}")
    click.echo(f"  Status: {credit.status.value}")


@credit_group.command("close")
@click.argument("credit_id", type=int)
@click.option("--force", is_flag=True, help="Close even if a balance remains (write it off)")
@click.pass_context
def close_credit(ctx, credit_id: int, force: bool):
    """Close a settled credit."""
    ledger = _ledger(ctx)
    try:
        credit = ledger.close(credit_id, force=force)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Closed credit {credit.id}")
    if credit.remaining_amount > 0:
        click.echo(f"  Written off: {credit.remaining_amount:,.2f}")


@credit_group.command("delete")
@click.argument("credit_id", type=int)
@click.option("--yes", "assume_yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_credit(ctx, credit_id: int, assume_yes: bool):
    """Delete a credit.

    Stock deducted when the credit was created is not restored.
    """
    ledger = _ledger(ctx)
    try:
        credit = ledger.require(credit_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not assume_yes and not click.confirm(
        f"Are you sure you want to delete credit {credit_id} ({credit.customer.full_name})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        ledger.delete(credit_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted credit {credit_id}")


@credit_group.command("search")
@click.argument("term")
@click.pass_context
def search_credits(ctx, term: str):
    """Find credits by customer name or first name."""
    credits = _ledger(ctx).search(ctx.obj["shop_id"], term)
    _echo_credit_list(credits, f"No credits matching '{term}'.")


@credit_group.command("stats")
@click.pass_context
def credit_stats(ctx):
    """Show credit counts and amounts for the shop."""
    stats = _ledger(ctx).stats(ctx.obj["shop_id"])
    click.echo(f"Credits: {stats.total_credits}")
    click.echo(f"  Pending: {stats.pending_credits}")
    click.echo(f"  Partial: {stats.partial_credits}")
    click.echo(f"  Completed: {stats.completed_credits}")
    click.echo(f"Total amount: {stats.total_amount:,.2f}")
    click.echo(f"Paid amount: {stats.paid_amount:,.2f}")
    click.echo(f"Remaining amount: {stats.remaining_amount:,.2f}")


@credit_group.command("export")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write CSV to this file")
@click.pass_context
def export_credits(ctx, output: str | None):
    """Export the shop's credits as CSV."""
    content = export_credits_csv(_ledger(ctx).list_credits(ctx.obj["shop_id"]))
    if output is None:
        click.echo(content, nl=False)
        return
    Path(output).write_text(content, encoding="utf-8")
    click.echo(f"Exported credits to {output}")


def register_commands(cli):
    """Register credit commands with main CLI."""
    cli.add_command(credit_group, name="credit")
