"""Credit ledger domain service."""

import csv
import io
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from shopledger.database.base import Database
from shopledger.domain.cache import LocalReadCache
from shopledger.domain.entities import (
    Credit,
    CreditLine,
    CreditStats,
    CreditStatus,
    CustomerInfo,
    LineRequest,
    Payment,
    StockCheckResult,
    StockOutcome,
    has_sub_cent_digits,
)
from shopledger.domain.errors import (
    CollaboratorFailure,
    NotFoundError,
    OverpaymentRejected,
    PartialCommit,
    StockUnavailable,
    StockWarning,
    ValidationError,
    credit_not_found,
)
from shopledger.domain.stock import StockReservationChecker, StockService

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "ID",
    "Client",
    "Appointment date",
    "Total amount",
    "Paid amount",
    "Remaining amount",
    "Status",
    "Created",
]


def credits_cache_prefix(shop_id: str) -> str:
    return f"credits:{shop_id}:"


def validate_credit_data(
    customer: CustomerInfo,
    lines: Sequence[LineRequest],
    initial_payment: Optional[Payment] = None,
) -> list[str]:
    """Validate the operator input for a new credit.

    Returns:
        List of problems, empty when the input is acceptable
    """
    problems = []
    if not customer.name or not customer.name.strip():
        problems.append("Customer name is required")
    if not customer.first_name or not customer.first_name.strip():
        problems.append("Customer first name is required")
    if not customer.address or not customer.address.strip():
        problems.append("Customer address is required")

    if not lines:
        problems.append("At least one item is required")

    seen = set()
    for index, line in enumerate(lines, start=1):
        if line.quantity <= 0:
            problems.append(f"Quantity of item {index} must be greater than 0")
        if line.item_id in seen:
            problems.append(f"Item {line.item_id} appears more than once")
        seen.add(line.item_id)

    if initial_payment is not None:
        if initial_payment.amount <= 0:
            problems.append("Initial payment must be greater than 0")
        elif has_sub_cent_digits(initial_payment.amount):
            problems.append("Initial payment cannot have more than two decimal places")

    return problems


class CreditLedger:
    """Service owning the credit aggregate.

    Every mutation invalidates the shop's cached credit reads instead of
    patching them.
    """

    def __init__(
        self,
        db: Database,
        cache: Optional[LocalReadCache] = None,
        stock_service: Optional[StockService] = None,
    ):
        """Initialize credit ledger.

        Args:
            db: Database instance (stock registry and credit store)
            cache: Read cache shared with other services
            stock_service: Stock service used for deductions
        """
        self.db = db
        self.cache = cache if cache is not None else LocalReadCache()
        self.stock_service = stock_service if stock_service is not None else StockService(db)
        self.checker = StockReservationChecker(db)
        # Payments retry lost races with the same bound as stock updates
        self.max_attempts = self.stock_service.max_attempts

    def check_stock(self, lines: Sequence[LineRequest]) -> StockCheckResult:
        """Run a reservation check without writing anything."""
        return self.checker.check(lines)

    def create(
        self,
        shop_id: str,
        customer: CustomerInfo,
        lines: Sequence[LineRequest],
        appointment_date: Optional[date] = None,
        initial_payment: Optional[Payment] = None,
        confirmed: bool = False,
    ) -> Credit:
        """Create a credit against current stock.

        Args:
            shop_id: Shop owning the credit
            customer: Customer details
            lines: Requested items and quantities
            appointment_date: Optional date the customer is expected back
            initial_payment: Optional first payment
            confirmed: Operator confirmed an over-request after a StockWarning

        Returns:
            The persisted credit

        Raises:
            ValidationError: If input is invalid (nothing is written)
            StockUnavailable: If any item has no stock (nothing is written)
            StockWarning: If some items are short and confirmed is False
            CollaboratorFailure: If the credit could not be written
            PartialCommit: If the credit was written but stock deduction failed
        """
        problems = validate_credit_data(customer, lines, initial_payment)
        if problems:
            raise ValidationError("; ".join(problems), problems)

        result = self.checker.check(lines)
        if result.outcome == StockOutcome.BLOCKING:
            raise StockUnavailable(result.problem_lines)
        if result.outcome == StockOutcome.WARN and not confirmed:
            raise StockWarning(result.problem_lines)

        credit_lines = []
        for request in lines:
            item = self.stock_service.require_item(request.item_id)
            if item.price < 0:
                raise ValidationError(f"Item {item.id} has a negative price")
            credit_lines.append(
                CreditLine(
                    item_id=item.id,
                    name=item.name,
                    quantity=request.quantity,
                    unit_price=item.price,
                )
            )
        total_amount = sum((line.line_total for line in credit_lines), Decimal("0"))

        payments = []
        if initial_payment is not None:
            if initial_payment.amount > total_amount:
                raise OverpaymentRejected(None, initial_payment.amount, total_amount)
            payments.append(initial_payment)

        credit_id = self.db.create_credit(
            shop_id=shop_id,
            customer=customer,
            appointment_date=appointment_date,
            lines=credit_lines,
            total_amount=total_amount,
            payments=payments,
        )
        logger.info(
            "Credit created",
            extra={"credit_id": credit_id, "shop_id": shop_id, "total_amount": str(total_amount)},
        )

        # Only lines the operator saw as short may take stock below zero
        confirmed_short = {line.item_id for line in result.problem_lines} if confirmed else set()
        failed = []
        reasons = []
        for request in lines:
            try:
                self.stock_service.deduct(
                    request.item_id,
                    request.quantity,
                    allow_over_commit=request.item_id in confirmed_short,
                )
            except (CollaboratorFailure, NotFoundError, StockUnavailable, StockWarning) as exc:
                failed.append(request)
                reasons.append(str(exc))

        self.cache.invalidate(credits_cache_prefix(shop_id))

        if failed:
            logger.warning(
                "Credit saved without full stock deduction",
                extra={"credit_id": credit_id, "failed_items": [line.item_id for line in failed]},
            )
            raise PartialCommit(credit_id, failed, "; ".join(reasons))

        return self.require(credit_id)

    def get(self, credit_id: int) -> Optional[Credit]:
        """Get credit by ID. Always reads the store."""
        return self.db.get_credit(credit_id)

    def require(self, credit_id: int) -> Credit:
        """Get credit by ID or raise NotFoundError."""
        credit = self.db.get_credit(credit_id)
        if credit is None:
            raise NotFoundError(credit_not_found(credit_id))
        return credit

    def add_payment(
        self,
        credit_id: int,
        amount: Decimal,
        payment_date: Optional[date] = None,
        comment: Optional[str] = None,
    ) -> Credit:
        """Append a payment to a credit.

        The balance check and the append are tied to the credit version read
        for the check, so two concurrent payments can never overpay it
        together. A lost race is retried against the fresh balance.

        Raises:
            ValidationError: If amount is not positive or finer than a cent
            NotFoundError: If the credit does not exist
            OverpaymentRejected: If amount exceeds the remaining balance
            CollaboratorFailure: If the credit kept changing on every attempt
        """
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than 0")
        if has_sub_cent_digits(amount):
            raise ValidationError("Payment amount cannot have more than two decimal places")

        payment = Payment(amount=amount, date=payment_date or date.today(), comment=comment)
        for attempt in range(1, self.max_attempts + 1):
            credit = self.require(credit_id)
            remaining = credit.remaining_amount
            if amount > remaining:
                raise OverpaymentRejected(credit_id, amount, max(remaining, Decimal("0")))

            payment_id = self.db.append_payment(credit_id, payment, expected_version=credit.version)
            if payment_id is not None:
                self.cache.invalidate(credits_cache_prefix(credit.shop_id))
                updated = self.require(credit_id)
                logger.info(
                    "Payment recorded",
                    extra={
                        "credit_id": credit_id,
                        "payment_id": payment_id,
                        "amount": str(amount),
                        "remaining_amount": str(updated.remaining_amount),
                        "status": updated.status.value,
                    },
                )
                return updated
            logger.warning(
                "Credit changed concurrently, retrying",
                extra={"credit_id": credit_id, "attempt": attempt},
            )
        raise CollaboratorFailure(
            f"Could not record payment on credit {credit_id} after {self.max_attempts} attempts"
        )

    def close(self, credit_id: int, force: bool = False) -> Credit:
        """Close a credit.

        Args:
            credit_id: Credit to close
            force: Write off a remaining balance

        Raises:
            NotFoundError: If the credit does not exist
            ValidationError: If a balance remains and force is False
        """
        credit = self.require(credit_id)
        if credit.closed:
            return credit
        if credit.remaining_amount > 0 and not force:
            raise ValidationError(
                f"Credit {credit_id} still has a remaining balance of {credit.remaining_amount}"
            )

        self.db.mark_credit_closed(credit_id)
        self.cache.invalidate(credits_cache_prefix(credit.shop_id))
        logger.info(
            "Credit closed",
            extra={"credit_id": credit_id, "written_off": str(max(credit.remaining_amount, Decimal("0")))},
        )
        return self.require(credit_id)

    def delete(self, credit_id: int) -> None:
        """Delete a credit. Deducted stock is not restored.

        Raises:
            NotFoundError: If the credit does not exist
        """
        credit = self.require(credit_id)
        self.db.delete_credit(credit_id)
        self.cache.invalidate(credits_cache_prefix(credit.shop_id))
        logger.info("Credit deleted", extra={"credit_id": credit_id, "shop_id": credit.shop_id})

    def list_credits(self, shop_id: str, status: Optional[CreditStatus] = None) -> list[Credit]:
        """List credits of a shop, newest first, optionally filtered by status."""
        credits = self.cache.get_or_load(
            f"{credits_cache_prefix(shop_id)}list", lambda: self.db.list_credits(shop_id)
        )
        if status is not None:
            return [credit for credit in credits if credit.status == status]
        return list(credits)

    def search(self, shop_id: str, term: str) -> list[Credit]:
        """Find credits whose customer name or first name contains term."""
        needle = term.strip().lower()
        return [
            credit
            for credit in self.list_credits(shop_id)
            if needle in credit.customer.name.lower() or needle in credit.customer.first_name.lower()
        ]

    def stats(self, shop_id: str) -> CreditStats:
        """Counts per status and amount sums over all credits of a shop."""
        credits = self.list_credits(shop_id)
        counts = {status: 0 for status in CreditStatus}
        for credit in credits:
            counts[credit.status] += 1
        return CreditStats(
            total_credits=len(credits),
            pending_credits=counts[CreditStatus.PENDING],
            partial_credits=counts[CreditStatus.PARTIAL],
            completed_credits=counts[CreditStatus.COMPLETED],
            total_amount=sum((c.total_amount for c in credits), Decimal("0")),
            paid_amount=sum((c.paid_amount for c in credits), Decimal("0")),
            remaining_amount=sum((c.remaining_amount for c in credits), Decimal("0")),
        )


def export_credits_csv(credits: Iterable[Credit]) -> str:
    """Render credits as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for credit in credits:
        writer.writerow(
            [
                credit.id,
                credit.customer.full_name,
                credit.appointment_date.isoformat() if credit.appointment_date else "",
                credit.total_amount,
                credit.paid_amount,
                credit.remaining_amount,
                credit.status.value,
                credit.created_at.date().isoformat() if credit.created_at else "",
            ]
        )
    return buffer.getvalue()
