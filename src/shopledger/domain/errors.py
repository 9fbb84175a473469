"""Shared domain error messages and error types."""

from decimal import Decimal
from typing import Optional, Sequence

from shopledger.domain.entities import LineRequest, StockCheckLine


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for callers that only care that an operation was refused.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    def __init__(self, message: str, problems: Sequence[str] = ()):
        super().__init__(message)
        self.problems = list(problems) or [message]


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class StockUnavailable(DomainError):
    """One or more requested lines have no stock at all."""

    title = "Stock unavailable"

    def __init__(self, lines: Sequence[StockCheckLine]):
        self.lines = tuple(lines)
        super().__init__(stock_problem_summary(self.title, self.lines))


class StockWarning(DomainError):
    """Requested lines exceed available stock; operator must confirm."""

    title = "Insufficient stock"

    def __init__(self, lines: Sequence[StockCheckLine]):
        self.lines = tuple(lines)
        super().__init__(stock_problem_summary(self.title, self.lines))


class OverpaymentRejected(DomainError):
    """Payment would push the paid amount above the credit total."""

    def __init__(self, credit_id: Optional[int], amount: Decimal, max_amount: Decimal):
        self.credit_id = credit_id
        self.amount = amount
        self.max_amount = max_amount
        target = f"credit {credit_id}" if credit_id is not None else "the new credit"
        super().__init__(
            f"Payment of {amount} exceeds the remaining balance of {target}; "
            f"maximum acceptable amount is {max_amount}"
        )


class CollaboratorFailure(DomainError):
    """The backing store or stock registry failed to serve a request."""


class PartialCommit(DomainError):
    """Credit was written but stock deduction did not complete.

    The credit is not rolled back. ``failed_lines`` lists the lines whose
    stock still has to be reconciled by hand.
    """

    def __init__(self, credit_id: int, failed_lines: Sequence[LineRequest], reason: str):
        self.credit_id = credit_id
        self.failed_lines = tuple(failed_lines)
        self.reason = reason
        items = ", ".join(f"item {line.item_id} x{line.quantity}" for line in self.failed_lines)
        super().__init__(
            f"Credit {credit_id} was saved but stock was not deducted for {items}: {reason}. "
            "Please reconcile stock manually."
        )


class MovementNotRecorded(DomainError):
    """Stock was deducted but the sale or transfer record was not written."""

    def __init__(self, record: str, item_id: int, quantity: int, reason: str):
        self.record = record
        self.item_id = item_id
        self.quantity = quantity
        self.reason = reason
        super().__init__(
            f"Stock of item {item_id} was reduced by {quantity} but the {record} was not recorded: "
            f"{reason}. Please reconcile stock manually."
        )


def stock_problem_summary(prefix: str, lines: Sequence[StockCheckLine]) -> str:
    """Return a one-line description of stock problems."""
    parts = [
        f"{line.name or f'item {line.item_id}'} (available: {line.available}, requested: {line.requested})"
        for line in lines
    ]
    return f"{prefix}: {'; '.join(parts)}"


def credit_not_found(credit_id: int) -> str:
    """Return message for missing credit."""
    return f"Credit {credit_id} not found"


def item_not_found(item_id: int) -> str:
    """Return message for missing item."""
    return f"Item {item_id} not found"
