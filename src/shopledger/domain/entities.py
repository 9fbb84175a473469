"""Domain model entities for shopledger.

These are pure data classes representing business concepts, independent of
database schema. Derived amounts and the settlement status of a credit are
computed from the stored facts rather than persisted next to them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

CENT = Decimal("0.01")


class CreditStatus(str, Enum):
    """Settlement status of a credit."""

    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


class StockAvailability(str, Enum):
    """Classification of a requested line against current stock."""

    OK = "ok"
    INSUFFICIENT = "insufficient"
    UNAVAILABLE = "unavailable"


class StockOutcome(str, Enum):
    """Overall outcome of a stock reservation check."""

    OK = "ok"
    WARN = "warn"
    BLOCKING = "blocking"


class DocumentKind(str, Enum):
    """Kinds of numbered documents."""

    QUOTE = "quote"
    INVOICE = "invoice"


class TransferKind(str, Enum):
    """Kinds of stock movement out of a shop or depot."""

    TRANSFER = "transfer"
    REMOVE = "remove"


def has_sub_cent_digits(amount: Decimal) -> bool:
    """True if amount carries significant digits below one cent.

    Trailing zeros do not count, so ``Decimal("1.500")`` is accepted.
    """
    return amount != amount.quantize(CENT)


@dataclass(frozen=True)
class Item:
    """Stock item domain entity."""

    id: int
    shop_id: str
    name: str
    category: Optional[str]
    price: Decimal
    quantity: int
    created_at: datetime


@dataclass(frozen=True)
class CustomerInfo:
    """Customer details recorded on a credit."""

    name: str
    first_name: str
    address: str
    phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.first_name}"


@dataclass(frozen=True)
class LineRequest:
    """A requested (item, quantity) pair before it becomes a credit line."""

    item_id: int
    quantity: int


@dataclass(frozen=True)
class CreditLine:
    """A snapshot of one item on a credit.

    Name and unit price are copied from the item at creation time and never
    re-derived afterwards.
    """

    item_id: int
    name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Payment:
    """A payment applied to a credit. Payments are append-only."""

    amount: Decimal
    date: date
    comment: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class Credit:
    """Credit aggregate root.

    ``total_amount`` is frozen at creation. Everything else about the
    balance is derived from ``payments`` on access.
    """

    id: int
    shop_id: str
    customer: CustomerInfo
    appointment_date: Optional[date]
    lines: tuple[CreditLine, ...]
    total_amount: Decimal
    payments: tuple[Payment, ...] = ()
    closed: bool = False
    created_at: Optional[datetime] = None
    # Bumped by every payment; used for conditional appends
    version: int = 0

    @property
    def paid_amount(self) -> Decimal:
        return sum((p.amount for p in self.payments), Decimal("0"))

    @property
    def remaining_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount

    @property
    def status(self) -> CreditStatus:
        if self.closed or self.remaining_amount <= 0:
            return CreditStatus.COMPLETED
        if self.paid_amount == 0:
            return CreditStatus.PENDING
        return CreditStatus.PARTIAL


@dataclass(frozen=True)
class StockCheckLine:
    """Result of checking one requested line against stock."""

    item_id: int
    name: Optional[str]
    requested: int
    available: int
    availability: StockAvailability


@dataclass(frozen=True)
class StockCheckResult:
    """Result of a stock reservation check over a set of lines."""

    lines: tuple[StockCheckLine, ...]

    @property
    def outcome(self) -> StockOutcome:
        availabilities = {line.availability for line in self.lines}
        if StockAvailability.UNAVAILABLE in availabilities:
            return StockOutcome.BLOCKING
        if StockAvailability.INSUFFICIENT in availabilities:
            return StockOutcome.WARN
        return StockOutcome.OK

    @property
    def problem_lines(self) -> tuple[StockCheckLine, ...]:
        """Lines that are not fully covered by current stock."""
        return tuple(line for line in self.lines if line.availability != StockAvailability.OK)


@dataclass(frozen=True)
class CreditStats:
    """Aggregated figures over all credits of a shop."""

    total_credits: int = 0
    pending_credits: int = 0
    partial_credits: int = 0
    completed_credits: int = 0
    total_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    paid_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    remaining_amount: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass(frozen=True)
class Sale:
    """Direct sale record domain entity."""

    id: int
    shop_id: str
    item_id: int
    item_name: str
    item_category: Optional[str]
    quantity: int
    unit_price: Decimal
    sale_date: date
    user_id: Optional[str]
    created_at: datetime

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Transfer:
    """Stock moved out of a shop, either to another shop or removed."""

    id: int
    shop_id: str
    item_id: int
    item_name: str
    item_category: Optional[str]
    quantity: int
    kind: TransferKind
    to_shop_id: Optional[str]
    user_id: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class TransferStats:
    """Transfer counts of a shop."""

    total: int = 0
    today: int = 0
    this_week: int = 0
    by_kind: dict[TransferKind, int] = field(default_factory=dict)
