"""Stock registry service and reservation checks."""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from shopledger.config import DEFAULT_STOCK_RETRY_ATTEMPTS
from shopledger.database.base import Database
from shopledger.domain.entities import (
    Item,
    LineRequest,
    StockAvailability,
    StockCheckLine,
    StockCheckResult,
    has_sub_cent_digits,
)
from shopledger.domain.errors import (
    CollaboratorFailure,
    NotFoundError,
    StockUnavailable,
    StockWarning,
    ValidationError,
    item_not_found,
)

logger = logging.getLogger(__name__)


def classify(requested: int, available: int) -> StockAvailability:
    """Classify a requested quantity against available stock."""
    if available <= 0:
        return StockAvailability.UNAVAILABLE
    if available < requested:
        return StockAvailability.INSUFFICIENT
    return StockAvailability.OK


class StockReservationChecker:
    """Advisory comparison of requested quantities against live stock.

    The checker never writes. Its answer is only valid for the moment it was
    computed, so callers re-run it right before committing.
    """

    def __init__(self, db: Database):
        self.db = db

    def check(self, requests: Sequence[LineRequest]) -> StockCheckResult:
        """Check every requested line against current item quantities.

        Unknown items are reported as unavailable with zero stock.
        """
        lines = []
        for request in requests:
            item = self.db.get_item(request.item_id)
            available = item.quantity if item is not None else 0
            lines.append(
                StockCheckLine(
                    item_id=request.item_id,
                    name=item.name if item is not None else None,
                    requested=request.quantity,
                    available=available,
                    availability=classify(request.quantity, available),
                )
            )
        return StockCheckResult(lines=tuple(lines))


class StockService:
    """Service for managing stock items."""

    def __init__(self, db: Database, max_attempts: int = DEFAULT_STOCK_RETRY_ATTEMPTS):
        """Initialize stock service.

        Args:
            db: Database instance
            max_attempts: Attempts for a conditional quantity update before giving up
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.db = db
        self.max_attempts = max_attempts

    def create_item(
        self,
        shop_id: str,
        name: str,
        price: Decimal,
        quantity: int,
        category: Optional[str] = None,
    ) -> int:
        """Create a new stock item.

        Raises:
            ValidationError: If name is empty, price or quantity negative,
                or price finer than a cent
        """
        if not name or not name.strip():
            raise ValidationError("Item name is required")
        if price < 0:
            raise ValidationError("Item price cannot be negative")
        if has_sub_cent_digits(price):
            raise ValidationError("Item price cannot have more than two decimal places")
        if quantity < 0:
            raise ValidationError("Item quantity cannot be negative")
        return self.db.create_item(
            shop_id=shop_id, name=name.strip(), price=price, quantity=quantity, category=category
        )

    def get_item(self, item_id: int) -> Optional[Item]:
        return self.db.get_item(item_id)

    def require_item(self, item_id: int) -> Item:
        """Get item by ID or raise NotFoundError."""
        item = self.db.get_item(item_id)
        if item is None:
            raise NotFoundError(item_not_found(item_id))
        return item

    def list_items(self, shop_id: str) -> list[Item]:
        return self.db.list_items(shop_id)

    def set_quantity(self, item_id: int, quantity: int) -> None:
        """Overwrite an item's quantity (stock count correction).

        Raises:
            ValidationError: If quantity is negative
            NotFoundError: If item does not exist
        """
        if quantity < 0:
            raise ValidationError("Item quantity cannot be negative")
        self.require_item(item_id)
        self.db.set_item_quantity(item_id, quantity)

    def deduct(self, item_id: int, quantity: int, allow_over_commit: bool = False) -> int:
        """Deduct quantity from an item with a conditional update.

        Availability is re-checked against the quantity read on every
        attempt. An item with no stock is never deducted. With
        ``allow_over_commit`` a confirmed over-request is deducted in full,
        so stock may go negative. A concurrent change between the read and
        the write is retried up to ``max_attempts`` times.

        Returns:
            The new item quantity

        Raises:
            NotFoundError: If the item no longer exists
            StockUnavailable: If the item has no stock left
            StockWarning: If stock is short and allow_over_commit is False
            CollaboratorFailure: If every attempt lost the race
        """
        for attempt in range(1, self.max_attempts + 1):
            item = self.require_item(item_id)
            availability = classify(quantity, item.quantity)
            if availability != StockAvailability.OK:
                line = StockCheckLine(
                    item_id=item.id,
                    name=item.name,
                    requested=quantity,
                    available=item.quantity,
                    availability=availability,
                )
                if availability == StockAvailability.UNAVAILABLE:
                    raise StockUnavailable([line])
                if not allow_over_commit:
                    raise StockWarning([line])
            new_quantity = item.quantity - quantity
            if self.db.compare_and_set_item_quantity(item_id, item.quantity, new_quantity):
                if new_quantity < 0:
                    logger.warning(
                        "Stock over-committed",
                        extra={"item_id": item_id, "quantity": new_quantity},
                    )
                return new_quantity
            logger.warning(
                "Stock changed concurrently, retrying",
                extra={"item_id": item_id, "attempt": attempt},
            )
        raise CollaboratorFailure(
            f"Could not deduct stock for item {item_id} after {self.max_attempts} attempts"
        )

    def restock(self, item_id: int, quantity: int) -> int:
        """Add quantity to an item with the same conditional update as deduct.

        Returns:
            The new item quantity
        """
        if quantity <= 0:
            raise ValidationError("Restock quantity must be greater than 0")
        for attempt in range(1, self.max_attempts + 1):
            item = self.require_item(item_id)
            new_quantity = item.quantity + quantity
            if self.db.compare_and_set_item_quantity(item_id, item.quantity, new_quantity):
                return new_quantity
            logger.warning(
                "Stock changed concurrently, retrying",
                extra={"item_id": item_id, "attempt": attempt},
            )
        raise CollaboratorFailure(
            f"Could not restock item {item_id} after {self.max_attempts} attempts"
        )
