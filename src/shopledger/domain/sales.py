"""Direct sales log domain service."""

import logging
from datetime import date
from typing import Optional

from shopledger.database.base import Database
from shopledger.domain.cache import LocalReadCache
from shopledger.domain.entities import LineRequest, Sale, StockOutcome
from shopledger.domain.errors import (
    CollaboratorFailure,
    MovementNotRecorded,
    StockUnavailable,
    StockWarning,
    ValidationError,
)
from shopledger.domain.stock import StockReservationChecker, StockService

logger = logging.getLogger(__name__)

DEFAULT_SALES_LIMIT = 50


def sales_cache_prefix(shop_id: str) -> str:
    return f"sales:{shop_id}:"


class SalesLog:
    """Service recording direct (fully paid) sales."""

    def __init__(
        self,
        db: Database,
        cache: Optional[LocalReadCache] = None,
        stock_service: Optional[StockService] = None,
    ):
        self.db = db
        self.cache = cache if cache is not None else LocalReadCache()
        self.stock_service = stock_service if stock_service is not None else StockService(db)
        self.checker = StockReservationChecker(db)

    def record_sale(
        self,
        shop_id: str,
        item_id: int,
        quantity: int,
        sale_date: Optional[date] = None,
        user_id: Optional[str] = None,
        confirmed: bool = False,
    ) -> Sale:
        """Sell quantity units of an item at its current price.

        Stock is checked first, the same way credits are, and re-checked
        by the deduction itself. The sale is recorded after the stock was
        deducted, so a failed deduction never leaves a sale without its
        stock movement.

        Raises:
            ValidationError: If quantity is not positive
            StockUnavailable: If the item has no stock
            StockWarning: If stock is short and confirmed is False
            MovementNotRecorded: If stock was deducted but the sale could not be written
        """
        if quantity <= 0:
            raise ValidationError("Sale quantity must be greater than 0")

        result = self.checker.check([LineRequest(item_id=item_id, quantity=quantity)])
        if result.outcome == StockOutcome.BLOCKING:
            raise StockUnavailable(result.problem_lines)
        if result.outcome == StockOutcome.WARN and not confirmed:
            raise StockWarning(result.problem_lines)

        item = self.stock_service.require_item(item_id)
        self.stock_service.deduct(item_id, quantity, allow_over_commit=confirmed)
        try:
            sale_id = self.db.create_sale(
                shop_id=shop_id,
                item_id=item.id,
                item_name=item.name,
                item_category=item.category,
                quantity=quantity,
                unit_price=item.price,
                sale_date=sale_date or date.today(),
                user_id=user_id,
            )
        except CollaboratorFailure as exc:
            logger.error(
                "Sale not recorded after stock deduction",
                extra={"shop_id": shop_id, "item_id": item_id, "quantity": quantity},
            )
            raise MovementNotRecorded("sale", item_id, quantity, str(exc)) from exc
        self.cache.invalidate(sales_cache_prefix(shop_id))
        logger.info(
            "Sale recorded",
            extra={"sale_id": sale_id, "shop_id": shop_id, "item_id": item_id, "quantity": quantity},
        )

        return self.db.get_sale(sale_id)

    def list_sales(self, shop_id: str, limit: int = DEFAULT_SALES_LIMIT) -> list[Sale]:
        """Most recent sales of a shop, served from cache within the TTL."""
        sales = self.cache.get_or_load(
            f"{sales_cache_prefix(shop_id)}recent", lambda: self.db.list_sales(shop_id)
        )
        return list(sales[:limit])

    def sales_by_period(self, shop_id: str, start_date: Optional[date], end_date: Optional[date]) -> list[Sale]:
        """Sales of a shop within a date range. Always reads the store."""
        return self.db.list_sales(shop_id, start_date=start_date, end_date=end_date)
