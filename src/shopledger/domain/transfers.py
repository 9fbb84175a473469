"""Stock transfer log domain service."""

import csv
import io
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from shopledger.database.base import Database
from shopledger.domain.cache import LocalReadCache
from shopledger.domain.entities import Transfer, TransferKind, TransferStats
from shopledger.domain.errors import (
    CollaboratorFailure,
    MovementNotRecorded,
    NotFoundError,
    ValidationError,
    item_not_found,
)
from shopledger.domain.stock import StockService

logger = logging.getLogger(__name__)

DEFAULT_TRANSFER_LIMIT = 5
CACHED_TRANSFER_LIMIT = 50

TRANSFER_CSV_HEADERS = ["Date", "Item", "Quantity", "From shop", "To shop", "Type", "User"]


def transfers_cache_prefix(shop_id: str) -> str:
    return f"transfers:{shop_id}:"


class TransferLog:
    """Service moving stock out of a shop and keeping the movement history.

    A transfer moves units to another shop, where they are added to the
    item with the same name and category (created if missing). A removal
    only takes units out of stock.
    """

    def __init__(
        self,
        db: Database,
        cache: Optional[LocalReadCache] = None,
        stock_service: Optional[StockService] = None,
    ):
        self.db = db
        self.cache = cache if cache is not None else LocalReadCache()
        self.stock_service = stock_service if stock_service is not None else StockService(db)

    def record_transfer(
        self,
        shop_id: str,
        item_id: int,
        quantity: int,
        kind: TransferKind = TransferKind.TRANSFER,
        to_shop_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Transfer:
        """Move quantity units of an item out of a shop.

        Args:
            shop_id: Shop the stock leaves
            item_id: Item of that shop
            quantity: Units to move, at most the item's current stock
            kind: Transfer to another shop or plain removal
            to_shop_id: Destination shop, required for transfers
            user_id: Staff member moving the stock

        Raises:
            ValidationError: If quantity exceeds stock or the destination is invalid
            NotFoundError: If the item does not belong to the shop
            StockUnavailable: If the stock ran out concurrently
            StockWarning: If the stock shrank below quantity concurrently
            MovementNotRecorded: If stock left the shop but the rest could not be written
        """
        if quantity <= 0:
            raise ValidationError("Transfer quantity must be greater than 0")
        if kind == TransferKind.TRANSFER:
            if not to_shop_id:
                raise ValidationError("A destination shop is required for a transfer")
            if to_shop_id == shop_id:
                raise ValidationError("Destination shop must differ from the source shop")
        else:
            to_shop_id = None

        item = self.stock_service.require_item(item_id)
        if item.shop_id != shop_id:
            raise NotFoundError(item_not_found(item_id))
        if quantity > item.quantity:
            raise ValidationError(
                f"Cannot move {quantity} units of {item.name}: only {max(item.quantity, 0)} in stock"
            )

        self.stock_service.deduct(item_id, quantity)
        try:
            if kind == TransferKind.TRANSFER:
                self._receive(to_shop_id, item.name, item.category, item.price, quantity)
            transfer_id = self.db.create_transfer(
                shop_id=shop_id,
                item_id=item.id,
                item_name=item.name,
                item_category=item.category,
                quantity=quantity,
                kind=kind.value,
                to_shop_id=to_shop_id,
                user_id=user_id,
            )
        except (CollaboratorFailure, NotFoundError) as exc:
            logger.error(
                "Transfer not recorded after stock deduction",
                extra={"shop_id": shop_id, "item_id": item_id, "quantity": quantity},
            )
            raise MovementNotRecorded("transfer", item_id, quantity, str(exc)) from exc

        self.cache.invalidate(transfers_cache_prefix(shop_id))
        if to_shop_id is not None:
            self.cache.invalidate(transfers_cache_prefix(to_shop_id))
        logger.info(
            "Transfer recorded",
            extra={
                "transfer_id": transfer_id,
                "shop_id": shop_id,
                "to_shop_id": to_shop_id,
                "item_id": item_id,
                "quantity": quantity,
                "kind": kind.value,
            },
        )
        return self.db.get_transfer(transfer_id)

    def _receive(
        self, shop_id: str, name: str, category: Optional[str], price: Decimal, quantity: int
    ) -> None:
        """Add units to the matching item of the destination shop, creating it if needed."""
        for candidate in self.stock_service.list_items(shop_id):
            if candidate.name == name and candidate.category == category:
                self.stock_service.restock(candidate.id, quantity)
                return
        self.stock_service.create_item(
            shop_id=shop_id, name=name, price=price, quantity=quantity, category=category
        )

    def list_transfers(self, shop_id: str, limit: int = DEFAULT_TRANSFER_LIMIT) -> list[Transfer]:
        """Most recent transfers out of or into a shop, served from cache within the TTL."""
        transfers = self.cache.get_or_load(
            f"{transfers_cache_prefix(shop_id)}recent",
            lambda: self.db.list_transfers(shop_id, limit=CACHED_TRANSFER_LIMIT),
        )
        if limit > CACHED_TRANSFER_LIMIT:
            return self.db.list_transfers(shop_id, limit=limit)
        return list(transfers[:limit])

    def transfer_stats(self, shop_id: str, today: Optional[date] = None) -> TransferStats:
        """Transfer counts of a shop: total, today, last seven days and per kind.

        Always reads the store.
        """
        today = today or date.today()
        week_start = today - timedelta(days=7)
        transfers = self.db.list_transfers(shop_id)
        by_kind = {kind: 0 for kind in TransferKind}
        for transfer in transfers:
            by_kind[transfer.kind] += 1
        return TransferStats(
            total=len(transfers),
            today=sum(1 for t in transfers if t.created_at.date() == today),
            this_week=sum(1 for t in transfers if t.created_at.date() >= week_start),
            by_kind=by_kind,
        )


def export_transfers_csv(transfers: Iterable[Transfer]) -> str:
    """Render transfers as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(TRANSFER_CSV_HEADERS)
    for transfer in transfers:
        writer.writerow(
            [
                transfer.created_at.date().isoformat(),
                transfer.item_name,
                transfer.quantity,
                transfer.shop_id,
                transfer.to_shop_id or "",
                transfer.kind.value,
                transfer.user_id or "",
            ]
        )
    return buffer.getvalue()
