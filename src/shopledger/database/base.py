"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from shopledger.domain.entities import (
    CreditLine,
    Credit,
    CustomerInfo,
    Item,
    Payment,
    Sale,
    Transfer,
)


class Database(ABC):
    """Abstract database interface for shopledger.

    Implementations raise ``CollaboratorFailure`` when the underlying store
    cannot serve a request.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Stock registry operations
    @abstractmethod
    def create_item(
        self,
        shop_id: str,
        name: str,
        price: Decimal,
        quantity: int,
        category: Optional[str] = None,
    ) -> int:
        """Create a stock item. Returns item ID."""
        pass

    @abstractmethod
    def get_item(self, item_id: int) -> Optional[Item]:
        """Get item by ID."""
        pass

    @abstractmethod
    def list_items(self, shop_id: str) -> list[Item]:
        """List all items of a shop."""
        pass

    @abstractmethod
    def set_item_quantity(self, item_id: int, quantity: int) -> None:
        """Overwrite the quantity of an item."""
        pass

    @abstractmethod
    def compare_and_set_item_quantity(self, item_id: int, expected: int, quantity: int) -> bool:
        """Set item quantity only if it currently equals expected.

        Returns:
            True if the update was applied, False if the stored quantity
            changed in the meantime (or the item no longer exists)
        """
        pass

    # Credit operations
    @abstractmethod
    def create_credit(
        self,
        shop_id: str,
        customer: CustomerInfo,
        appointment_date: Optional[date],
        lines: Sequence[CreditLine],
        total_amount: Decimal,
        payments: Sequence[Payment] = (),
    ) -> int:
        """Create a credit with its lines and initial payments in one write. Returns credit ID."""
        pass

    @abstractmethod
    def get_credit(self, credit_id: int) -> Optional[Credit]:
        """Get credit by ID, including lines and payments."""
        pass

    @abstractmethod
    def list_credits(self, shop_id: str) -> list[Credit]:
        """List all credits of a shop, newest first."""
        pass

    @abstractmethod
    def append_payment(
        self, credit_id: int, payment: Payment, expected_version: Optional[int] = None
    ) -> Optional[int]:
        """Append a payment to a credit and bump its version.

        With ``expected_version`` the payment is only written if the credit
        still has that version.

        Returns:
            Payment ID, or None if the credit version changed in the meantime

        Raises:
            NotFoundError: If the credit does not exist
        """
        pass

    @abstractmethod
    def mark_credit_closed(self, credit_id: int) -> None:
        """Flag a credit as closed by the operator."""
        pass

    @abstractmethod
    def delete_credit(self, credit_id: int) -> None:
        """Delete a credit with its lines and payments."""
        pass

    # Sale operations
    @abstractmethod
    def create_sale(
        self,
        shop_id: str,
        item_id: int,
        item_name: str,
        item_category: Optional[str],
        quantity: int,
        unit_price: Decimal,
        sale_date: date,
        user_id: Optional[str] = None,
    ) -> int:
        """Record a direct sale. Returns sale ID."""
        pass

    @abstractmethod
    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get sale by ID."""
        pass

    @abstractmethod
    def list_sales(
        self,
        shop_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[Sale]:
        """List sales of a shop, newest first, with optional date filters."""
        pass

    # Transfer operations
    @abstractmethod
    def create_transfer(
        self,
        shop_id: str,
        item_id: int,
        item_name: str,
        item_category: Optional[str],
        quantity: int,
        kind: str,
        to_shop_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> int:
        """Record a stock transfer or removal. Returns transfer ID."""
        pass

    @abstractmethod
    def get_transfer(self, transfer_id: int) -> Optional[Transfer]:
        """Get transfer by ID."""
        pass

    @abstractmethod
    def list_transfers(self, shop_id: str, limit: Optional[int] = None) -> list[Transfer]:
        """List transfers out of or into a shop, newest first."""
        pass
