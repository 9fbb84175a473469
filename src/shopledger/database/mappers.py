"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the entities never carry ORM
state and derived credit figures are computed on the domain side.
"""

from shopledger.domain import entities as domain
from shopledger.database.models import (
    Item as ORMItem,
    Credit as ORMCredit,
    CreditLine as ORMCreditLine,
    Payment as ORMPayment,
    Sale as ORMSale,
    Transfer as ORMTransfer,
)


def item_to_domain(orm_item: ORMItem) -> domain.Item:
    """Convert SQLAlchemy Item model to domain Item entity."""
    return domain.Item(
        id=orm_item.id,
        shop_id=orm_item.shop_id,
        name=orm_item.name,
        category=orm_item.category,
        price=orm_item.price,
        quantity=orm_item.quantity,
        created_at=orm_item.created_at,
    )


def credit_line_to_domain(orm_line: ORMCreditLine) -> domain.CreditLine:
    """Convert SQLAlchemy CreditLine model to domain CreditLine entity."""
    return domain.CreditLine(
        item_id=orm_line.item_id,
        name=orm_line.name,
        quantity=orm_line.quantity,
        unit_price=orm_line.unit_price,
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        amount=orm_payment.amount,
        date=orm_payment.date,
        comment=orm_payment.comment,
    )


def credit_to_domain(orm_credit: ORMCredit) -> domain.Credit:
    """Convert SQLAlchemy Credit model (with lines and payments) to domain Credit entity."""
    return domain.Credit(
        id=orm_credit.id,
        shop_id=orm_credit.shop_id,
        customer=domain.CustomerInfo(
            name=orm_credit.customer_name,
            first_name=orm_credit.customer_first_name,
            address=orm_credit.customer_address,
            phone=orm_credit.customer_phone,
        ),
        appointment_date=orm_credit.appointment_date,
        lines=tuple(credit_line_to_domain(line) for line in orm_credit.lines),
        total_amount=orm_credit.total_amount,
        payments=tuple(payment_to_domain(p) for p in orm_credit.payments),
        closed=orm_credit.closed,
        created_at=orm_credit.created_at,
        version=orm_credit.version,
    )


def sale_to_domain(orm_sale: ORMSale) -> domain.Sale:
    """Convert SQLAlchemy Sale model to domain Sale entity."""
    return domain.Sale(
        id=orm_sale.id,
        shop_id=orm_sale.shop_id,
        item_id=orm_sale.item_id,
        item_name=orm_sale.item_name,
        item_category=orm_sale.item_category,
        quantity=orm_sale.quantity,
        unit_price=orm_sale.unit_price,
        sale_date=orm_sale.sale_date,
        user_id=orm_sale.user_id,
        created_at=orm_sale.created_at,
    )


def transfer_to_domain(orm_transfer: ORMTransfer) -> domain.Transfer:
    """Convert SQLAlchemy Transfer model to domain Transfer entity."""
    return domain.Transfer(
        id=orm_transfer.id,
        shop_id=orm_transfer.shop_id,
        item_id=orm_transfer.item_id,
        item_name=orm_transfer.item_name,
        item_category=orm_transfer.item_category,
        quantity=orm_transfer.quantity,
        kind=domain.TransferKind(orm_transfer.kind),
        to_shop_id=orm_transfer.to_shop_id,
        user_id=orm_transfer.user_id,
        created_at=orm_transfer.created_at,
    )
