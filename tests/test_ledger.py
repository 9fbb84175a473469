"""Tests for the credit ledger service."""

import csv
import io
import pytest
from datetime import date
from decimal import Decimal

from shopledger.domain.entities import CreditStatus, CustomerInfo, LineRequest, Payment
from shopledger.domain.errors import (
    CollaboratorFailure,
    NotFoundError,
    OverpaymentRejected,
    PartialCommit,
    StockUnavailable,
    StockWarning,
    ValidationError,
)
from shopledger.domain.ledger import CSV_HEADERS, export_credits_csv, validate_credit_data

SHOP = "main"


def _create(ledger, customer, sample_items, payment=None, **kwargs):
    lines = kwargs.pop(
        "lines", [LineRequest(sample_items["phone"], 2), LineRequest(sample_items["charger"], 1)]
    )
    initial_payment = Payment(amount=Decimal(payment), date=date(2025, 3, 1)) if payment else None
    return ledger.create(shop_id=SHOP, customer=customer, lines=lines, initial_payment=initial_payment, **kwargs)


class TestCreateCredit:
    """Tests for CreditLedger.create."""

    def test_create_with_initial_payment(self, ledger, stock_service, customer, sample_items):
        credit = _create(ledger, customer, sample_items, payment="1000", appointment_date=date(2025, 4, 1))

        assert credit.total_amount == Decimal("2500")
        assert credit.paid_amount == Decimal("1000")
        assert credit.remaining_amount == Decimal("1500")
        assert credit.status == CreditStatus.PARTIAL
        assert credit.appointment_date == date(2025, 4, 1)
        assert credit.customer == customer
        assert [(line.name, line.quantity) for line in credit.lines] == [("Phone X", 2), ("Charger", 1)]
        assert stock_service.get_item(sample_items["phone"]).quantity == 3
        assert stock_service.get_item(sample_items["charger"]).quantity == 9

    def test_create_without_payment_is_pending(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items)
        assert credit.status == CreditStatus.PENDING
        assert credit.payments == ()

    def test_lines_snapshot_item_price(self, ledger, temp_db, customer, sample_items):
        credit = _create(ledger, customer, sample_items)

        # Repricing the item later does not touch the credit
        session = temp_db.session()
        from shopledger.database.models import Item as ORMItem

        session.query(ORMItem).filter(ORMItem.id == sample_items["phone"]).update({ORMItem.price: Decimal("1200")})
        session.commit()

        reloaded = ledger.require(credit.id)
        assert reloaded.lines[0].unit_price == Decimal("1000")
        assert reloaded.total_amount == Decimal("2500")

    def test_zero_stock_blocks_and_writes_nothing(self, ledger, stock_service, customer, sample_items):
        stock_service.set_quantity(sample_items["phone"], 0)

        with pytest.raises(StockUnavailable) as excinfo:
            _create(ledger, customer, sample_items)

        assert [line.item_id for line in excinfo.value.lines] == [sample_items["phone"]]
        assert ledger.list_credits(SHOP) == []
        assert stock_service.get_item(sample_items["phone"]).quantity == 0
        assert stock_service.get_item(sample_items["charger"]).quantity == 10

    def test_unavailable_wins_over_confirmation(self, ledger, stock_service, customer, sample_items):
        stock_service.set_quantity(sample_items["phone"], 0)
        with pytest.raises(StockUnavailable):
            _create(ledger, customer, sample_items, confirmed=True)

    def test_insufficient_stock_requires_confirmation(self, ledger, stock_service, customer, sample_items):
        stock_service.set_quantity(sample_items["phone"], 3)
        lines = [LineRequest(sample_items["phone"], 5)]

        with pytest.raises(StockWarning) as excinfo:
            _create(ledger, customer, sample_items, lines=lines)
        assert excinfo.value.lines[0].available == 3
        assert excinfo.value.lines[0].requested == 5
        assert ledger.list_credits(SHOP) == []
        assert stock_service.get_item(sample_items["phone"]).quantity == 3

        credit = _create(ledger, customer, sample_items, lines=lines, confirmed=True)

        # The full requested quantity is deducted, stock goes negative
        assert credit.lines[0].quantity == 5
        assert credit.total_amount == Decimal("5000")
        assert stock_service.get_item(sample_items["phone"]).quantity == -2

    def test_unknown_item_blocks(self, ledger, customer, sample_items):
        with pytest.raises(StockUnavailable):
            _create(ledger, customer, sample_items, lines=[LineRequest(999, 1)])

    def test_initial_payment_above_total_rejected(self, ledger, stock_service, customer, sample_items):
        with pytest.raises(OverpaymentRejected) as excinfo:
            _create(ledger, customer, sample_items, payment="2501")

        assert excinfo.value.credit_id is None
        assert excinfo.value.max_amount == Decimal("2500")
        assert ledger.list_credits(SHOP) == []
        assert stock_service.get_item(sample_items["phone"]).quantity == 5

    def test_initial_payment_equal_to_total_completes(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items, payment="2500")
        assert credit.status == CreditStatus.COMPLETED

    def test_validation_errors_collected(self, ledger, sample_items):
        customer = CustomerInfo(name="", first_name=" ", address="")
        with pytest.raises(ValidationError) as excinfo:
            ledger.create(shop_id=SHOP, customer=customer, lines=[])

        assert len(excinfo.value.problems) == 4

    def test_partial_commit_when_deduction_fails(self, ledger, stock_service, customer, sample_items, monkeypatch):
        original = stock_service.deduct

        def failing_deduct(item_id, quantity, allow_over_commit=False):
            if item_id == sample_items["charger"]:
                raise CollaboratorFailure("stock registry offline")
            return original(item_id, quantity, allow_over_commit=allow_over_commit)

        monkeypatch.setattr(stock_service, "deduct", failing_deduct)

        with pytest.raises(PartialCommit) as excinfo:
            _create(ledger, customer, sample_items)

        error = excinfo.value
        assert [line.item_id for line in error.failed_lines] == [sample_items["charger"]]
        assert "stock registry offline" in error.reason
        # The credit is kept, only the failed line is left for reconciliation
        assert ledger.get(error.credit_id) is not None
        assert len(ledger.list_credits(SHOP)) == 1
        assert stock_service.get_item(sample_items["phone"]).quantity == 3
        assert stock_service.get_item(sample_items["charger"]).quantity == 10

    def test_stock_sold_out_after_check_is_not_deducted(
        self, ledger, temp_db, stock_service, customer, sample_items, monkeypatch
    ):
        original = temp_db.create_credit

        def create_after_sell_out(**kwargs):
            # Another terminal sells the last phones between the check and the write
            temp_db.set_item_quantity(sample_items["phone"], 0)
            return original(**kwargs)

        monkeypatch.setattr(temp_db, "create_credit", create_after_sell_out)

        with pytest.raises(PartialCommit) as excinfo:
            _create(ledger, customer, sample_items)

        assert [line.item_id for line in excinfo.value.failed_lines] == [sample_items["phone"]]
        assert stock_service.get_item(sample_items["phone"]).quantity == 0
        assert stock_service.get_item(sample_items["charger"]).quantity == 9

    def test_unconfirmed_shortage_after_check_is_not_over_committed(
        self, ledger, temp_db, stock_service, customer, sample_items, monkeypatch
    ):
        original = temp_db.create_credit

        def create_after_partial_sale(**kwargs):
            temp_db.set_item_quantity(sample_items["phone"], 1)
            return original(**kwargs)

        monkeypatch.setattr(temp_db, "create_credit", create_after_partial_sale)

        with pytest.raises(PartialCommit):
            _create(ledger, customer, sample_items)

        assert stock_service.get_item(sample_items["phone"]).quantity == 1

    @pytest.mark.parametrize("amount", ["100.005", "0.001"])
    def test_sub_cent_initial_payment_rejected(self, ledger, stock_service, customer, sample_items, amount):
        with pytest.raises(ValidationError, match="two decimal places"):
            _create(ledger, customer, sample_items, payment=amount)

        assert ledger.list_credits(SHOP) == []
        assert stock_service.get_item(sample_items["phone"]).quantity == 5


class TestPayments:
    """Tests for CreditLedger.add_payment."""

    def test_payment_sequence(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items, payment="1000")

        with pytest.raises(OverpaymentRejected) as excinfo:
            ledger.add_payment(credit.id, Decimal("1501"))
        assert excinfo.value.max_amount == Decimal("1500")
        assert ledger.require(credit.id).paid_amount == Decimal("1000")

        updated = ledger.add_payment(credit.id, Decimal("1500"), payment_date=date(2025, 3, 10), comment="cash")

        assert updated.paid_amount == Decimal("2500")
        assert updated.remaining_amount == Decimal("0")
        assert updated.status == CreditStatus.COMPLETED
        assert updated.payments[-1].comment == "cash"
        assert updated.payments[-1].date == date(2025, 3, 10)

    def test_payment_on_completed_credit_rejected(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items, payment="2500")
        with pytest.raises(OverpaymentRejected):
            ledger.add_payment(credit.id, Decimal("1"))

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_non_positive_payment_rejected(self, ledger, customer, sample_items, amount):
        credit = _create(ledger, customer, sample_items)
        with pytest.raises(ValidationError):
            ledger.add_payment(credit.id, Decimal(amount))

    def test_payment_on_missing_credit(self, ledger):
        with pytest.raises(NotFoundError, match="Credit 404 not found"):
            ledger.add_payment(404, Decimal("10"))

    def test_payment_defaults_to_today(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items)
        updated = ledger.add_payment(credit.id, Decimal("100"))
        assert updated.payments[0].date == date.today()

    @pytest.mark.parametrize("amount", ["0.004", "10.005"])
    def test_sub_cent_payment_rejected(self, ledger, customer, sample_items, amount):
        credit = _create(ledger, customer, sample_items)

        with pytest.raises(ValidationError, match="two decimal places"):
            ledger.add_payment(credit.id, Decimal(amount))
        assert ledger.require(credit.id).payments == ()

    def test_trailing_zero_cents_accepted(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items)
        updated = ledger.add_payment(credit.id, Decimal("100.500"))
        assert updated.paid_amount == Decimal("100.50")

    def test_payment_bumps_version(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items)
        updated = ledger.add_payment(credit.id, Decimal("100"))
        assert updated.version == credit.version + 1

    def test_concurrent_payment_cannot_overpay(self, ledger, temp_db, customer, sample_items, monkeypatch):
        credit = _create(ledger, customer, sample_items)
        original = temp_db.append_payment
        calls = []

        def append_after_other_terminal(credit_id, payment, expected_version=None):
            calls.append(expected_version)
            if len(calls) == 1:
                # Another terminal records 2000 after our balance check
                original(credit_id, Payment(amount=Decimal("2000"), date=date(2025, 3, 2)))
            return original(credit_id, payment, expected_version=expected_version)

        monkeypatch.setattr(temp_db, "append_payment", append_after_other_terminal)

        with pytest.raises(OverpaymentRejected) as excinfo:
            ledger.add_payment(credit.id, Decimal("1000"))

        assert excinfo.value.max_amount == Decimal("500")
        assert len(calls) == 1
        reloaded = ledger.require(credit.id)
        assert reloaded.paid_amount == Decimal("2000")
        assert reloaded.paid_amount <= reloaded.total_amount

    def test_payment_retried_after_concurrent_change(self, ledger, temp_db, customer, sample_items, monkeypatch):
        credit = _create(ledger, customer, sample_items)
        original = temp_db.append_payment
        calls = []

        def append_after_other_terminal(credit_id, payment, expected_version=None):
            calls.append(expected_version)
            if len(calls) == 1:
                original(credit_id, Payment(amount=Decimal("100"), date=date(2025, 3, 2)))
            return original(credit_id, payment, expected_version=expected_version)

        monkeypatch.setattr(temp_db, "append_payment", append_after_other_terminal)

        updated = ledger.add_payment(credit.id, Decimal("500"))

        assert calls == [credit.version, credit.version + 1]
        assert updated.paid_amount == Decimal("600")
        assert len(updated.payments) == 2

    def test_payment_gives_up_after_max_attempts(self, ledger, temp_db, customer, sample_items, monkeypatch):
        credit = _create(ledger, customer, sample_items)
        monkeypatch.setattr(temp_db, "append_payment", lambda credit_id, payment, expected_version=None: None)

        with pytest.raises(CollaboratorFailure, match="after 3 attempts"):
            ledger.add_payment(credit.id, Decimal("100"))
        assert ledger.require(credit.id).payments == ()


class TestCloseAndDelete:
    """Tests for closing and deleting credits."""

    def test_close_settled_credit(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items, payment="2500")
        closed = ledger.close(credit.id)
        assert closed.closed is True
        assert closed.status == CreditStatus.COMPLETED

    def test_close_with_balance_requires_force(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items, payment="1000")

        with pytest.raises(ValidationError, match="remaining balance"):
            ledger.close(credit.id)

        closed = ledger.close(credit.id, force=True)
        assert closed.status == CreditStatus.COMPLETED
        assert closed.remaining_amount == Decimal("1500")

    def test_close_twice_is_noop(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items, payment="2500")
        ledger.close(credit.id)
        assert ledger.close(credit.id).closed is True

    def test_delete_does_not_restore_stock(self, ledger, stock_service, customer, sample_items):
        credit = _create(ledger, customer, sample_items)
        ledger.delete(credit.id)

        assert ledger.get(credit.id) is None
        assert ledger.list_credits(SHOP) == []
        assert stock_service.get_item(sample_items["phone"]).quantity == 3

    def test_delete_missing_credit(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.delete(1)


class TestQueries:
    """Tests for listing, searching and stats."""

    def test_list_newest_first_and_status_filter(self, ledger, customer, sample_items):
        first = _create(ledger, customer, sample_items, payment="1000")
        second = _create(ledger, customer, sample_items)

        assert [c.id for c in ledger.list_credits(SHOP)] == [second.id, first.id]
        assert [c.id for c in ledger.list_credits(SHOP, CreditStatus.PARTIAL)] == [first.id]
        assert [c.id for c in ledger.list_credits(SHOP, CreditStatus.PENDING)] == [second.id]
        assert ledger.list_credits("other") == []

    def test_list_is_refreshed_after_mutation(self, ledger, customer, sample_items):
        credit = _create(ledger, customer, sample_items)
        assert ledger.list_credits(SHOP)[0].status == CreditStatus.PENDING

        ledger.add_payment(credit.id, Decimal("500"))

        assert ledger.list_credits(SHOP)[0].status == CreditStatus.PARTIAL

    def test_list_served_from_cache_until_ttl(self, ledger, temp_db, clock, customer, sample_items):
        credit = _create(ledger, customer, sample_items)
        ledger.list_credits(SHOP)

        # Write behind the ledger's back: the cached list stays stale until expiry
        temp_db.append_payment(credit.id, Payment(amount=Decimal("100"), date=date(2025, 3, 2)))
        assert ledger.list_credits(SHOP)[0].paid_amount == Decimal("0")

        clock.advance(301)
        assert ledger.list_credits(SHOP)[0].paid_amount == Decimal("100")

    def test_get_always_reads_store(self, ledger, temp_db, customer, sample_items):
        credit = _create(ledger, customer, sample_items)
        ledger.list_credits(SHOP)
        temp_db.append_payment(credit.id, Payment(amount=Decimal("100"), date=date(2025, 3, 2)))
        assert ledger.get(credit.id).paid_amount == Decimal("100")

    def test_search_by_name_or_first_name(self, ledger, customer, sample_items):
        _create(ledger, customer, sample_items)
        other = CustomerInfo(name="Smith", first_name="Paul", address="4 Hill Road")
        _create(ledger, other, sample_items, lines=[LineRequest(sample_items["charger"], 1)])

        assert [c.customer.name for c in ledger.search(SHOP, "doe")] == ["Doe"]
        assert [c.customer.name for c in ledger.search(SHOP, "PAUL")] == ["Smith"]
        assert ledger.search(SHOP, "nobody") == []

    def test_stats(self, ledger, customer, sample_items):
        _create(ledger, customer, sample_items)
        _create(ledger, customer, sample_items, payment="1000")
        _create(ledger, customer, sample_items, lines=[LineRequest(sample_items["charger"], 1)], payment="500")

        stats = ledger.stats(SHOP)

        assert stats.total_credits == 3
        assert stats.pending_credits == 1
        assert stats.partial_credits == 1
        assert stats.completed_credits == 1
        assert stats.total_amount == Decimal("5500")
        assert stats.paid_amount == Decimal("1500")
        assert stats.remaining_amount == Decimal("4000")

    def test_export_csv(self, ledger, customer, sample_items):
        _create(ledger, customer, sample_items, payment="1000", appointment_date=date(2025, 4, 1))

        rows = list(csv.reader(io.StringIO(export_credits_csv(ledger.list_credits(SHOP)))))

        assert rows[0] == CSV_HEADERS
        assert len(rows) == 2
        assert rows[1][1] == "Doe Jane"
        assert rows[1][2] == "2025-04-01"
        assert Decimal(rows[1][3]) == Decimal("2500")
        assert Decimal(rows[1][5]) == Decimal("1500")
        assert rows[1][6] == "partial"


def test_validate_credit_data_duplicates_and_quantities():
    customer = CustomerInfo(name="Doe", first_name="Jane", address="x")
    problems = validate_credit_data(customer, [LineRequest(1, 1), LineRequest(1, 0)])

    assert "Quantity of item 2 must be greater than 0" in problems
    assert "Item 1 appears more than once" in problems


def test_validate_credit_data_accepts_valid_input():
    customer = CustomerInfo(name="Doe", first_name="Jane", address="x")
    assert validate_credit_data(customer, [LineRequest(1, 2)]) == []
