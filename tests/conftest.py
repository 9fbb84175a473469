"""Shared pytest fixtures for shopledger tests."""

import tempfile
import os
from decimal import Decimal
import pytest

from shopledger.database.factories import create_sqlite_database
from shopledger.domain.cache import LocalReadCache
from shopledger.domain.entities import CustomerInfo
from shopledger.domain.ledger import CreditLedger
from shopledger.domain.sales import SalesLog
from shopledger.domain.stock import StockService
from shopledger.domain.transfers import TransferLog

SHOP = "main"


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    """Create a LocalReadCache driven by a fake clock."""
    return LocalReadCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def stock_service(temp_db):
    """Create a StockService with a temporary database."""
    return StockService(temp_db)


@pytest.fixture
def ledger(temp_db, cache, stock_service):
    """Create a CreditLedger with a temporary database."""
    return CreditLedger(temp_db, cache=cache, stock_service=stock_service)


@pytest.fixture
def sales_log(temp_db, cache, stock_service):
    """Create a SalesLog with a temporary database."""
    return SalesLog(temp_db, cache=cache, stock_service=stock_service)


@pytest.fixture
def transfer_log(temp_db, cache, stock_service):
    """Create a TransferLog with a temporary database."""
    return TransferLog(temp_db, cache=cache, stock_service=stock_service)


@pytest.fixture
def customer():
    return CustomerInfo(name="Doe", first_name="Jane", address="12 Main Street", phone="555-0100")


@pytest.fixture
def sample_items(stock_service):
    """Create a phone (1000 x5) and a charger (500 x10) and return their IDs."""
    phone_id = stock_service.create_item(
        shop_id=SHOP, name="Phone X", price=Decimal("1000"), quantity=5, category="Phones"
    )
    charger_id = stock_service.create_item(
        shop_id=SHOP, name="Charger", price=Decimal("500"), quantity=10, category="Accessories"
    )
    return {"phone": phone_id, "charger": charger_id}


@pytest.fixture
def counter_path(tmp_path):
    """Path of a not yet existing counter file."""
    return tmp_path / "counters.json"


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
