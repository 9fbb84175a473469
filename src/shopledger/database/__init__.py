"""Database layer for shopledger application."""

from shopledger.database.base import Database
from shopledger.database.counters import CounterStore, JsonFileCounterStore, DatabaseCounterStore
from shopledger.database.factories import create_sqlite_database, create_local_counter_store

__all__ = [
    "Database",
    "CounterStore",
    "JsonFileCounterStore",
    "DatabaseCounterStore",
    "create_sqlite_database",
    "create_local_counter_store",
]
