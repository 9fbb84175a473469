"""Domain layer for shopledger application.

Services are imported lazily: the database layer imports the entities from
this package, and the services import the database layer.
"""

_SERVICES = {
    "LocalReadCache": "shopledger.domain.cache",
    "StockReservationChecker": "shopledger.domain.stock",
    "StockService": "shopledger.domain.stock",
    "CreditLedger": "shopledger.domain.ledger",
    "SalesLog": "shopledger.domain.sales",
    "TransferLog": "shopledger.domain.transfers",
    "DocumentNumberSequencer": "shopledger.domain.numbering",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
