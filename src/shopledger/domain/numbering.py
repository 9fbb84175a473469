"""Document numbering for quotes and invoices."""

import logging
from datetime import date
from typing import Callable, Optional

from shopledger.database.counters import CounterStore
from shopledger.domain.entities import DocumentKind
from shopledger.domain.errors import ValidationError

logger = logging.getLogger(__name__)

NUMBER_PADDING = 3


def current_year_epoch() -> str:
    return str(date.today().year)


def format_document_number(epoch: str, counter: int) -> str:
    """Format a document number such as ``2025-007``.

    Counters wider than the padding are printed in full.
    """
    return f"{epoch}-{counter:0{NUMBER_PADDING}d}"


def parse_kind(kind: str | DocumentKind) -> DocumentKind:
    """Return the DocumentKind for kind, or raise ValidationError."""
    try:
        return DocumentKind(kind)
    except ValueError:
        valid = ", ".join(k.value for k in DocumentKind)
        raise ValidationError(f"Invalid document kind '{kind}'. Use one of: {valid}")


class DocumentNumberSequencer:
    """Issues ``EPOCH-NNN`` numbers per document kind.

    ``preview`` never writes. ``commit`` is not idempotent: call it exactly
    once per finalized document, a replay leaves a gap in the sequence.
    """

    def __init__(
        self,
        store: CounterStore,
        epoch: Optional[str] = None,
        epoch_provider: Callable[[], str] = current_year_epoch,
    ):
        """Initialize the sequencer.

        Args:
            store: Durable counter store
            epoch: Fixed numbering epoch. If None, epoch_provider is asked on each call
            epoch_provider: Returns the current epoch (calendar year by default)
        """
        self.store = store
        self._epoch = epoch
        self._epoch_provider = epoch_provider

    @property
    def epoch(self) -> str:
        return self._epoch if self._epoch is not None else self._epoch_provider()

    def counter_key(self, kind: str | DocumentKind, epoch: Optional[str] = None) -> str:
        return f"{parse_kind(kind).value}_counter_{epoch or self.epoch}"

    def preview(self, kind: str | DocumentKind) -> str:
        """Return the next number without persisting anything."""
        epoch = self.epoch
        counter = self.store.read_int(self.counter_key(kind, epoch))
        return format_document_number(epoch, counter + 1)

    def commit(self, kind: str | DocumentKind) -> str:
        """Increment the counter, persist it and return the new number."""
        epoch = self.epoch
        counter = self.store.increment(self.counter_key(kind, epoch))
        number = format_document_number(epoch, counter)
        logger.info("Document number issued", extra={"kind": parse_kind(kind).value, "number": number})
        return number

    def current_counters(self) -> dict[str, int]:
        """Current counter value per kind for the active epoch."""
        epoch = self.epoch
        return {kind.value: self.store.read_int(self.counter_key(kind, epoch)) for kind in DocumentKind}

    def reset(self, kind: Optional[str | DocumentKind] = None) -> None:
        """Reset one kind's counter (or all) for the active epoch."""
        kinds = [parse_kind(kind)] if kind is not None else list(DocumentKind)
        epoch = self.epoch
        for k in kinds:
            self.store.remove(self.counter_key(k, epoch))
        logger.info("Document counters reset", extra={"kinds": [k.value for k in kinds], "epoch": epoch})
