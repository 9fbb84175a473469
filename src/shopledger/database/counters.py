"""Durable integer counter stores used by document numbering.

The JSON file store keeps counters on the local device only, so two devices
numbering documents at the same time can issue the same number. The
database store lets several terminals share one counter table instead.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from shopledger.database.models import Counter
from shopledger.database.sqlalchemy_db import SQLAlchemyDatabase
from shopledger.domain.errors import CollaboratorFailure

logger = logging.getLogger(__name__)


class CounterStore(ABC):
    """Abstract durable counter store."""

    @abstractmethod
    def read_int(self, key: str) -> int:
        """Read a counter. Missing counters read as 0."""
        pass

    @abstractmethod
    def write_int(self, key: str, value: int) -> None:
        """Persist a counter value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Forget a counter, so it reads as 0 again."""
        pass

    def increment(self, key: str) -> int:
        """Increment a counter and return its new value."""
        value = self.read_int(key) + 1
        self.write_int(key, value)
        return value


class JsonFileCounterStore(CounterStore):
    """Counters persisted as a JSON object in a local file."""

    def __init__(self, path: str | Path):
        """Initialize the store.

        Args:
            path: JSON file path. Created on first write.
        """
        self.path = Path(path)

    def _load(self) -> dict[str, int]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise CollaboratorFailure(f"Could not read counters from {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CollaboratorFailure(f"Counter file {self.path} does not contain a JSON object")
        return {str(k): int(v) for k, v in data.items()}

    def _save(self, counters: dict[str, int]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".counters-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(counters, fh, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise CollaboratorFailure(f"Could not write counters to {self.path}: {exc}") from exc

    def read_int(self, key: str) -> int:
        return self._load().get(key, 0)

    def write_int(self, key: str, value: int) -> None:
        counters = self._load()
        counters[key] = value
        self._save(counters)

    def remove(self, key: str) -> None:
        counters = self._load()
        if counters.pop(key, None) is not None:
            self._save(counters)


class DatabaseCounterStore(CounterStore):
    """Counters kept in the shared ``counters`` table."""

    def __init__(self, db: SQLAlchemyDatabase):
        self.db = db

    def read_int(self, key: str) -> int:
        session = self.db.session()
        try:
            counter = session.get(Counter, key, populate_existing=True)
        except SQLAlchemyError as exc:
            session.rollback()
            raise CollaboratorFailure(f"read_int failed: {exc}") from exc
        return counter.value if counter is not None else 0

    def write_int(self, key: str, value: int) -> None:
        session = self.db.session()
        try:
            counter = session.get(Counter, key)
            if counter is None:
                session.add(Counter(key=key, value=value))
            else:
                counter.value = value
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise CollaboratorFailure(f"write_int failed: {exc}") from exc

    def remove(self, key: str) -> None:
        session = self.db.session()
        try:
            session.query(Counter).filter(Counter.key == key).delete(synchronize_session=False)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise CollaboratorFailure(f"remove failed: {exc}") from exc

    def increment(self, key: str) -> int:
        """Increment and read back the new value inside one transaction."""
        session = self.db.session()
        try:
            updated = (
                session.query(Counter)
                .filter(Counter.key == key)
                .update({Counter.value: Counter.value + 1}, synchronize_session=False)
            )
            if updated == 0:
                session.add(Counter(key=key, value=1))
                session.flush()
            value = session.query(Counter.value).filter(Counter.key == key).scalar()
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise CollaboratorFailure(f"increment failed: {exc}") from exc
        return value
