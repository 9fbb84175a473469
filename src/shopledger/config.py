"""Runtime configuration read from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from shopledger.domain.cache import DEFAULT_TTL_SECONDS

DEFAULT_SHOP_ID = "main"
DEFAULT_STOCK_RETRY_ATTEMPTS = 3


def default_data_dir() -> Path:
    """Return ~/.shopledger, creating it if needed."""
    data_dir = Path.home() / ".shopledger"
    data_dir.mkdir(exist_ok=True)
    return data_dir


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Paths left as None fall back to files under ~/.shopledger when used.
    """

    db_path: Optional[str] = None
    counter_path: Optional[str] = None
    shop_id: str = DEFAULT_SHOP_ID
    cache_ttl_seconds: float = DEFAULT_TTL_SECONDS
    numbering_epoch: Optional[str] = None
    stock_retry_attempts: int = DEFAULT_STOCK_RETRY_ATTEMPTS
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from SHOPLEDGER_* environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        try:
            ttl = float(env.get("SHOPLEDGER_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS))
            attempts = int(env.get("SHOPLEDGER_STOCK_RETRY_ATTEMPTS", DEFAULT_STOCK_RETRY_ATTEMPTS))
        except ValueError as e:
            raise ValueError(f"Invalid numeric setting: {e}")
        if attempts < 1:
            raise ValueError("SHOPLEDGER_STOCK_RETRY_ATTEMPTS must be at least 1")
        return cls(
            db_path=env.get("SHOPLEDGER_DB_PATH"),
            counter_path=env.get("SHOPLEDGER_COUNTER_PATH"),
            shop_id=env.get("SHOPLEDGER_SHOP", DEFAULT_SHOP_ID),
            cache_ttl_seconds=ttl,
            numbering_epoch=env.get("SHOPLEDGER_NUMBERING_EPOCH") or None,
            stock_retry_attempts=attempts,
            log_level=env.get("SHOPLEDGER_LOG_LEVEL", "WARNING").upper(),
        )

    def resolved_counter_path(self) -> Path:
        if self.counter_path is not None:
            return Path(self.counter_path)
        return default_data_dir() / "counters.json"
