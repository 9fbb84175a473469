"""Structured JSON logging for the command line application."""

import logging
from datetime import datetime, UTC
from typing import Any, Optional, TextIO

from pythonjsonlogger.json import JsonFormatter


class ShopLedgerJsonFormatter(JsonFormatter):
    """JSON formatter adding timestamp, level and service name."""

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "shopledger"


def setup_logging(level: str = "WARNING", stream: Optional[TextIO] = None) -> None:
    """Configure JSON logging for the shopledger loggers.

    Args:
        level: Log level name
        stream: Stream to write to, stderr by default so command output on
            stdout stays clean
    """
    logger = logging.getLogger("shopledger")
    logger.setLevel(level.upper())
    logger.handlers.clear()

    handler = logging.StreamHandler(stream)
    handler.setFormatter(ShopLedgerJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    logger.addHandler(handler)


def reset_logging() -> None:
    """Detach the handlers installed by setup_logging."""
    logger = logging.getLogger("shopledger")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
