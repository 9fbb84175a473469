"""Utility functions for shopledger."""

from shopledger.utils.date_parser import parse_date, get_date_range
from shopledger.utils.amount_parser import parse_amount, parse_line_spec
from shopledger.utils.item_resolver import resolve_item

__all__ = ["parse_date", "get_date_range", "parse_amount", "parse_line_spec", "resolve_item"]
