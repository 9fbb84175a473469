"""Amount and quantity parsing utilities."""

import re
from decimal import Decimal, InvalidOperation


def parse_amount(amount_str: str) -> Decimal:
    """Parse a money amount string into a Decimal.

    Handles "1500", "1 500", "1,500.50", "1500 FCFA", "$12.50" and "12,50"
    (a single comma followed by one or two digits is a decimal comma).

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed or is negative
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = re.sub(r"[$€£¥]|fcfa|cfa|xof", "", amount_str.strip(), flags=re.IGNORECASE)
    text = re.sub(r"\s", "", text)

    if re.fullmatch(r"-?\d+,\d{1,2}", text):
        text = text.replace(",", ".")
    else:
        text = text.replace(",", "")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if amount < 0:
        raise ValueError(f"Amount cannot be negative: '{amount_str}'")
    return amount


def parse_line_spec(spec: str) -> tuple[str, int]:
    """Parse an ``ITEM:QUANTITY`` line spec.

    The item part may be an ID or a name; quantity defaults to 1.

    Raises:
        ValueError: If the quantity part is not a positive integer
    """
    item, sep, quantity_str = spec.rpartition(":")
    if not sep:
        return spec.strip(), 1
    try:
        quantity = int(quantity_str)
    except ValueError:
        raise ValueError(f"Invalid quantity in '{spec}'")
    if quantity <= 0:
        raise ValueError(f"Quantity must be greater than 0 in '{spec}'")
    return item.strip(), quantity
