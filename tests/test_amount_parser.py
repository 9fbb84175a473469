"""Tests for amount and line spec parsing."""

import pytest
from decimal import Decimal

from shopledger.utils.amount_parser import parse_amount, parse_line_spec


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1500", Decimal("1500")),
        ("1 500", Decimal("1500")),
        ("1,500.50", Decimal("1500.50")),
        ("1500 FCFA", Decimal("1500")),
        ("$12.50", Decimal("12.50")),
        ("12,50", Decimal("12.50")),
        ("0", Decimal("0")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "-5", "NaN", "Infinity"])
def test_parse_amount_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_parse_line_spec():
    assert parse_line_spec("Phone X:2") == ("Phone X", 2)
    assert parse_line_spec("3:1") == ("3", 1)


def test_parse_line_spec_defaults_to_one():
    assert parse_line_spec("Charger") == ("Charger", 1)


def test_parse_line_spec_name_with_colon():
    assert parse_line_spec("Cable USB:C:4") == ("Cable USB:C", 4)


@pytest.mark.parametrize("spec", ["Phone:0", "Phone:-1", "Phone:two"])
def test_parse_line_spec_invalid_quantity(spec):
    with pytest.raises(ValueError):
        parse_line_spec(spec)
