from decimal import Decimal

import pytest

from storefront.errors import InvalidAmount
from storefront.utils import money


@pytest.mark.parametrize("currency,digits", [("EUR", 2), ("eur", 2), ("JPY", 0), ("KWD", 3), ("CLF", 4)])
def test_fraction_digits(currency, digits):
    assert money.fraction_digits(currency) == digits


def test_fraction_digits_unknown_currency():
    with pytest.raises(InvalidAmount):
        money.fraction_digits("XXX")


@pytest.mark.parametrize(
    "amount,currency,expected",
    [
        (Decimal("10.00"), "EUR", 1000),
        ("0.005", "EUR", 1),
        ("0.004", "EUR", 0),
        (1000, "JPY", 1000),
        ("1000.5", "JPY", 1001),
        ("1.2345", "KWD", 1235),
        (0, "EUR", 0),
    ],
)
def test_to_minor_unit_rounds_half_up(amount, currency, expected):
    assert money.to_minor_unit(amount, currency) == expected


@pytest.mark.parametrize("amount", ["-0.01", "abc", "NaN", "Infinity", None, True])
def test_to_minor_unit_rejects_invalid_amounts(amount):
    with pytest.raises(InvalidAmount):
        money.to_minor_unit(amount, "EUR")


def test_to_minor_unit_unknown_currency():
    with pytest.raises(InvalidAmount):
        money.to_minor_unit("1.00", "ABC")


def test_from_minor_unit():
    assert money.from_minor_unit(1000, "EUR") == Decimal("10.00")
    assert str(money.from_minor_unit(1000, "EUR")) == "10.00"
    assert str(money.from_minor_unit(1000, "JPY")) == "1000"
    with pytest.raises(InvalidAmount):
        money.from_minor_unit(10.5, "EUR")


@pytest.mark.parametrize(
    "amount,currency",
    [("12.345", "EUR"), ("0.015", "EUR"), ("99.994", "EUR"), ("1234.5", "JPY"), ("7", "JPY")],
)
def test_minor_unit_round_trip_matches_rounding(amount, currency):
    expected = money.round_amount(amount, currency)
    assert money.from_minor_unit(money.to_minor_unit(amount, currency), currency) == expected


def test_format_amount():
    assert money.format_amount(1000, "EUR") == "1,000.00"
    assert money.format_amount(1000, "JPY") == "1,000"
    assert money.format_amount(1000, "EUR", with_symbol=True) == "€ 1,000.00"
    assert money.format_amount("1234567.891", "USD", with_symbol=True) == "$ 1,234,567.89"


def test_format_from_minor_unit():
    assert money.format_from_minor_unit(123456, "EUR") == "1,234.56"
    assert money.format_from_minor_unit(500, "JPY", with_symbol=True) == "¥ 500"


def test_currency_symbol_falls_back_to_code():
    assert money.currency_symbol("eur") == "€"
    assert money.currency_symbol("CHF") == "CHF"
    assert money.is_known_currency("chf") is True
    assert money.is_known_currency("ZZZ") is False
