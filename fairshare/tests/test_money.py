"""
Tests for minor unit conversion and money helpers.
"""
import pytest
from decimal import Decimal
from fairshare.core.config import settings
from fairshare.services.money import (
    format_minor,
    format_money,
    from_minor,
    parse_amount_input,
    resolve_currency,
    to_decimal,
    to_minor,
)


def test_to_minor_two_decimals():
    """Major amounts scale by 10**decimals."""
    assert to_minor("12.34", 2) == 1234
    assert to_minor(Decimal("100.00"), 2) == 10000
    assert to_minor(7, 2) == 700


def test_to_minor_rounds_half_away_from_zero():
    """Halves round away from zero, not to even."""
    assert to_minor("0.005", 2) == 1
    assert to_minor("-0.005", 2) == -1
    assert to_minor("2.5", 0) == 3
    assert to_minor("12.344", 2) == 1234


def test_to_minor_float_has_no_binary_artefacts():
    """Floats are read through their repr."""
    assert to_minor(0.1 + 0.2, 2) == 30
    assert to_minor(1.005, 2) == 101


def test_to_minor_zero_decimal_currency():
    """Currencies without subdivision keep whole units."""
    assert to_minor(1000, 0) == 1000


@pytest.mark.parametrize("decimals", [-1, 9, 2.0, True])
def test_invalid_decimals_rejected(decimals):
    """Precision must be an integer in [0, 8]."""
    with pytest.raises(ValueError):
        to_minor("1", decimals)


def test_from_minor_is_exact():
    """Minor units convert back without loss."""
    assert from_minor(3334, 2) == Decimal("33.34")
    assert from_minor(-200, 2) == Decimal("-2.00")
    assert from_minor(500, 0) == Decimal(500)


def test_to_minor_large_amount_is_exact():
    """Amounts beyond the default decimal precision still convert exactly."""
    assert to_minor(10**30, 2) == 10**32
    assert to_minor("123456789012345678901234567890.125", 2) == 12345678901234567890123456789013


def test_from_minor_large_amount_is_exact():
    """Large minor-unit amounts format without rounding."""
    assert from_minor(10**32 + 1, 2) == Decimal(f"{10**30}.01")
    assert format_minor(10**32 + 1, 2) == f"{10**30}.01"


def test_to_minor_rejects_out_of_range_amount():
    """Absurdly large amounts are a ValueError, not a decimal signal."""
    with pytest.raises(ValueError):
        to_minor("1e100", 2)


def test_format_minor():
    """Formatting always shows `decimals` fractional digits."""
    assert format_minor(10000, 2) == "100.00"
    assert format_minor(-200, 2) == "-2.00"
    assert format_minor(7, 3) == "0.007"
    assert format_minor(333, 0) == "333"


def test_format_money():
    """Display string carries the currency code."""
    assert format_money(3334, resolve_currency("usd")) == "33.34 USD"


def test_to_decimal_rejects_garbage():
    """Non-numeric input is a ValueError."""
    for value in ["abc", "", float("nan"), True, None]:
        with pytest.raises(ValueError):
            to_decimal(value)


def test_parse_amount_input():
    """User text is reduced to a plain decimal string."""
    assert parse_amount_input("1 234,567", 2) == "1234.56"
    assert parse_amount_input("12.3.4", 2) == "12.34"
    assert parse_amount_input("$ 5", 2) == "5"
    assert parse_amount_input(".5", 2) == "0.5"
    assert parse_amount_input("12,5", 0) == "12"
    assert parse_amount_input("abc", 2) == ""


def test_resolve_currency_from_code():
    """A bare code resolves symbol and precision."""
    jpy = resolve_currency("jpy")
    assert jpy.code == "JPY"
    assert jpy.decimals == 0
    assert jpy.symbol == "¥"

    usd = resolve_currency("USD")
    assert usd.decimals == 2


def test_resolve_currency_from_loose_shapes():
    """Group-like payloads carry the currency under several keys."""
    nested = resolve_currency({"currency": {"code": "eur", "symbol": "€", "decimals": 2}})
    assert nested.code == "EUR"
    assert nested.symbol == "€"

    assert resolve_currency({"currency_code": "krw"}).decimals == 0
    assert resolve_currency({"base_currency": "czk"}).symbol == "Kč"
    assert resolve_currency({"code": "BHD", "decimals": 3}).decimals == 3


def test_resolve_currency_default():
    """Missing currency information falls back to the configured default."""
    assert resolve_currency(None).code == settings.DEFAULT_CURRENCY
    assert resolve_currency({}).code == settings.DEFAULT_CURRENCY
