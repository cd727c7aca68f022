"""
Minor unit conversion and money formatting.

Split arithmetic runs on integers in the currency's minor unit (cents for a
2-decimal currency). Decimal values only appear when reading input and when
formatting output.
"""
import re
from decimal import Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Union

from fairshare.core.config import settings
from fairshare.schemas.money import Currency

MAX_DECIMALS = 8
MAX_AMOUNT_DIGITS = 64  # Integer digits of a minor-unit amount

# Currencies with no subdivision; everything else defaults to 2 places
DECIMALS_BY_CODE = {"JPY": 0, "KRW": 0, "VND": 0}

SYMBOL_BY_CODE = {
    "USD": "$", "EUR": "€", "RUB": "₽", "GBP": "£", "UAH": "₴", "KZT": "₸",
    "TRY": "₺", "JPY": "¥", "CNY": "¥", "PLN": "zł", "CZK": "Kč", "INR": "₹",
    "KRW": "₩", "AED": "د.إ",
}

Number = Union[Decimal, int, float, str]


def check_decimals(decimals: int) -> int:
    """Return decimals unchanged or raise ValueError if outside [0, 8]."""
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise ValueError(f"decimals must be an integer, got {decimals!r}")
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"decimals must be in [0, {MAX_DECIMALS}], got {decimals}")
    return decimals


def to_decimal(value: Number) -> Decimal:
    """
    Convert a number or numeric string to Decimal.

    Floats go through their shortest repr so 0.1 becomes Decimal('0.1')
    rather than the binary expansion.
    """
    if isinstance(value, bool):
        raise ValueError("boolean is not an amount")
    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, float):
            result = Decimal(repr(value))
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, str):
            result = Decimal(value.strip())
        else:
            raise ValueError(f"unsupported amount type: {type(value).__name__}")
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"amount must be finite, got {value!r}")
    return result


def to_minor(amount_major: Number, decimals: int) -> int:
    """
    Convert a major-unit amount to integer minor units.

    Rounds half away from zero: to_minor('0.005', 2) == 1 and
    to_minor('-0.005', 2) == -1. Precision grows with the amount, so large
    totals convert exactly instead of overflowing the default context.
    """
    check_decimals(decimals)
    amount = to_decimal(amount_major)
    digits = amount.adjusted() + decimals + 1
    if digits > MAX_AMOUNT_DIGITS:
        raise ValueError(f"amount out of range: {amount_major!r}")
    try:
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, digits + 1)
            scaled = amount.scaleb(decimals)
            return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except DecimalException:
        raise ValueError(f"amount out of range: {amount_major!r}")


def from_minor(amount_minor: int, decimals: int) -> Decimal:
    """Convert integer minor units back to an exact major-unit Decimal."""
    check_decimals(decimals)
    value = Decimal(int(amount_minor))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + 1)
        return value.scaleb(-decimals)


def format_minor(amount_minor: int, decimals: int) -> str:
    """Fixed-point string with exactly `decimals` fractional digits."""
    return f"{from_minor(amount_minor, decimals):f}"


def format_money(amount_minor: int, currency: Currency) -> str:
    """Human readable amount, e.g. '33.34 USD'."""
    return f"{format_minor(amount_minor, currency.decimals)} {currency.code}"


def parse_amount_input(raw: str, decimals: int) -> str:
    """
    Sanitise free-form amount input.

    The first comma is read as the decimal separator, anything but digits and
    the first dot is dropped and the fraction is cut to `decimals` digits.
    """
    check_decimals(decimals)
    s = re.sub(r"[^\d.]", "", (raw or "").replace(",", ".", 1))
    head, dot, tail = s.partition(".")
    if not dot:
        return head
    fraction = tail.replace(".", "")[:decimals]
    if not fraction:
        return head
    return f"{head or '0'}.{fraction}"


def decimals_for(code: str) -> int:
    """Minor unit precision for a currency code when no catalog entry is at hand."""
    return DECIMALS_BY_CODE.get((code or "").upper(), 2)


def resolve_currency(raw: Any = None) -> Currency:
    """
    Build a Currency from whatever shape a caller has.

    Accepts a Currency, a bare code, a currency dict, or a group-like dict
    carrying the currency under `currency`, `currency_code`, `currencyCode`,
    `main_currency_code` or `base_currency`. Falls back to DEFAULT_CURRENCY.
    """
    if isinstance(raw, Currency):
        return raw
    if isinstance(raw, str):
        raw = {"code": raw}
    if not isinstance(raw, dict):
        raw = {}

    nested = raw.get("currency") if isinstance(raw.get("currency"), dict) else {}
    code_raw = (
        nested.get("code")
        or raw.get("code")
        or (raw.get("currency") if isinstance(raw.get("currency"), str) else None)
        or raw.get("currency_code")
        or raw.get("currencyCode")
        or raw.get("main_currency_code")
        or raw.get("base_currency")
    )
    if isinstance(code_raw, str) and code_raw.strip():
        code = code_raw.strip().upper()
    else:
        code = settings.DEFAULT_CURRENCY

    symbol = (
        nested.get("symbol")
        or raw.get("symbol")
        or raw.get("currency_symbol")
        or SYMBOL_BY_CODE.get(code)
        or code
    )

    decimals = nested.get("decimals", raw.get("decimals"))
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        decimals = decimals_for(code)

    return Currency(code=code, symbol=symbol, decimals=decimals)
