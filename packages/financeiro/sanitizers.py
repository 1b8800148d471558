"""Sanitizers for user-typed free text, money amounts and dates.

All helpers are pure string transforms and never raise. Money is Brazilian
real rendered in the ``pt_BR`` locale through Babel, e.g. ``R$\xa01.234,56``.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from babel.numbers import format_currency

CURRENCY = "BRL"
LOCALE = "pt_BR"

_MULTI_SPACE = re.compile(r"\s{2,}")
_NOT_MONEY_CHAR = re.compile(r"[^0-9,.\-]")
_NOT_DIGIT = re.compile(r"[^0-9]")
_LEADING_NUMBER = re.compile(r"-?([0-9]+\.?[0-9]*|\.[0-9]+)")

# ---------------------------------------------------------------------------
# Free text
# ---------------------------------------------------------------------------


def sanitize_free_text(value: str) -> str:
    """Keep only letters (accents included) and whitespace; collapse runs of
    two or more whitespace characters into a single space."""

    letters = "".join(ch for ch in value if ch.isalpha() or ch.isspace())
    return _MULTI_SPACE.sub(" ", letters)


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------


def sanitize_money_digits(value: str) -> str:
    """Legacy money sanitizer.

    Keeps digits, ``,``, ``.`` and ``-``; drops every hyphen except a leading
    one; strips thousands separators (periods when a comma is present,
    otherwise commas).
    """

    cleaned = _NOT_MONEY_CHAR.sub("", value)
    has_comma = "," in cleaned
    if cleaned.startswith("-"):
        cleaned = "-" + cleaned[1:].replace("-", "")
    else:
        cleaned = cleaned.replace("-", "")
    return cleaned.replace("." if has_comma else ",", "")


def format_money(value: float | int | Decimal) -> str:
    """Render a number as ``pt_BR`` currency with two fraction digits.

    Non-finite values render as ``""``. The decimal context is widened to the
    size of the amount so long inputs keep every digit.
    """

    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    else:
        d = Decimal(str(value))
    if not d.is_finite():
        return ""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, d.adjusted() + 3)
        ctx.Emax = max(ctx.Emax, d.adjusted() + 3)
        q = d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return format_currency(q, CURRENCY, locale=LOCALE)


def format_money_input(value: str) -> str:
    """Format interactive money entry.

    Every non-digit is dropped and the remaining digits are read as cents, so
    typing ``1``, ``12``, ``123`` renders ``R$ 0,01``, ``R$ 0,12``,
    ``R$ 1,23``. No digits at all yields ``""``.
    """

    digits = _NOT_DIGIT.sub("", value)
    if not digits:
        return ""
    # Exponent notation is exact at any length.
    return format_money(Decimal(f"{digits}e-2"))


def parse_money_to_number(value: str) -> float:
    """Lenient money parser for arithmetic; unparseable input is ``0.0``.

    When a comma is present, periods are thousands separators and the first
    comma is the decimal point (``"R$ 1.234,56"`` -> ``1234.56``); otherwise
    the cleaned text is read as a plain number.
    """

    cleaned = _NOT_MONEY_CHAR.sub("", value)
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return 0.0
    try:
        return float(Decimal(match.group(0)))
    except InvalidOperation:
        return 0.0


def has_money_amount(value: str) -> bool:
    """True when ``value`` carries at least one digit to parse."""

    return any("0" <= ch <= "9" for ch in value)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def sanitize_date_digits(value: str) -> str:
    """Mask typed digits as ``dd/mm/yyyy`` (at most 8 digits, 0-10 chars)."""

    digits = _NOT_DIGIT.sub("", value)[:8]
    day, month, year = digits[:2], digits[2:4], digits[4:8]
    result = day
    if month:
        result += f"/{month}"
    if year:
        result += f"/{year}"
    return result


__all__ = [
    "format_money",
    "format_money_input",
    "has_money_amount",
    "parse_money_to_number",
    "sanitize_date_digits",
    "sanitize_free_text",
    "sanitize_money_digits",
]
