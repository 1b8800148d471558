"""Calendar validation for ``dd/mm/yyyy`` due dates and ``yyyy-mm`` month keys."""

from __future__ import annotations

import re
from datetime import date

_DUE_DATE_RE = re.compile(r"[0-9]{2}/[0-9]{2}/[0-9]{4}")
_MONTH_KEY_RE = re.compile(r"[0-9]{4}-[0-9]{2}")

MONTH_LABELS: tuple[str, ...] = (
    "Jan",
    "Fev",
    "Mar",
    "Abr",
    "Mai",
    "Jun",
    "Jul",
    "Ago",
    "Set",
    "Out",
    "Nov",
    "Dez",
)


# ---------------------------------------------------------------------------
# Due dates
# ---------------------------------------------------------------------------


def _split_due_date(value: str) -> tuple[int, int, int]:
    day_s, month_s, year_s = value.split("/")
    return int(day_s), int(month_s), int(year_s)


def is_calendar_valid_date(value: object) -> bool:
    """True when ``value`` is exactly ``dd/mm/yyyy`` and names a real day.

    Feb 29 is accepted only in Gregorian leap years; day 31 only in months
    that have it.
    """

    if not isinstance(value, str) or not _DUE_DATE_RE.fullmatch(value):
        return False
    day, month, year = _split_due_date(value)

    if not 1 <= year <= 9999:
        return False
    if not 1 <= month <= 12:
        return False
    if not 1 <= day <= 31:
        return False

    try:
        d = date(year, month, day)
    except ValueError:
        return False
    return (d.day, d.month, d.year) == (day, month, year)


def date_sort_key(value: object) -> int | None:
    """Return ``yyyymmdd`` as an integer, or ``None`` for an invalid date."""

    if not isinstance(value, str) or not is_calendar_valid_date(value):
        return None
    day, month, year = _split_due_date(value)
    return year * 10000 + month * 100 + day


def is_incomplete_date(value: str) -> bool:
    """A date still being typed (shorter than ``dd/mm/yyyy``) is not an error."""

    return len(value) < 10


def is_date_error(value: str) -> bool:
    """Fully typed yet impossible date (the only case flagged to the user)."""

    return bool(value) and not is_incomplete_date(value) and not is_calendar_valid_date(value)


# ---------------------------------------------------------------------------
# Month keys (competence)
# ---------------------------------------------------------------------------


def is_month_key(value: object) -> bool:
    return isinstance(value, str) and bool(_MONTH_KEY_RE.fullmatch(value))


def parse_month_key(key: str) -> tuple[int, int] | None:
    """Split ``yyyy-mm`` into ``(year, month)``; ``None`` when unusable."""

    if not is_month_key(key):
        return None
    year_s, month_s = key.split("-")
    year, month = int(year_s), int(month_s)
    if not year or not 1 <= month <= 12:
        return None
    return year, month


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_key_for(d: date) -> str:
    return month_key(d.year, d.month)


def next_month_key(key: str, *, fallback: str) -> str:
    """Calendar month after ``key``; ``fallback`` when ``key`` is unusable."""

    parsed = parse_month_key(key)
    if parsed is None:
        return fallback
    year, month = parsed
    if month == 12:
        return month_key(year + 1, 1)
    return month_key(year, month + 1)


def format_month_label(key: str) -> str:
    """``2025-03`` -> ``Mar/2025``; unusable keys are returned as-is."""

    parsed = parse_month_key(key)
    if parsed is None:
        return key
    year, month = parsed
    return f"{MONTH_LABELS[month - 1]}/{year}"


__all__ = [
    "MONTH_LABELS",
    "date_sort_key",
    "format_month_label",
    "is_calendar_valid_date",
    "is_date_error",
    "is_incomplete_date",
    "is_month_key",
    "month_key",
    "month_key_for",
    "next_month_key",
    "parse_month_key",
]
