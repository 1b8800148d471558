"""Filtering and ordering of a month's payments for display.

Entries that cannot be ranked (an invalid or incomplete due date, an empty
amount) always go after every rankable entry, whichever direction is asked
for. Sorting is stable, so ties keep insertion order, and ``nenhum`` returns
the filtered list untouched.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from .dates import date_sort_key
from .models import Payment, SortOrder, StatusFilter
from .sanitizers import has_money_amount, parse_money_to_number

_Key = tuple[int, float]


def filter_payments(payments: Iterable[Payment], status: StatusFilter) -> list[Payment]:
    if status == "todos":
        return list(payments)
    if status not in ("abertos", "pagos"):
        raise ValueError(f"unknown status filter: {status!r}")
    want_paid = status == "pagos"
    return [p for p in payments if p.pago == want_paid]


def _amount_or_none(p: Payment) -> float | None:
    return parse_money_to_number(p.valor) if has_money_amount(p.valor) else None


def _ranked(value: float | None, *, descending: bool) -> _Key:
    # (0, v) sorts before (1, 0) so missing values land last in both directions.
    if value is None:
        return (1, 0.0)
    return (0, -value if descending else value)


def _due_date_key(descending: bool) -> Callable[[Payment], _Key]:
    def key(p: Payment) -> _Key:
        k = date_sort_key(p.vencimento)
        return _ranked(None if k is None else float(k), descending=descending)

    return key


def _amount_key(descending: bool) -> Callable[[Payment], _Key]:
    def key(p: Payment) -> _Key:
        return _ranked(_amount_or_none(p), descending=descending)

    return key


def _status_key(open_first: bool) -> Callable[[Payment], tuple[int, _Key]]:
    by_date = _due_date_key(False)

    def key(p: Payment) -> tuple[int, _Key]:
        partition = int(p.pago) if open_first else int(not p.pago)
        return (partition, by_date(p))

    return key


def sort_payments(payments: Iterable[Payment], order: SortOrder) -> list[Payment]:
    items = list(payments)
    if order == "nenhum":
        return items
    if order == "vencimento-asc":
        return sorted(items, key=_due_date_key(False))
    if order == "vencimento-desc":
        return sorted(items, key=_due_date_key(True))
    if order == "valor-asc":
        return sorted(items, key=_amount_key(False))
    if order == "valor-desc":
        return sorted(items, key=_amount_key(True))
    if order == "status-abertos":
        return sorted(items, key=_status_key(True))
    if order == "status-pagos":
        return sorted(items, key=_status_key(False))
    raise ValueError(f"unknown sort order: {order!r}")


def visible_payments(
    payments: Iterable[Payment], status: StatusFilter, order: SortOrder
) -> list[Payment]:
    """Payments as shown in the table: filtered by status, then ordered."""

    return sort_payments(filter_payments(payments, status), order)


__all__ = ["filter_payments", "sort_payments", "visible_payments"]
