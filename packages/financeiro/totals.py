"""Derived monthly totals.

Formulas (amounts parsed leniently with :func:`parse_money_to_number`):

- ``total_paid``: sum of paid payments.
- ``total_open``: sum of unpaid payments.
- ``total_to_savings``: sum of payments whose label mentions the savings
  keyword, paid or not. A payment can therefore count in both ``total_open``
  and ``total_to_savings``.
- ``usable_balance``: ``max(0, valor_fixo - total_paid)``.
- ``savings_remaining``: ``max(0, cofrinho.value + total_to_savings)``.

Extra income (``renda_extra``) is accepted but not part of either balance.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from .models import CofrinhoConfig, FinanceMonth, Payment, Totals
from .sanitizers import parse_money_to_number

SAVINGS_KEYWORD = "cofrinho"

SavingsPredicate = Callable[[str], bool]


def is_savings_label(text: str) -> bool:
    """True when a payment description mentions the savings keyword."""

    return SAVINGS_KEYWORD in text.casefold()


def calculate_totals(
    valor_fixo: str,
    payments: Iterable[Payment],
    *,
    renda_extra: str | None = None,
    cofrinho: CofrinhoConfig | None = None,
    is_savings: SavingsPredicate = is_savings_label,
) -> Totals:
    total_paid = 0.0
    total_open = 0.0
    total_to_savings = 0.0
    for p in payments:
        amount = parse_money_to_number(p.valor)
        if p.pago:
            total_paid += amount
        else:
            total_open += amount
        if is_savings(p.descricao):
            total_to_savings += amount

    fixed = parse_money_to_number(valor_fixo)
    set_aside = parse_money_to_number(cofrinho.value) if cofrinho is not None else 0.0

    return Totals(
        total_paid=total_paid,
        total_open=total_open,
        total_to_savings=total_to_savings,
        usable_balance=max(fixed - total_paid, 0.0),
        savings_remaining=max(set_aside + total_to_savings, 0.0),
    )


def month_totals(month: FinanceMonth, *, is_savings: SavingsPredicate = is_savings_label) -> Totals:
    return calculate_totals(
        month.valor_fixo,
        month.payments,
        renda_extra=month.renda_extra,
        cofrinho=month.cofrinho,
        is_savings=is_savings,
    )


__all__ = ["SAVINGS_KEYWORD", "calculate_totals", "is_savings_label", "month_totals"]
