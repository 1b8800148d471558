"""Month lifecycle and edits on a :class:`FinanceStore`.

Every function here is pure: it takes the current store and returns a new one
built with ``model_copy``. Edits always target the selected month and refresh
its ``updated_at``; changing the selection alone does not.

A store starts with one empty month (the current calendar month). New months
are carried forward from the latest existing month: fixed income and the
savings config are copied, extra income starts at zero and only recurring
payments come along, each with a fresh id. Months are never deleted.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .clock import Clock, IdFactory
from .dates import next_month_key
from .logging_setup import get_logger
from .models import STORE_VERSION, CofrinhoConfig, FinanceMonth, FinanceStore, Payment
from .sanitizers import format_money_input, sanitize_date_digits, sanitize_free_text

_logger = get_logger("financeiro.ledger")

PAYMENT_FIELDS: tuple[str, ...] = ("descricao", "valor", "vencimento", "pago", "recorrente")

# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def create_payment(id_factory: IdFactory) -> Payment:
    return Payment(id=id_factory())


def create_empty_month(key: str, clock: Clock) -> FinanceMonth:
    now = clock.now()
    return FinanceMonth(competence=key, created_at=now, updated_at=now)


def create_empty_store(clock: Clock) -> FinanceStore:
    key = clock.current_month_key()
    return FinanceStore(
        version=STORE_VERSION,
        selected_month=key,
        months={key: create_empty_month(key, clock)},
    )


def create_month_from_previous(
    key: str, previous: FinanceMonth, clock: Clock, id_factory: IdFactory
) -> FinanceMonth:
    now = clock.now()
    recurring = tuple(
        p.model_copy(update={"id": id_factory()}) for p in previous.payments if p.recorrente
    )
    return FinanceMonth(
        competence=key,
        valor_fixo=previous.valor_fixo,
        renda_extra=format_money_input("0"),
        cofrinho=previous.cofrinho.model_copy() if previous.cofrinho is not None else None,
        payments=recurring,
        created_at=now,
        updated_at=now,
    )


# ---------------------------------------------------------------------------
# Month navigation
# ---------------------------------------------------------------------------


def sorted_month_keys(store: FinanceStore) -> list[str]:
    """Month keys in chronological order (``yyyy-mm`` sorts lexicographically)."""

    return sorted(store.months)


def neighbor_months(store: FinanceStore) -> tuple[str | None, str | None]:
    """Return ``(previous, next)`` keys around the selected month."""

    keys = sorted_month_keys(store)
    if store.selected_month not in keys:
        return None, None
    i = keys.index(store.selected_month)
    prev_key = keys[i - 1] if i > 0 else None
    next_key = keys[i + 1] if i < len(keys) - 1 else None
    return prev_key, next_key


def ensure_selected_month(store: FinanceStore, clock: Clock) -> FinanceStore:
    if store.selected_month in store.months:
        return store
    months = dict(store.months)
    months[store.selected_month] = create_empty_month(store.selected_month, clock)
    return store.model_copy(update={"months": months})


def select_month(store: FinanceStore, key: str, clock: Clock) -> FinanceStore:
    """Change the selection; an unknown key gets an empty month."""

    if key not in store.months:
        months = dict(store.months)
        months[key] = create_empty_month(key, clock)
        return FinanceStore(version=store.version, selected_month=key, months=months)
    return store.model_copy(update={"selected_month": key})


def add_month(store: FinanceStore, clock: Clock, id_factory: IdFactory) -> FinanceStore:
    """Append the month after the latest one and select it."""

    keys = sorted_month_keys(store)
    latest = keys[-1] if keys else clock.current_month_key()
    fallback = clock.current_month_key()
    next_key = next_month_key(latest, fallback=fallback)
    while next_key in store.months:
        next_key = next_month_key(next_key, fallback=fallback)

    base = store.months.get(latest) or create_empty_month(latest, clock)
    months = dict(store.months)
    months[next_key] = create_month_from_previous(next_key, base, clock, id_factory)
    _logger.debug("ledger:add_month latest=%s new=%s", latest, next_key)
    return store.model_copy(update={"selected_month": next_key, "months": months})


# ---------------------------------------------------------------------------
# Edits on the selected month
# ---------------------------------------------------------------------------


def update_selected_month(
    store: FinanceStore,
    updater: Callable[[FinanceMonth], FinanceMonth],
    clock: Clock,
) -> FinanceStore:
    selected = store.selected_month
    base = store.months.get(selected) or create_empty_month(selected, clock)
    updated = updater(base).model_copy(update={"updated_at": clock.now()})
    months = dict(store.months)
    months[selected] = updated
    return store.model_copy(update={"months": months})


def add_payment(store: FinanceStore, clock: Clock, id_factory: IdFactory) -> FinanceStore:
    payment = create_payment(id_factory)
    return update_selected_month(
        store,
        lambda m: m.model_copy(update={"payments": (*m.payments, payment)}),
        clock,
    )


def remove_payment(store: FinanceStore, payment_id: str, clock: Clock) -> FinanceStore:
    return update_selected_month(
        store,
        lambda m: m.model_copy(
            update={"payments": tuple(p for p in m.payments if p.id != payment_id)}
        ),
        clock,
    )


def _sanitize_payment_field(field: str, value: Any) -> Any:
    if field == "descricao":
        return sanitize_free_text(str(value))
    if field == "valor":
        return format_money_input(str(value))
    if field == "vencimento":
        return sanitize_date_digits(str(value))
    return bool(value)


def update_payment(
    store: FinanceStore, payment_id: str, field: str, value: Any, clock: Clock
) -> FinanceStore:
    """Set one field of a payment, sanitizing the typed value.

    ``field`` must be one of :data:`PAYMENT_FIELDS`. An unknown ``payment_id``
    leaves the payments unchanged.
    """

    if field not in PAYMENT_FIELDS:
        raise ValueError(f"unknown payment field: {field!r}")
    next_value = _sanitize_payment_field(field, value)
    return update_selected_month(
        store,
        lambda m: m.model_copy(
            update={
                "payments": tuple(
                    p.model_copy(update={field: next_value}) if p.id == payment_id else p
                    for p in m.payments
                )
            }
        ),
        clock,
    )


def set_valor_fixo(store: FinanceStore, raw: str, clock: Clock) -> FinanceStore:
    formatted = format_money_input(raw)
    return update_selected_month(
        store, lambda m: m.model_copy(update={"valor_fixo": formatted}), clock
    )


def set_renda_extra(store: FinanceStore, raw: str, clock: Clock) -> FinanceStore:
    formatted = format_money_input(raw)
    return update_selected_month(
        store, lambda m: m.model_copy(update={"renda_extra": formatted}), clock
    )


def set_cofrinho_value(store: FinanceStore, raw: str, clock: Clock) -> FinanceStore:
    """Set the amount put aside; clearing it (with no goal) drops the config."""

    formatted = format_money_input(raw)

    def _apply(m: FinanceMonth) -> FinanceMonth:
        goal = m.cofrinho.goal if m.cofrinho is not None else None
        if not formatted and not goal:
            return m.model_copy(update={"cofrinho": None})
        return m.model_copy(
            update={"cofrinho": CofrinhoConfig(enabled=True, value=formatted, goal=goal)}
        )

    return update_selected_month(store, _apply, clock)


def set_cofrinho_goal(store: FinanceStore, raw: str, clock: Clock) -> FinanceStore:
    formatted = format_money_input(raw) or None

    def _apply(m: FinanceMonth) -> FinanceMonth:
        current = m.cofrinho
        enabled = current.enabled if current is not None else False
        value = current.value if current is not None else ""
        if not enabled and not value and not formatted:
            return m.model_copy(update={"cofrinho": None})
        return m.model_copy(
            update={"cofrinho": CofrinhoConfig(enabled=enabled, value=value, goal=formatted)}
        )

    return update_selected_month(store, _apply, clock)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def merge_imported(current: FinanceStore, imported: FinanceStore) -> FinanceStore:
    """Overlay imported months on the current ones and adopt the imported
    selection. Months only present locally are kept."""

    months = dict(current.months)
    months.update(imported.months)
    return FinanceStore(
        version=STORE_VERSION,
        selected_month=imported.selected_month,
        months=months,
    )


__all__ = [
    "PAYMENT_FIELDS",
    "add_month",
    "add_payment",
    "create_empty_month",
    "create_empty_store",
    "create_month_from_previous",
    "create_payment",
    "ensure_selected_month",
    "merge_imported",
    "neighbor_months",
    "remove_payment",
    "select_month",
    "set_cofrinho_goal",
    "set_cofrinho_value",
    "set_renda_extra",
    "set_valor_fixo",
    "sorted_month_keys",
    "update_payment",
    "update_selected_month",
]
