"""Normalization of untrusted documents into a canonical :class:`FinanceStore`.

Input is whatever ``json.loads`` produced from local storage or an imported
file. Normalization runs in two steps:

1. :func:`classify_document` decides the document shape and returns a tagged
   result, ``Recognized(shape, record)`` or ``Unrecognized(reason)``. This is
   where the whole document is accepted or rejected; nothing is repaired here.
2. The repair functions (:func:`normalize_payment`, :func:`normalize_month`,
   ...) coerce individual fields of a recognized document to sane defaults
   (empty string, ``False``, a fresh id, the current timestamp).

Recognized shapes
-----------------
``months``
    Schema version 2: ``{"version", "selectedMonth", "months": {...}}``.
``legacy``
    Version 1 single-month document with top-level ``valorFixo``,
    ``destinado``, ``rendaExtra`` and ``pagamentos``. The enumerated
    ``statusFilter``/``sortOrder`` fields, when present, must hold a known
    value and ``pagamentos`` must be a list; otherwise the document is
    rejected as a whole.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, cast

from .clock import Clock, IdFactory, SystemClock, new_id
from .dates import is_month_key
from .ledger import create_empty_month
from .logging_setup import get_logger
from .models import (
    STORE_VERSION,
    CofrinhoConfig,
    FinanceMonth,
    FinanceStore,
    NormalizedStore,
    Payment,
    SortOrder,
    StatusFilter,
    is_sort_order,
    is_status_filter,
)
from .sanitizers import (
    format_money,
    format_money_input,
    sanitize_date_digits,
    sanitize_free_text,
)

_logger = get_logger("financeiro.normalize")

_LEGACY_FIELDS: frozenset[str] = frozenset({"valorFixo", "destinado", "rendaExtra", "pagamentos"})

# ---------------------------------------------------------------------------
# Shape classification
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Recognized:
    shape: Literal["months", "legacy"]
    record: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class Unrecognized:
    reason: str


Classification = Recognized | Unrecognized


def classify_document(value: Any) -> Classification:
    """Classify a decoded JSON value as a known document shape or reject it.

    An object with neither ``months`` nor any legacy field (``{}``, or one
    holding only ``statusFilter``) is rejected instead of being read as an
    empty legacy month.
    """

    if not isinstance(value, Mapping):
        return Unrecognized("document is not an object")

    months = value.get("months")
    if isinstance(months, Mapping):
        return Recognized("months", value)
    if months is not None:
        return Unrecognized("months is not an object")

    if not _LEGACY_FIELDS.intersection(value):
        return Unrecognized("no months and no legacy fields")
    if "statusFilter" in value and not is_status_filter(value["statusFilter"]):
        return Unrecognized(f"invalid statusFilter: {value['statusFilter']!r}")
    if "sortOrder" in value and not is_sort_order(value["sortOrder"]):
        return Unrecognized(f"invalid sortOrder: {value['sortOrder']!r}")
    if "pagamentos" in value and not isinstance(value["pagamentos"], list):
        return Unrecognized("pagamentos is not a list")
    return Recognized("legacy", value)


# ---------------------------------------------------------------------------
# Field repair
# ---------------------------------------------------------------------------


def _truthy(value: Any) -> bool:
    """JSON truthiness: ``null``, ``false``, ``0``, ``NaN`` and ``""`` are false.

    Empty arrays and objects count as true, unlike Python's ``bool``.
    """

    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def normalize_money_value(value: Any) -> str:
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return ""
        return format_money(value)
    if isinstance(value, str):
        return format_money_input(value)
    return ""


def normalize_text_value(value: Any) -> str:
    return sanitize_free_text(value) if isinstance(value, str) else ""


def normalize_date_value(value: Any) -> str:
    return sanitize_date_digits(value) if isinstance(value, str) else ""


def normalize_payment(value: Any, *, id_factory: IdFactory = new_id) -> Payment | None:
    """Repair one payment record; ``None`` only when it is not an object."""

    if not isinstance(value, Mapping):
        return None
    raw_id = value.get("id")
    return Payment(
        id=raw_id if isinstance(raw_id, str) and raw_id.strip() else id_factory(),
        descricao=normalize_text_value(value.get("descricao")),
        valor=normalize_money_value(value.get("valor")),
        vencimento=normalize_date_value(value.get("vencimento")),
        pago=_truthy(value.get("pago")),
        recorrente=_truthy(value.get("recorrente")),
    )


def normalize_payments(items: Any, *, id_factory: IdFactory = new_id) -> tuple[Payment, ...]:
    """Normalize a payment array, dropping non-objects.

    A repeated id is replaced with a fresh one so ids stay unique per list.
    """

    if not isinstance(items, list):
        return ()
    seen: set[str] = set()
    out: list[Payment] = []
    for item in items:
        payment = normalize_payment(item, id_factory=id_factory)
        if payment is None:
            continue
        if payment.id in seen:
            payment = payment.model_copy(update={"id": id_factory()})
        seen.add(payment.id)
        out.append(payment)
    return tuple(out)


def normalize_cofrinho(value: Any) -> CofrinhoConfig | None:
    if not isinstance(value, Mapping):
        return None
    enabled = _truthy(value.get("enabled"))
    amount = normalize_money_value(value.get("value"))
    goal = normalize_money_value(value["goal"]) if "goal" in value else ""
    if not enabled and not amount and not goal:
        return None
    return CofrinhoConfig(enabled=enabled, value=amount, goal=goal or None)


def normalize_month(
    key: str,
    value: Any,
    *,
    clock: Clock | None = None,
    id_factory: IdFactory = new_id,
) -> FinanceMonth | None:
    """Repair one month record stored under ``key``.

    Accepts ``payments`` or the older ``pagamentos`` array, and a ``cofrinho``
    object or an older ``destinado`` amount.
    """

    if not isinstance(value, Mapping):
        return None
    clock = clock or SystemClock()

    if isinstance(value.get("payments"), list):
        raw_payments = value["payments"]
    elif isinstance(value.get("pagamentos"), list):
        raw_payments = value["pagamentos"]
    else:
        raw_payments = []

    if "cofrinho" in value:
        cofrinho = normalize_cofrinho(value["cofrinho"])
    elif "destinado" in value:
        cofrinho = CofrinhoConfig(enabled=True, value=normalize_money_value(value["destinado"]))
    else:
        cofrinho = None

    competence = value.get("competence")
    created_at = value.get("createdAt")
    updated_at = value.get("updatedAt")
    now = clock.now()
    return FinanceMonth(
        competence=competence if is_month_key(competence) else key,
        valor_fixo=normalize_money_value(value.get("valorFixo")),
        renda_extra=normalize_money_value(value.get("rendaExtra")),
        cofrinho=cofrinho,
        payments=normalize_payments(raw_payments, id_factory=id_factory),
        created_at=created_at if isinstance(created_at, str) else now,
        updated_at=updated_at if isinstance(updated_at, str) else now,
    )


# ---------------------------------------------------------------------------
# Whole documents
# ---------------------------------------------------------------------------


def _recover_preferences(
    record: Mapping[str, Any],
) -> tuple[StatusFilter | None, SortOrder | None]:
    status = record.get("statusFilter")
    order = record.get("sortOrder")
    return (
        cast("StatusFilter", status) if is_status_filter(status) else None,
        cast("SortOrder", order) if is_sort_order(order) else None,
    )


def _normalize_months_document(
    record: Mapping[str, Any], *, clock: Clock, id_factory: IdFactory
) -> NormalizedStore:
    months: dict[str, FinanceMonth] = {}
    source = cast("Mapping[str, Any]", record["months"])
    for key, month_value in source.items():
        if not is_month_key(key):
            _logger.debug("normalize:skip_month key=%r reason=bad_key", key)
            continue
        month = normalize_month(key, month_value, clock=clock, id_factory=id_factory)
        if month is None:
            _logger.debug("normalize:skip_month key=%s reason=not_an_object", key)
            continue
        if month.competence != key:
            month = month.model_copy(update={"competence": key})
        months[key] = month

    keys = sorted(months)
    selected = record.get("selectedMonth")
    if not is_month_key(selected):
        selected = keys[-1] if keys else clock.current_month_key()
    if selected not in months:
        months[selected] = create_empty_month(selected, clock)

    status, order = _recover_preferences(record)
    store = FinanceStore(version=STORE_VERSION, selected_month=selected, months=months)
    return NormalizedStore(store=store, status_filter=status, sort_order=order)


def _normalize_legacy_document(
    record: Mapping[str, Any], *, clock: Clock, id_factory: IdFactory
) -> NormalizedStore:
    key = clock.current_month_key()
    destinado = normalize_money_value(record.get("destinado"))
    month = create_empty_month(key, clock).model_copy(
        update={
            "valor_fixo": normalize_money_value(record.get("valorFixo")),
            "renda_extra": normalize_money_value(record.get("rendaExtra")),
            "cofrinho": CofrinhoConfig(enabled=True, value=destinado) if destinado else None,
            "payments": normalize_payments(record.get("pagamentos"), id_factory=id_factory),
        }
    )
    status, order = _recover_preferences(record)
    store = FinanceStore(version=STORE_VERSION, selected_month=key, months={key: month})
    return NormalizedStore(store=store, status_filter=status, sort_order=order)


def normalize_store(
    value: Any,
    *,
    clock: Clock | None = None,
    id_factory: IdFactory = new_id,
) -> NormalizedStore | None:
    """Normalize a decoded document; ``None`` when it cannot be recognized.

    Callers treat ``None`` as an invalid file and keep their current state.
    """

    clock = clock or SystemClock()
    classification = classify_document(value)
    if isinstance(classification, Unrecognized):
        _logger.info("normalize:rejected reason=%s", classification.reason)
        return None
    if classification.shape == "months":
        return _normalize_months_document(
            classification.record, clock=clock, id_factory=id_factory
        )
    return _normalize_legacy_document(classification.record, clock=clock, id_factory=id_factory)


__all__ = [
    "Classification",
    "Recognized",
    "Unrecognized",
    "classify_document",
    "normalize_cofrinho",
    "normalize_money_value",
    "normalize_month",
    "normalize_payment",
    "normalize_payments",
    "normalize_store",
]
