"""Data models for the monthly finance ledger.

The persisted document (schema version 2) is modelled with Pydantic so the
canonical shape is validated on construction and dumped with its wire names
(``valorFixo``, ``selectedMonth``, ...). Models are frozen: every change goes
through ``model_copy(update=...)`` and produces a new value.

Untrusted input never reaches these constructors directly; it goes through
:mod:`financeiro.normalize` first, which repairs fields before validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, NamedTuple

from pydantic import (
    BaseModel,
    ConfigDict,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .dates import is_month_key

STORE_VERSION: int = 2

StatusFilter = Literal["todos", "abertos", "pagos"]
SortOrder = Literal[
    "vencimento-asc",
    "vencimento-desc",
    "valor-asc",
    "valor-desc",
    "status-abertos",
    "status-pagos",
    "nenhum",
]

STATUS_FILTERS: tuple[str, ...] = ("todos", "abertos", "pagos")
SORT_ORDERS: tuple[str, ...] = (
    "vencimento-asc",
    "vencimento-desc",
    "valor-asc",
    "valor-desc",
    "status-abertos",
    "status-pagos",
    "nenhum",
)
DEFAULT_STATUS_FILTER: StatusFilter = "todos"
DEFAULT_SORT_ORDER: SortOrder = "vencimento-asc"


def is_status_filter(value: object) -> bool:
    return isinstance(value, str) and value in STATUS_FILTERS


def is_sort_order(value: object) -> bool:
    return isinstance(value, str) and value in SORT_ORDERS


_MODEL_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
)


class Payment(BaseModel):
    """One entry of a month's payment list.

    ``valor`` is the display string (``R$ 1.234,56``), ``vencimento`` the
    masked ``dd/mm/yyyy`` text as typed, possibly incomplete. Both may be
    empty for an entry the user has not filled in yet.
    """

    model_config = _MODEL_CONFIG

    id: str
    descricao: str = ""
    valor: str = ""
    vencimento: str = ""
    pago: bool = False
    recorrente: bool = False


class CofrinhoConfig(BaseModel):
    """Savings ("cofrinho") allocation for a month."""

    model_config = _MODEL_CONFIG

    enabled: bool
    value: str = ""
    goal: str | None = None

    @model_serializer(mode="wrap")
    def _omit_unset_goal(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if self.goal is None:
            data.pop("goal", None)
        return data


class FinanceMonth(BaseModel):
    """One monthly ledger keyed by its competence (``yyyy-mm``)."""

    model_config = _MODEL_CONFIG

    competence: str
    valor_fixo: str = ""
    renda_extra: str = ""
    cofrinho: CofrinhoConfig | None = None
    payments: tuple[Payment, ...] = ()
    created_at: str
    updated_at: str

    @model_validator(mode="after")
    def _check_competence(self) -> FinanceMonth:
        if not is_month_key(self.competence):
            raise ValueError(f"competence must be yyyy-mm: {self.competence!r}")
        ids = [p.id for p in self.payments]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate payment id in {self.competence}")
        return self


class FinanceStore(BaseModel):
    """The whole persisted document: every month plus the selected one."""

    model_config = _MODEL_CONFIG

    version: int = STORE_VERSION
    selected_month: str
    months: dict[str, FinanceMonth]

    @model_validator(mode="after")
    def _check_months(self) -> FinanceStore:
        for key, month in self.months.items():
            if not is_month_key(key):
                raise ValueError(f"month key must be yyyy-mm: {key!r}")
            if month.competence != key:
                raise ValueError(f"month {key} holds competence {month.competence}")
        if self.selected_month not in self.months:
            raise ValueError(f"selectedMonth {self.selected_month!r} has no month")
        return self

    @property
    def current(self) -> FinanceMonth:
        return self.months[self.selected_month]


@dataclass(frozen=True, slots=True)
class Totals:
    """Derived figures for display; recomputed whenever inputs change."""

    total_paid: float
    total_open: float
    total_to_savings: float
    usable_balance: float
    savings_remaining: float


class NormalizedStore(NamedTuple):
    """A canonical store plus the UI preferences recovered alongside it."""

    store: FinanceStore
    status_filter: StatusFilter | None = None
    sort_order: SortOrder | None = None


__all__ = [
    "DEFAULT_SORT_ORDER",
    "DEFAULT_STATUS_FILTER",
    "SORT_ORDERS",
    "STATUS_FILTERS",
    "STORE_VERSION",
    "CofrinhoConfig",
    "FinanceMonth",
    "FinanceStore",
    "NormalizedStore",
    "Payment",
    "SortOrder",
    "StatusFilter",
    "Totals",
    "is_sort_order",
    "is_status_filter",
]
