"""Stateful owner of the ledger for an interactive front end.

``FinanceSession`` holds the current store plus the status filter and sort
order, replaces the whole store on every change and schedules a debounced save
of the resulting document. Front ends (the CLI) talk to this class only.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, cast

from . import ledger
from .clock import Clock, IdFactory, SystemClock, new_id
from .logging_setup import get_logger
from .models import (
    DEFAULT_SORT_ORDER,
    DEFAULT_STATUS_FILTER,
    FinanceMonth,
    FinanceStore,
    Payment,
    SortOrder,
    StatusFilter,
    Totals,
    is_sort_order,
    is_status_filter,
)
from .ordering import visible_payments
from .storage import (
    DebouncedWriter,
    ExportPayload,
    Storage,
    dump_document,
    export_document,
    parse_import,
    restore,
)
from .totals import month_totals

_logger = get_logger("financeiro.session")


class FinanceSession:
    def __init__(
        self,
        storage: Storage,
        *,
        clock: Clock | None = None,
        id_factory: IdFactory = new_id,
        save_delay_seconds: float = 0.4,
    ) -> None:
        self._clock = clock or SystemClock()
        self._new_id = id_factory
        self._writer = DebouncedWriter(storage, save_delay_seconds)
        self.status_filter: StatusFilter = DEFAULT_STATUS_FILTER
        self.sort_order: SortOrder = DEFAULT_SORT_ORDER

        restored = restore(storage, clock=self._clock, id_factory=self._new_id)
        if restored is None:
            self._store = ledger.create_empty_store(self._clock)
        else:
            self._store = restored.store
            if restored.status_filter is not None:
                self.status_filter = restored.status_filter
            if restored.sort_order is not None:
                self.sort_order = restored.sort_order

    # ---- read side -------------------------------------------------------

    @property
    def store(self) -> FinanceStore:
        return self._store

    @property
    def month(self) -> FinanceMonth:
        return self._store.months[self._store.selected_month]

    def totals(self) -> Totals:
        return month_totals(self.month)

    def visible_payments(self) -> list[Payment]:
        return visible_payments(self.month.payments, self.status_filter, self.sort_order)

    def find_payment(self, payment_id: str) -> Payment | None:
        return next((p for p in self.month.payments if p.id == payment_id), None)

    # ---- write side ------------------------------------------------------

    def _commit(self, store: FinanceStore) -> None:
        self._store = ledger.ensure_selected_month(store, self._clock)
        self._writer.schedule(dump_document(self._store, self.status_filter, self.sort_order))

    def _apply(self, fn: Callable[..., FinanceStore], *args: Any) -> None:
        self._commit(fn(self._store, *args))

    def add_month(self) -> str:
        self._apply(ledger.add_month, self._clock, self._new_id)
        return self._store.selected_month

    def select_month(self, key: str) -> None:
        self._apply(ledger.select_month, key, self._clock)

    def set_valor_fixo(self, raw: str) -> None:
        self._apply(ledger.set_valor_fixo, raw, self._clock)

    def set_renda_extra(self, raw: str) -> None:
        self._apply(ledger.set_renda_extra, raw, self._clock)

    def set_cofrinho_value(self, raw: str) -> None:
        self._apply(ledger.set_cofrinho_value, raw, self._clock)

    def set_cofrinho_goal(self, raw: str) -> None:
        self._apply(ledger.set_cofrinho_goal, raw, self._clock)

    def add_payment(self) -> Payment:
        self._apply(ledger.add_payment, self._clock, self._new_id)
        return self.month.payments[-1]

    def update_payment(self, payment_id: str, field: str, value: Any) -> None:
        self._apply(ledger.update_payment, payment_id, field, value, self._clock)

    def remove_payment(self, payment_id: str) -> None:
        self._apply(ledger.remove_payment, payment_id, self._clock)

    def set_status_filter(self, value: str) -> None:
        if not is_status_filter(value):
            raise ValueError(f"unknown status filter: {value!r}")
        self.status_filter = cast("StatusFilter", value)
        self._commit(self._store)

    def set_sort_order(self, value: str) -> None:
        if not is_sort_order(value):
            raise ValueError(f"unknown sort order: {value!r}")
        self.sort_order = cast("SortOrder", value)
        self._commit(self._store)

    # ---- import / export -------------------------------------------------

    def export(self) -> ExportPayload:
        return export_document(self._store, self.status_filter, self.sort_order)

    def import_text(self, text: str) -> None:
        """Merge an imported document; raises ``InvalidDocumentError`` and
        leaves the session untouched when the file is not recognized."""

        normalized = parse_import(text, clock=self._clock, id_factory=self._new_id)
        self.status_filter = normalized.status_filter or DEFAULT_STATUS_FILTER
        self.sort_order = normalized.sort_order or DEFAULT_SORT_ORDER
        self._commit(ledger.merge_imported(self._store, normalized.store))
        _logger.info(
            "session:imported months=%d selected=%s",
            len(normalized.store.months),
            normalized.store.selected_month,
        )

    # ---- lifecycle -------------------------------------------------------

    def flush(self) -> None:
        self._writer.flush()

    def close(self) -> None:
        self.flush()

    def __enter__(self) -> FinanceSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["FinanceSession"]
