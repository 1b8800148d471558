import pytest

from financeiro.models import Payment
from financeiro.ordering import filter_payments, sort_payments, visible_payments


def _p(pid: str, *, valor: str = "", vencimento: str = "", pago: bool = False) -> Payment:
    return Payment(id=pid, valor=valor, vencimento=vencimento, pago=pago)


def _ids(payments: list[Payment]) -> list[str]:
    return [p.id for p in payments]


DATED = [
    _p("mar", vencimento="10/03/2025", valor="R$ 30,00"),
    _p("bad", vencimento="31/02/2025", valor="R$ 5,00", pago=True),
    _p("jan", vencimento="05/01/2025", valor="R$ 100,00", pago=True),
    _p("partial", vencimento="12/0", valor=""),
    _p("feb", vencimento="20/02/2025", valor="R$ 0,50"),
]


def test_filter_payments_by_status():
    assert _ids(filter_payments(DATED, "todos")) == ["mar", "bad", "jan", "partial", "feb"]
    assert _ids(filter_payments(DATED, "pagos")) == ["bad", "jan"]
    assert _ids(filter_payments(DATED, "abertos")) == ["mar", "partial", "feb"]


def test_filter_payments_unknown_status():
    with pytest.raises(ValueError):
        filter_payments(DATED, "quitados")  # type: ignore[arg-type]


def test_unsorted_keeps_insertion_order():
    assert _ids(sort_payments(DATED, "nenhum")) == ["mar", "bad", "jan", "partial", "feb"]


def test_due_date_ascending_puts_invalid_dates_last():
    assert _ids(sort_payments(DATED, "vencimento-asc")) == ["jan", "feb", "mar", "bad", "partial"]


def test_due_date_descending_still_puts_invalid_dates_last():
    assert _ids(sort_payments(DATED, "vencimento-desc")) == ["mar", "feb", "jan", "bad", "partial"]


def test_amount_orders_put_empty_amounts_last():
    assert _ids(sort_payments(DATED, "valor-asc")) == ["feb", "bad", "mar", "jan", "partial"]
    assert _ids(sort_payments(DATED, "valor-desc")) == ["jan", "mar", "bad", "feb", "partial"]


def test_amount_order_sorts_entries_without_dates():
    items = [_p("a", valor="R$ 9,00"), _p("b", valor="R$ 1,00"), _p("c")]
    assert _ids(sort_payments(items, "valor-asc")) == ["b", "a", "c"]


def test_status_orders_partition_then_sort_by_due_date():
    assert _ids(sort_payments(DATED, "status-abertos")) == ["feb", "mar", "partial", "jan", "bad"]
    assert _ids(sort_payments(DATED, "status-pagos")) == ["jan", "bad", "feb", "mar", "partial"]


def test_sort_is_stable_for_ties():
    items = [_p("x", vencimento="01/01/2025"), _p("y", vencimento="01/01/2025"), _p("z")]
    assert _ids(sort_payments(items, "vencimento-desc")) == ["x", "y", "z"]
    assert _ids(sort_payments(items, "vencimento-asc")) == ["x", "y", "z"]


def test_visible_payments_filters_before_sorting():
    assert _ids(visible_payments(DATED, "abertos", "vencimento-desc")) == ["mar", "feb", "partial"]


def test_sort_does_not_mutate_input():
    items = list(DATED)
    sort_payments(items, "valor-desc")
    assert _ids(items) == ["mar", "bad", "jan", "partial", "feb"]
