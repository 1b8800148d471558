import json

import pytest

from financeiro.session import FinanceSession
from financeiro.storage import InvalidDocumentError
from tests.helpers.fakes import BrokenStorage, FixedClock, MemoryStorage, SequentialIds


def _session(storage=None, *, month="2025-03") -> FinanceSession:
    return FinanceSession(
        storage if storage is not None else MemoryStorage(),
        clock=FixedClock(month),
        id_factory=SequentialIds(),
        save_delay_seconds=60,
    )


def test_new_session_starts_with_current_month():
    session = _session()
    assert session.store.selected_month == "2025-03"
    assert session.status_filter == "todos"
    assert session.sort_order == "vencimento-asc"
    assert session.visible_payments() == []


def test_unreadable_storage_falls_back_to_default_state():
    session = _session(BrokenStorage())
    assert list(session.store.months) == ["2025-03"]


def test_restore_applies_saved_preferences():
    storage = MemoryStorage(
        {
            "selectedMonth": "2024-07",
            "months": {"2024-07": {"valorFixo": "R$ 10,00"}},
            "statusFilter": "pagos",
            "sortOrder": "valor-desc",
        }
    )
    session = _session(storage)
    assert session.store.selected_month == "2024-07"
    assert session.status_filter == "pagos"
    assert session.sort_order == "valor-desc"


def test_edits_are_saved_once_on_flush():
    storage = MemoryStorage()
    with _session(storage) as session:
        payment = session.add_payment()
        session.update_payment(payment.id, "descricao", "Aluguel")
        session.update_payment(payment.id, "valor", "150000")
        session.update_payment(payment.id, "pago", True)
        assert storage.saves == []

    assert len(storage.saves) == 1
    saved = storage.saves[0]
    assert saved["selectedMonth"] == "2025-03"
    assert saved["statusFilter"] == "todos"
    [row] = saved["months"]["2025-03"]["payments"]
    assert row["id"] == "id-1"
    assert row["descricao"] == "Aluguel"
    assert row["pago"] is True


def test_totals_follow_the_selected_month():
    session = _session()
    session.set_valor_fixo("300000")
    session.set_cofrinho_value("50000")
    rent = session.add_payment()
    session.update_payment(rent.id, "valor", "100000")
    session.update_payment(rent.id, "pago", True)
    piggy = session.add_payment()
    session.update_payment(piggy.id, "descricao", "Cofrinho")
    session.update_payment(piggy.id, "valor", "20000")

    totals = session.totals()
    assert totals.total_paid == pytest.approx(1000.0)
    assert totals.total_open == pytest.approx(200.0)
    assert totals.total_to_savings == pytest.approx(200.0)
    assert totals.usable_balance == pytest.approx(2000.0)
    assert totals.savings_remaining == pytest.approx(700.0)


def test_filter_and_sort_preferences():
    session = _session()
    a = session.add_payment()
    b = session.add_payment()
    session.update_payment(b.id, "pago", True)

    session.set_status_filter("pagos")
    assert [p.id for p in session.visible_payments()] == [b.id]

    session.set_status_filter("todos")
    session.set_sort_order("status-pagos")
    assert [p.id for p in session.visible_payments()] == [b.id, a.id]

    with pytest.raises(ValueError):
        session.set_status_filter("quitados")
    with pytest.raises(ValueError):
        session.set_sort_order("aleatorio")
    assert session.status_filter == "todos"


def test_add_month_selects_the_new_month():
    session = _session()
    recurring = session.add_payment()
    session.update_payment(recurring.id, "recorrente", True)
    key = session.add_month()
    assert key == "2025-04"
    assert session.month.competence == "2025-04"
    assert len(session.month.payments) == 1
    assert session.month.payments[0].id != recurring.id


def test_import_failure_leaves_state_untouched():
    storage = MemoryStorage()
    session = _session(storage)
    session.set_valor_fixo("100")
    session.set_sort_order("valor-asc")
    before = session.store

    with pytest.raises(InvalidDocumentError, match="Arquivo inválido."):
        session.import_text('{"hello": "world"}')

    assert session.store is before
    assert session.sort_order == "valor-asc"


def test_import_merges_months_and_resets_preferences():
    session = _session()
    session.set_status_filter("abertos")
    session.set_sort_order("valor-asc")
    session.import_text(
        json.dumps(
            {
                "version": 2,
                "selectedMonth": "2024-12",
                "months": {"2024-12": {"valorFixo": "R$ 5,00"}},
                "sortOrder": "nenhum",
            }
        )
    )
    assert sorted(session.store.months) == ["2024-12", "2025-03"]
    assert session.store.selected_month == "2024-12"
    assert session.status_filter == "todos"
    assert session.sort_order == "nenhum"


def test_export_includes_preferences():
    session = _session()
    session.set_sort_order("nenhum")
    payload = session.export()
    assert payload.filename == "financeiro.json"
    data = json.loads(payload.text)
    assert data["sortOrder"] == "nenhum"
    assert data["statusFilter"] == "todos"
