import json
import time

import pytest

from financeiro import ledger
from financeiro.storage import (
    EXPORT_FILENAME,
    DebouncedWriter,
    InvalidDocumentError,
    JsonFileStorage,
    dump_document,
    export_document,
    parse_import,
    restore,
    write_export_file,
)
from tests.helpers.fakes import BrokenStorage, MemoryStorage

# ---- JsonFileStorage ---------------------------------------------------------


def test_json_file_storage_round_trip(tmp_path):
    storage = JsonFileStorage(tmp_path / "nested" / "state.json")
    storage.save({"version": 2, "texto": "pão"})
    assert storage.load() == {"version": 2, "texto": "pão"}
    assert not (tmp_path / "nested" / "state.json.tmp").exists()


def test_json_file_storage_missing_or_corrupt_file_loads_none(tmp_path):
    path = tmp_path / "state.json"
    storage = JsonFileStorage(path)
    assert storage.load() is None
    path.write_text("{not json", encoding="utf-8")
    assert storage.load() is None


def test_json_file_storage_oversized_integer_loads_none(tmp_path):
    path = tmp_path / "state.json"
    path.write_text('{"valorFixo": ' + "1" * 5000 + "}", encoding="utf-8")
    assert JsonFileStorage(path).load() is None


def test_json_file_storage_write_failure_is_swallowed(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    storage = JsonFileStorage(blocker / "state.json")
    storage.save({"version": 2})
    assert storage.load() is None
    assert blocker.read_text(encoding="utf-8") == "x"


# ---- DebouncedWriter ---------------------------------------------------------


def test_debounced_writer_coalesces_to_last_document():
    storage = MemoryStorage()
    writer = DebouncedWriter(storage, delay_seconds=60)
    writer.schedule({"n": 1})
    writer.schedule({"n": 2})
    writer.schedule({"n": 3})
    assert writer.pending
    assert storage.saves == []

    writer.flush()
    assert storage.saves == [{"n": 3}]
    assert not writer.pending

    writer.flush()
    assert storage.saves == [{"n": 3}]


def test_debounced_writer_cancel_drops_pending():
    storage = MemoryStorage()
    writer = DebouncedWriter(storage, delay_seconds=60)
    writer.schedule({"n": 1})
    writer.cancel()
    writer.flush()
    assert storage.saves == []


def test_debounced_writer_fires_after_delay():
    storage = MemoryStorage()
    writer = DebouncedWriter(storage, delay_seconds=0.01)
    writer.schedule({"n": 1})
    deadline = time.monotonic() + 5
    while writer.pending and time.monotonic() < deadline:
        time.sleep(0.01)
    # Waits for a save that is still in flight.
    writer.flush()
    assert storage.saves == [{"n": 1}]


# ---- documents ---------------------------------------------------------------


def test_dump_document_uses_wire_names(clock):
    store = ledger.create_empty_store(clock)
    doc = dump_document(store, "pagos", "valor-asc")
    assert doc["version"] == 2
    assert doc["selectedMonth"] == "2025-03"
    assert doc["statusFilter"] == "pagos"
    assert doc["sortOrder"] == "valor-asc"
    month = doc["months"]["2025-03"]
    assert set(month) == {
        "competence",
        "valorFixo",
        "rendaExtra",
        "cofrinho",
        "payments",
        "createdAt",
        "updatedAt",
    }
    assert "statusFilter" not in dump_document(store)


def test_export_document(clock):
    store = ledger.set_valor_fixo(ledger.create_empty_store(clock), "100", clock)
    payload = export_document(store, "todos", "nenhum")
    assert payload.filename == EXPORT_FILENAME == "financeiro.json"
    assert "\n  " in payload.text
    assert json.loads(payload.text)["sortOrder"] == "nenhum"


def test_write_export_file_into_directory(tmp_path, clock):
    payload = export_document(ledger.create_empty_store(clock))
    target = write_export_file(payload, tmp_path)
    assert target == tmp_path / "financeiro.json"
    assert target.read_text(encoding="utf-8") == payload.text


@pytest.mark.parametrize("text", ["", "{", "[]", "null", '{"foo": 1}', '{"months": 3}'])
def test_parse_import_rejects_invalid_files(text, clock):
    with pytest.raises(InvalidDocumentError) as excinfo:
        parse_import(text, clock=clock)
    assert str(excinfo.value) == "Arquivo inválido."


def test_parse_import_rejects_integer_literal_past_digit_limit(clock):
    with pytest.raises(InvalidDocumentError, match="Arquivo inválido."):
        parse_import('{"valorFixo": ' + "1" * 5000 + "}", clock=clock)


def test_parse_import_rejects_deeply_nested_json(clock):
    with pytest.raises(InvalidDocumentError):
        parse_import("[" * 100_000 + "]" * 100_000, clock=clock)


def test_parse_import_accepts_very_long_amount_strings(clock):
    text = json.dumps({"version": 2, "months": {"2024-01": {"valorFixo": "9" * 5000}}})
    normalized = parse_import(text, clock=clock)
    assert normalized.store.months["2024-01"].valor_fixo.endswith(",99")


def test_parse_import_accepts_legacy_file(clock, ids):
    normalized = parse_import(
        json.dumps({"valorFixo": "1000", "pagamentos": [{"descricao": "Luz"}]}),
        clock=clock,
        id_factory=ids,
    )
    assert normalized.store.selected_month == "2025-03"
    assert [p.id for p in normalized.store.current.payments] == ["id-1"]


# ---- restore -----------------------------------------------------------------


def test_restore_missing_document_returns_none(clock):
    assert restore(MemoryStorage(), clock=clock) is None


def test_restore_unreadable_storage_returns_none(clock):
    assert restore(BrokenStorage(), clock=clock) is None


def test_restore_unrecognized_document_returns_none(clock):
    assert restore(MemoryStorage({"hello": "world"}), clock=clock) is None


def test_restore_saved_document(clock):
    store = ledger.set_valor_fixo(ledger.create_empty_store(clock), "100", clock)
    restored = restore(MemoryStorage(dump_document(store, "abertos", None)), clock=clock)
    assert restored is not None
    assert restored.store == store
    assert restored.status_filter == "abertos"
    assert restored.sort_order is None
