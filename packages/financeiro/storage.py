"""Persistence, export and import of the finance document.

Local state lives in one JSON file (the counterpart of a browser storage
key). Reads and writes are best effort: a missing or corrupt file restores
the default state and a failed write is logged and dropped. Writes are
debounced so a burst of edits turns into a single write.

Atomicity: writes target ``<path>.tmp`` first and then ``os.replace`` into
place.

Import is the one path that reports failure to the user: an undecodable or
unrecognized document raises :class:`InvalidDocumentError` and the caller
keeps its current state.
"""

from __future__ import annotations

import contextlib
import json
import os
import threading
from pathlib import Path
from typing import Any, NamedTuple, Protocol

from .clock import Clock, IdFactory, new_id
from .logging_setup import get_logger
from .models import FinanceStore, NormalizedStore, SortOrder, StatusFilter
from .normalize import normalize_store

EXPORT_FILENAME = "financeiro.json"
INVALID_FILE_MESSAGE = "Arquivo inválido."

_logger = get_logger("financeiro.storage")


class InvalidDocumentError(ValueError):
    """An imported document could not be decoded or recognized."""

    def __init__(self, message: str = INVALID_FILE_MESSAGE) -> None:
        super().__init__(message)


class Storage(Protocol):
    def load(self) -> Any | None: ...

    def save(self, document: Any) -> None: ...


class JsonFileStorage:
    """A single JSON document on disk."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def load(self) -> Any | None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError):
            _logger.debug("storage:read_failed path=%s", os.fspath(self.path), exc_info=True)
            return None
        try:
            return json.loads(text)
        except (ValueError, RecursionError):
            # JSONDecodeError is a ValueError, as is an integer past the digit limit.
            _logger.debug("storage:parse_failed path=%s", os.fspath(self.path), exc_info=True)
            return None

    def save(self, document: Any) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps(document, ensure_ascii=False, separators=(",", ":")),
                encoding="utf-8",
            )
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError):
            with contextlib.suppress(OSError):
                tmp.unlink()
            _logger.warning("storage:write_failed path=%s", os.fspath(self.path), exc_info=True)


class DebouncedWriter:
    """Coalesce saves: only the most recently scheduled document is written.

    ``schedule`` cancels any pending write and starts a new timer of
    ``delay_seconds``. ``flush`` writes the pending document right away and
    ``cancel`` drops it.
    """

    def __init__(self, storage: Storage, delay_seconds: float = 0.4) -> None:
        self._storage = storage
        self._delay = delay_seconds
        self._lock = threading.Lock()
        # Held for the whole save so flush() waits for a write already in flight.
        self._write_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._pending: Any | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def schedule(self, document: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._pending = document
            timer = threading.Timer(self._delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
        timer.start()

    def _fire(self, generation: int) -> None:
        with self._write_lock:
            with self._lock:
                # A newer schedule() superseded this timer after it started firing.
                if generation != self._generation or self._timer is None:
                    return
                document = self._pending
                self._timer = None
                self._pending = None
            _logger.debug("storage:debounced_write generation=%d", generation)
            self._storage.save(document)

    def flush(self) -> None:
        with self._write_lock:
            with self._lock:
                if self._timer is None:
                    return
                self._timer.cancel()
                document = self._pending
                self._timer = None
                self._pending = None
                self._generation += 1
            self._storage.save(document)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None
            self._generation += 1


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class ExportPayload(NamedTuple):
    text: str
    filename: str


def dump_document(
    store: FinanceStore,
    status_filter: StatusFilter | None = None,
    sort_order: SortOrder | None = None,
) -> dict[str, Any]:
    """The JSON value written to storage and to exports."""

    document = store.model_dump(mode="json", by_alias=True)
    if status_filter is not None:
        document["statusFilter"] = status_filter
    if sort_order is not None:
        document["sortOrder"] = sort_order
    return document


def export_document(
    store: FinanceStore,
    status_filter: StatusFilter | None = None,
    sort_order: SortOrder | None = None,
) -> ExportPayload:
    text = json.dumps(
        dump_document(store, status_filter, sort_order), ensure_ascii=False, indent=2
    )
    return ExportPayload(text=text, filename=EXPORT_FILENAME)


def parse_import(
    text: str,
    *,
    clock: Clock | None = None,
    id_factory: IdFactory = new_id,
) -> NormalizedStore:
    """Decode and normalize an imported file, failing closed."""

    try:
        raw = json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise InvalidDocumentError() from exc
    normalized = normalize_store(raw, clock=clock, id_factory=id_factory)
    if normalized is None:
        raise InvalidDocumentError()
    return normalized


def read_import_file(path: str | os.PathLike[str]) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_export_file(payload: ExportPayload, destination: str | os.PathLike[str]) -> Path:
    """Write an export to ``destination``; a directory gets the suggested name."""

    target = Path(destination)
    if target.is_dir():
        target = target / payload.filename
    target.write_text(payload.text, encoding="utf-8")
    return target


def restore(
    storage: Storage,
    *,
    clock: Clock | None = None,
    id_factory: IdFactory = new_id,
) -> NormalizedStore | None:
    """Load the saved document; ``None`` means start from the default state."""

    try:
        raw = storage.load()
    except Exception:
        _logger.debug("storage:restore_load_failed", exc_info=True)
        return None
    if raw is None:
        return None
    try:
        return normalize_store(raw, clock=clock, id_factory=id_factory)
    except ValueError:
        _logger.debug("storage:restore_normalize_failed", exc_info=True)
        return None


__all__ = [
    "EXPORT_FILENAME",
    "INVALID_FILE_MESSAGE",
    "DebouncedWriter",
    "ExportPayload",
    "InvalidDocumentError",
    "JsonFileStorage",
    "Storage",
    "dump_document",
    "export_document",
    "parse_import",
    "read_import_file",
    "restore",
    "write_export_file",
]
