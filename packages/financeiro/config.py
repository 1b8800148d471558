"""Runtime settings for ``financeiro``.

Values come from environment variables. Entrypoints load a local ``.env``
with ``python-dotenv`` before calling :func:`load_settings`; this module never
reads ``.env`` itself.

- ``FINANCEIRO_STORE_PATH``: JSON state file (default
  ``./.financeiro/finance-state-v1.json`` under the current working directory).
- ``FINANCEIRO_SAVE_DELAY_MS``: debounce delay for persistence writes in
  milliseconds (default ``400``).
- ``FINANCEIRO_LOG_LEVEL``: read by :mod:`financeiro.logging_setup`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

STORAGE_KEY = "finance-state-v1"
DEFAULT_SAVE_DELAY_MS = 400


@dataclass(frozen=True, slots=True)
class Settings:
    store_path: Path
    save_delay_ms: int = DEFAULT_SAVE_DELAY_MS

    @property
    def save_delay_seconds(self) -> float:
        return self.save_delay_ms / 1000.0


def _get_store_path() -> Path:
    raw = os.getenv("FINANCEIRO_STORE_PATH")
    if raw and raw.strip():
        return Path(raw.strip()).expanduser().resolve()
    return (Path.cwd() / ".financeiro" / f"{STORAGE_KEY}.json").resolve()


def _get_save_delay_ms() -> int:
    raw = os.getenv("FINANCEIRO_SAVE_DELAY_MS")
    if not raw:
        return DEFAULT_SAVE_DELAY_MS
    try:
        value = int(raw.strip())
    except ValueError:
        return DEFAULT_SAVE_DELAY_MS
    return value if value >= 0 else DEFAULT_SAVE_DELAY_MS


def load_settings() -> Settings:
    return Settings(store_path=_get_store_path(), save_delay_ms=_get_save_delay_ms())


__all__ = ["STORAGE_KEY", "Settings", "load_settings"]
