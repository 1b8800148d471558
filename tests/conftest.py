"""Pytest configuration for test isolation.

The CLI reads and writes a JSON state file (default
``./.financeiro/finance-state-v1.json``). To keep tests hermetic, an autouse
fixture points ``FINANCEIRO_STORE_PATH`` at a per-test temporary file and
disables the save debounce delay.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests.helpers.fakes import FixedClock, SequentialIds


@pytest.fixture(autouse=True)
def _isolate_store_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Force a per-test state file so tests don't share on-disk state."""

    store_dir = tmp_path / "state"
    store_dir.mkdir(parents=True, exist_ok=True)
    store_path = store_dir / "finance-state-v1.json"
    monkeypatch.setenv("FINANCEIRO_STORE_PATH", os.fspath(store_path))
    monkeypatch.setenv("FINANCEIRO_SAVE_DELAY_MS", "0")
    return store_path


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock("2025-03")


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()
