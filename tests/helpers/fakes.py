"""Deterministic collaborators for tests: clock, id factory and storage."""

from __future__ import annotations

import copy
from typing import Any


class FixedClock:
    """Clock pinned to a month; ``now()`` advances one second per call so
    ``updatedAt`` refreshes remain observable."""

    def __init__(self, month_key: str = "2025-03", *, day: int = 15) -> None:
        self.month_key = month_key
        self.day = day
        self.ticks = 0

    def now(self) -> str:
        stamp = f"{self.month_key}-{self.day:02d}T12:00:{self.ticks:02d}.000Z"
        self.ticks = (self.ticks + 1) % 60
        return stamp

    def current_month_key(self) -> str:
        return self.month_key


class SequentialIds:
    def __init__(self, prefix: str = "id") -> None:
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


class MemoryStorage:
    """In-memory stand-in for the JSON file, recording every save."""

    def __init__(self, document: Any | None = None) -> None:
        self.document = copy.deepcopy(document)
        self.saves: list[Any] = []

    def load(self) -> Any | None:
        return copy.deepcopy(self.document)

    def save(self, document: Any) -> None:
        self.document = copy.deepcopy(document)
        self.saves.append(self.document)


class BrokenStorage:
    def load(self) -> Any | None:
        raise OSError("storage unavailable")

    def save(self, document: Any) -> None:
        raise AssertionError("save should not be reached")
