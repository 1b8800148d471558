"""Clock and identity collaborators.

The ledger never reads the wall clock or generates ids on its own; callers
pass a :class:`Clock` and an id factory so tests can pin both.
"""

from __future__ import annotations

import random
import time
import uuid
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Protocol

from .dates import month_key_for

IdFactory = Callable[[], str]


class Clock(Protocol):
    def now(self) -> str:
        """Current instant as an ISO-8601 string."""
        ...

    def current_month_key(self) -> str:
        """Current calendar month as ``yyyy-mm``."""
        ...


class SystemClock:
    """Wall-clock implementation (UTC timestamps, local calendar month)."""

    def now(self) -> str:
        stamp = datetime.now(UTC).isoformat(timespec="milliseconds")
        return stamp.replace("+00:00", "Z")

    def current_month_key(self) -> str:
        return month_key_for(date.today())


def new_id() -> str:
    """Random payment identity; UUID4 with a timestamp+random fallback."""

    try:
        return str(uuid.uuid4())
    except NotImplementedError:  # pragma: no cover - no OS randomness source
        return f"p-{int(time.time() * 1000)}-{random.getrandbits(48):x}"


__all__ = ["Clock", "IdFactory", "SystemClock", "new_id"]
