"""Logging for the ``financeiro`` package.

Library modules ask :func:`get_logger` for ``"financeiro.<module>"`` and log
freely; nothing is emitted until an entrypoint calls
:func:`configure_logging`, because the package logger carries only a
``NullHandler`` until then. The CLI configures logging once from its root
callback, with the level taken from ``FINANCEIRO_LOG_LEVEL`` unless one is
passed in.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "financeiro"
LOG_LEVEL_ENV = "FINANCEIRO_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_handler: logging.Handler | None = None


def level_from_name(value: int | str | None, default: int = logging.INFO) -> int:
    """Map ``"debug"``, ``"WARNING"``, ``"10"`` or ``10`` to a level number.

    Anything unrecognized maps to ``default``.
    """

    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return default
    text = value.strip()
    if text.isascii() and text.isdigit() and len(text) <= 3:
        return int(text)
    return logging.getLevelNamesMapping().get(text.upper(), default)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send package logs to ``stream``; later calls are ignored.

    The package logger stops propagating to the root logger so a host that
    configures the root does not print every record twice.
    """

    global _handler
    if _handler is not None:
        return

    resolved = level_from_name(level if level is not None else os.getenv(LOG_LEVEL_ENV))
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False
    _handler = handler


def get_logger(name: str) -> logging.Logger:
    package = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not package.handlers:
        package.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "level_from_name"]
