"""Logging for the ``payments_ledger`` package.

Every module logs through ``get_logger("payments_ledger.<module>")`` with
messages shaped ``component:event key=value ...``. Only the CLI installs a
handler (:func:`configure_logging`); it writes one line per record to stderr
so stdout carries nothing but the accounts CSV::

    2026-01-02T03:04:05 WARNING dispatcher:record_skipped line=4 error=...
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

LOG_LEVEL_ENV = "PAYMENTS_LEDGER_LOG_LEVEL"

_PKG_LOGGER_NAME = "payments_ledger"
_HANDLER_NAME = "payments_ledger.stderr"
_FORMAT = "%(asctime)s %(levelname)s %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or ``$PAYMENTS_LEDGER_LOG_LEVEL``) into a numeric level.

    Accepts an ``int``, a numeric string or a level name in any case. Falls
    back to ``INFO`` when neither the argument nor the variable is set.
    Raises ``ValueError`` for names ``logging`` does not know.
    """

    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "").strip() or logging.INFO
    if isinstance(level, int):
        return level
    token = level.strip().upper()
    if token.isdigit():
        return int(token)
    names = logging.getLevelNamesMapping()
    if token not in names:
        raise ValueError(f"unknown log level {level!r}; expected one of: {', '.join(names)}")
    return names[token]


def _installed(logger: logging.Logger) -> logging.Handler | None:
    return next((h for h in logger.handlers if h.get_name() == _HANDLER_NAME), None)


def configure_logging(level: int | str | None = None, *, stream: IO[str] | None = None) -> None:
    """Send package logs at ``level`` and above to ``stream`` (default stderr).

    Idempotent: once the package handler is installed, later calls do
    nothing. ``stream`` is looked up at call time so test runners that swap
    ``sys.stderr`` are honored.
    """

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _installed(logger) is not None:
        return

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))

    logger.handlers = [handler]
    logger.setLevel(resolved)
    logger.propagate = False


def reset_logging() -> None:
    """Undo :func:`configure_logging` so a later call installs a fresh handler."""

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    logger.handlers = [logging.NullHandler()]
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not pkg_logger.handlers:
        # Silent until an application configures output.
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LOG_LEVEL_ENV", "configure_logging", "get_logger", "reset_logging", "resolve_level"]
