"""Pytest configuration for test isolation.

The CLI loads ``.env`` into the process environment and configures the
package logger once per process. Either would leak between tests (a policy
set by one test would silently apply to the next, and a configured logger
stops propagating to ``caplog``), so an autouse fixture clears the package's
environment variables and resets logging around every test.
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from payments_ledger import Ledger
from payments_ledger.logging_setup import reset_logging

_ENV_VARS = ("PAYMENTS_LEDGER_DISPUTE_POLICY", "PAYMENTS_LEDGER_LOG_LEVEL")


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_logging()
    yield
    # load_dotenv writes os.environ directly, bypassing monkeypatch.
    for name in _ENV_VARS:
        os.environ.pop(name, None)
    reset_logging()


@pytest.fixture
def ledger() -> Ledger:
    return Ledger()
