import io
import logging

import pytest

from payments_ledger.logging_setup import configure_logging, get_logger, resolve_level


def test_configure_logging_uses_env_level_and_stream(monkeypatch):
    monkeypatch.setenv("PAYMENTS_LEDGER_LOG_LEVEL", "warning")
    stream = io.StringIO()

    configure_logging(stream=stream)
    log = get_logger("payments_ledger.test")
    log.info("test:hidden")
    log.warning("test:shown key=1")

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert lines[0].endswith(" WARNING test:shown key=1")


def test_configure_logging_runs_once():
    first, second = io.StringIO(), io.StringIO()

    configure_logging("DEBUG", stream=first)
    configure_logging("DEBUG", stream=second)
    get_logger("payments_ledger.test").debug("test:once")

    assert first.getvalue().endswith("DEBUG test:once\n")
    assert second.getvalue() == ""
    assert len(logging.getLogger("payments_ledger").handlers) == 1


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        ("debug", logging.DEBUG),
        (" Error ", logging.ERROR),
        ("15", 15),
        (logging.WARNING, logging.WARNING),
    ],
)
def test_resolve_level(level, expected):
    assert resolve_level(level) == expected


def test_resolve_level_defaults_to_info_and_reads_env(monkeypatch):
    assert resolve_level() == logging.INFO
    monkeypatch.setenv("PAYMENTS_LEDGER_LOG_LEVEL", "  ")
    assert resolve_level() == logging.INFO
    monkeypatch.setenv("PAYMENTS_LEDGER_LOG_LEVEL", "critical")
    assert resolve_level() == logging.CRITICAL


def test_unknown_level_is_an_error_and_installs_nothing():
    with pytest.raises(ValueError, match="unknown log level 'loud'"):
        configure_logging("loud", stream=io.StringIO())

    assert not any(
        not isinstance(h, logging.NullHandler)
        for h in logging.getLogger("payments_ledger").handlers
    )


def test_unconfigured_library_logging_is_silent(capsys):
    get_logger("payments_ledger.test").warning("nobody listening")
    captured = capsys.readouterr()
    assert "nobody listening" not in captured.err
