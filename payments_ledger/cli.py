"""CLI for the ``payments_ledger`` package.

Exposes a callable command handler (:func:`cmd_process`) and a Typer-based
console interface. Environment variables are loaded from a local ``.env``
using ``python-dotenv`` before delegating to command logic. The ledger itself
lives in :mod:`payments_ledger.ledger` and :mod:`payments_ledger.dispatcher`.

Usage::

    payments-ledger process transactions.csv > accounts.csv
"""

from __future__ import annotations

import csv
import sys
from pathlib import Path
from typing import IO, Annotated

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo

from .config import LedgerConfig
from .dispatcher import process_records
from .ingest import read_transactions_csv
from .logging_setup import configure_logging, get_logger
from .output import write_accounts_csv

_logger = get_logger("payments_ledger.cli")


def cmd_process(
    csv_path: str | Path,
    *,
    dispute_policy: str | None = None,
    stdout: IO[str] | None = None,
) -> int:
    """Apply every transaction in ``csv_path`` and print the accounts CSV.

    Errors reading the file or resolving configuration are written to stderr
    and the function returns ``1``. Malformed or rejected transaction rows are
    logged and skipped; they never change the exit status. On success,
    returns ``0``.
    """

    out = stdout if stdout is not None else sys.stdout

    try:
        config = LedgerConfig.from_env(dispute_policy=dispute_policy)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        with read_transactions_csv(csv_path) as rows:
            result = process_records(rows, config=config)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
        return 1
    except IsADirectoryError:
        print(f"Error: Not a file: {csv_path}", file=sys.stderr)
        return 1
    except csv.Error as e:
        print(f"Error: Failed to parse CSV: {e}", file=sys.stderr)
        return 1

    written = write_accounts_csv(result.ledger.snapshot(), out)
    _logger.debug("cli:process_done path=%s accounts=%d", csv_path, written)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Replay deposit/withdrawal/dispute/resolve/chargeback records and print "
        "the resulting client accounts as CSV. Loads settings from a local .env."
    ),
)


# Module-level argument object to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Path to a transactions CSV (header: type, client, tx, amount).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)


@app.command("process")
def process_cmd(
    csv_path: Annotated[Path, CSV_PATH_ARGUMENT],
    *,
    dispute_policy: str | None = typer.Option(
        None,
        help=(
            "Which transactions may be disputed: deposits_only or all "
            "(falls back to PAYMENTS_LEDGER_DISPUTE_POLICY, then deposits_only)."
        ),
    ),
) -> None:
    """Process a transactions CSV and write account balances to stdout."""

    code = cmd_process(csv_path, dispute_policy=dispute_policy)
    if code != 0:
        raise typer.Exit(code)


@app.callback()
def _root(
    *,
    log_level: str | None = typer.Option(
        None,
        help="Log level for stderr output (falls back to PAYMENTS_LEDGER_LOG_LEVEL, then INFO).",
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once so child
    loggers inherit it.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


def main() -> None:
    app()


__all__ = ["app", "cmd_process", "main"]


if __name__ == "__main__":  # pragma: no cover
    main()
