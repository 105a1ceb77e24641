"""Route raw input rows to the ledger, one at a time, in arrival order.

A row that fails structural decoding is logged and skipped. A row the ledger
rejects is logged by the ledger and counted here. Neither stops the run.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .config import LedgerConfig
from .ledger import Ledger
from .logging_setup import get_logger
from .models import Outcome, Rejection
from .records import (
    ChargebackRecord,
    DepositRecord,
    DisputeRecord,
    RecordError,
    ResolveRecord,
    TransactionRecord,
    WithdrawalRecord,
    decode_record,
)

_logger = get_logger("payments_ledger.dispatcher")


@dataclass(slots=True)
class RunSummary:
    seen: int = 0
    applied: int = 0
    skipped: int = 0
    rejected: Counter[Rejection] = field(default_factory=Counter)

    @property
    def rejected_total(self) -> int:
        return sum(self.rejected.values())


@dataclass(slots=True)
class RunResult:
    ledger: Ledger
    summary: RunSummary


def apply_record(ledger: Ledger, record: TransactionRecord) -> Outcome:
    """Apply a decoded record to ``ledger`` via the matching operation."""

    match record:
        case DepositRecord():
            return ledger.deposit(record.client, record.tx, record.amount)
        case WithdrawalRecord():
            return ledger.withdrawal(record.client, record.tx, record.amount)
        case DisputeRecord():
            return ledger.dispute(record.client, record.tx)
        case ResolveRecord():
            return ledger.resolve(record.client, record.tx)
        case ChargebackRecord():
            return ledger.chargeback(record.client, record.tx)
    raise TypeError(f"unsupported record type: {type(record).__name__}")


def process_records(
    rows: Iterable[Mapping[Any, Any]],
    ledger: Ledger | None = None,
    *,
    config: LedgerConfig | None = None,
) -> RunResult:
    """Decode and apply every row of ``rows`` in order.

    Parameters
    ----------
    rows:
        Raw mappings with ``type``, ``client``, ``tx`` and optional ``amount``
        keys (e.g. from :func:`payments_ledger.ingest.iter_csv_rows`). Consumed
        lazily, one row at a time.
    ledger:
        Existing ledger to apply into. A new one is created from ``config``
        when omitted.
    config:
        Used only when ``ledger`` is ``None``.
    """

    if ledger is None:
        ledger = Ledger(config)
    summary = RunSummary()

    # Row numbers are 1-based data lines (the header is not counted).
    for line, raw in enumerate(rows, start=1):
        summary.seen += 1
        try:
            record = decode_record(raw)
        except RecordError as e:
            summary.skipped += 1
            _logger.warning("dispatcher:record_skipped line=%d error=%s", line, e)
            continue

        outcome = apply_record(ledger, record)
        if outcome.applied:
            summary.applied += 1
        else:
            summary.rejected[outcome.reason] += 1

    _logger.info(
        "dispatcher:run_done seen=%d applied=%d rejected=%d skipped=%d accounts=%d",
        summary.seen,
        summary.applied,
        summary.rejected_total,
        summary.skipped,
        len(ledger),
    )
    return RunResult(ledger=ledger, summary=summary)


__all__ = ["RunResult", "RunSummary", "apply_record", "process_records"]
