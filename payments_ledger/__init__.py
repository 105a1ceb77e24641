"""Public interface for the ``payments_ledger`` package.

Exposes the ledger, the dispatcher entry points, configuration and the public
models/types as the stable import surface. There is no runtime logic here,
only symbol re-exports.
"""

from .config import DisputePolicy, LedgerConfig
from .dispatcher import RunResult, RunSummary, apply_record, process_records
from .ingest import iter_csv_rows, read_transactions_csv
from .ledger import Ledger
from .models import (
    Account,
    AccountSnapshot,
    DisputableTransaction,
    DisputeState,
    Outcome,
    Rejection,
    TxKind,
)
from .output import format_amount, write_accounts_csv
from .records import RecordError, TransactionRecord, decode_record

__all__ = [
    # Core
    "Ledger",
    "apply_record",
    "process_records",
    "RunResult",
    "RunSummary",
    # Config
    "DisputePolicy",
    "LedgerConfig",
    # Records
    "RecordError",
    "TransactionRecord",
    "decode_record",
    # I/O collaborators
    "iter_csv_rows",
    "read_transactions_csv",
    "format_amount",
    "write_accounts_csv",
    # Models / types
    "Account",
    "AccountSnapshot",
    "DisputableTransaction",
    "DisputeState",
    "Outcome",
    "Rejection",
    "TxKind",
]
