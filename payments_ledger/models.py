"""Domain types for ``payments_ledger``.

Amounts are ``decimal.Decimal`` throughout; binary floats never touch a
balance. Input amounts are bounded (below ``MAX_AMOUNT``, at most
``AMOUNT_PLACES`` decimals) and the ledger applies them with checked
arithmetic, so balances are exact or the transaction is refused.

Identifier domains follow the input format: client ids fit in an unsigned
16-bit integer and transaction ids in an unsigned 32-bit integer.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal
from enum import StrEnum
from typing import NamedTuple

MAX_CLIENT_ID: int = 2**16 - 1
MAX_TX_ID: int = 2**32 - 1

MAX_AMOUNT = Decimal("1e15")
AMOUNT_PLACES: int = 8

ZERO = Decimal("0")

# The ledger keeps available + held exact at 34 digits; this never rounds.
_TOTAL_CONTEXT = Context(prec=80)


class TxKind(StrEnum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeState(StrEnum):
    """Lifecycle of a stored deposit/withdrawal.

    ``normal -> disputed`` on dispute, ``disputed -> normal`` on resolve and
    ``disputed -> charged_back`` on chargeback. ``charged_back`` is terminal.
    """

    NORMAL = "normal"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


class Rejection(StrEnum):
    """Why the ledger refused to apply a transaction."""

    NON_POSITIVE_AMOUNT = "non_positive_amount"
    DUPLICATE_TX = "duplicate_tx"
    ACCOUNT_LOCKED = "account_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TX = "unknown_tx"
    CLIENT_MISMATCH = "client_mismatch"
    NOT_DISPUTABLE = "not_disputable"
    INVALID_STATE = "invalid_state"
    OUT_OF_RANGE = "out_of_range"


class Outcome(NamedTuple):
    """Result of a single ledger operation."""

    applied: bool
    reason: Rejection | None = None

    @classmethod
    def ok(cls) -> Outcome:
        return cls(True, None)

    @classmethod
    def rejected(cls, reason: Rejection) -> Outcome:
        return cls(False, reason)


@dataclass(slots=True)
class Account:
    """Mutable balance state for one client.

    ``total`` is derived so ``total == available + held`` cannot drift.
    """

    client: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return _TOTAL_CONTEXT.add(self.available, self.held)

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client=self.client,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    client: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass(slots=True)
class DisputableTransaction:
    """A stored deposit or withdrawal that later records may reference.

    ``amount`` is the magnitude only; the direction is implied by ``kind``.
    """

    tx: int
    client: int
    amount: Decimal
    kind: TxKind
    state: DisputeState = DisputeState.NORMAL


__all__ = [
    "AMOUNT_PLACES",
    "MAX_AMOUNT",
    "MAX_CLIENT_ID",
    "MAX_TX_ID",
    "Account",
    "AccountSnapshot",
    "DisputableTransaction",
    "DisputeState",
    "Outcome",
    "Rejection",
    "TxKind",
    "ZERO",
]
