"""In-memory account ledger and the dispute lifecycle.

Public API:
    - :class:`Ledger`

Each mutating method applies one transaction kind and returns an
:class:`~payments_ledger.models.Outcome`. Illegal calls never raise and never
change state; they come back as ``Outcome(applied=False, reason=...)``.

Policy
------
- A locked account refuses new deposits and withdrawals. Disputes, resolves
  and chargebacks on its existing transactions are still honored.
- Which stored transactions can be disputed is set by
  :class:`~payments_ledger.config.DisputePolicy`. Disputing a withdrawal (when
  allowed) uses the same arithmetic as a deposit: the amount moves from
  ``available`` to ``held``.
- Accounts are created by deposit and withdrawal attempts only, so a rejected
  dispute/resolve/chargeback leaves the snapshot untouched.
- Balance arithmetic is exact to 34 significant digits. An operation whose
  result would need rounding is refused with ``out_of_range``.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow

from .config import LedgerConfig
from .logging_setup import get_logger
from .models import (
    ZERO,
    Account,
    AccountSnapshot,
    DisputableTransaction,
    DisputeState,
    Outcome,
    Rejection,
    TxKind,
)

_logger = get_logger("payments_ledger.ledger")

_CONTEXT = Context(prec=34, traps=[InvalidOperation, DivisionByZero, Overflow, Inexact])


class Ledger:
    """Owns every account and every disputable transaction for one run."""

    def __init__(self, config: LedgerConfig | None = None) -> None:
        self.config = config or LedgerConfig()
        # Insertion order doubles as first-seen client order for snapshots.
        self._accounts: dict[int, Account] = {}
        self._transactions: dict[int, DisputableTransaction] = {}

    # ---- Queries ---------------------------------------------------------

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[AccountSnapshot]:
        return (acct.snapshot() for acct in self._accounts.values())

    def snapshot(self) -> dict[int, AccountSnapshot]:
        """Return ``client -> AccountSnapshot`` ordered by first-seen client."""

        return {cid: acct.snapshot() for cid, acct in self._accounts.items()}

    def account(self, client: int) -> AccountSnapshot | None:
        acct = self._accounts.get(client)
        return acct.snapshot() if acct is not None else None

    def transaction(self, tx: int) -> DisputableTransaction | None:
        """Return a copy of the stored deposit/withdrawal ``tx``, if any."""

        stored = self._transactions.get(tx)
        return replace(stored) if stored is not None else None

    # ---- Deposits and withdrawals ----------------------------------------

    def deposit(self, client: int, tx: int, amount: Decimal) -> Outcome:
        acct = self._account_for(client)
        reason = self._check_new_transaction(acct, tx, amount)
        if reason is not None:
            return self._reject(TxKind.DEPOSIT, client, tx, reason)
        if not self._move(acct, amount, ZERO):
            return self._reject(TxKind.DEPOSIT, client, tx, Rejection.OUT_OF_RANGE)

        self._record(tx, client, amount, TxKind.DEPOSIT)
        return self._applied(TxKind.DEPOSIT, client, tx)

    def withdrawal(self, client: int, tx: int, amount: Decimal) -> Outcome:
        acct = self._account_for(client)
        reason = self._check_new_transaction(acct, tx, amount)
        if reason is None and acct.available < amount:
            reason = Rejection.INSUFFICIENT_FUNDS
        if reason is not None:
            return self._reject(TxKind.WITHDRAWAL, client, tx, reason)
        if not self._move(acct, amount.copy_negate(), ZERO):
            return self._reject(TxKind.WITHDRAWAL, client, tx, Rejection.OUT_OF_RANGE)

        self._record(tx, client, amount, TxKind.WITHDRAWAL)
        return self._applied(TxKind.WITHDRAWAL, client, tx)

    # ---- Dispute lifecycle -----------------------------------------------

    def dispute(self, client: int, tx: int) -> Outcome:
        stored = self._lookup(client, tx, DisputeState.NORMAL)
        if isinstance(stored, Rejection):
            return self._reject(TxKind.DISPUTE, client, tx, stored)
        if not self.config.dispute_policy.allows(stored.kind):
            return self._reject(TxKind.DISPUTE, client, tx, Rejection.NOT_DISPUTABLE)

        acct = self._accounts[stored.client]
        if not self._move(acct, stored.amount.copy_negate(), stored.amount):
            return self._reject(TxKind.DISPUTE, client, tx, Rejection.OUT_OF_RANGE)
        stored.state = DisputeState.DISPUTED
        return self._applied(TxKind.DISPUTE, client, tx)

    def resolve(self, client: int, tx: int) -> Outcome:
        stored = self._lookup(client, tx, DisputeState.DISPUTED)
        if isinstance(stored, Rejection):
            return self._reject(TxKind.RESOLVE, client, tx, stored)

        acct = self._accounts[stored.client]
        if not self._move(acct, stored.amount, stored.amount.copy_negate()):
            return self._reject(TxKind.RESOLVE, client, tx, Rejection.OUT_OF_RANGE)
        stored.state = DisputeState.NORMAL
        return self._applied(TxKind.RESOLVE, client, tx)

    def chargeback(self, client: int, tx: int) -> Outcome:
        stored = self._lookup(client, tx, DisputeState.DISPUTED)
        if isinstance(stored, Rejection):
            return self._reject(TxKind.CHARGEBACK, client, tx, stored)

        acct = self._accounts[stored.client]
        if not self._move(acct, ZERO, stored.amount.copy_negate()):
            return self._reject(TxKind.CHARGEBACK, client, tx, Rejection.OUT_OF_RANGE)
        acct.locked = True
        stored.state = DisputeState.CHARGED_BACK
        return self._applied(TxKind.CHARGEBACK, client, tx)

    # ---- Internal helpers ------------------------------------------------

    def _account_for(self, client: int) -> Account:
        acct = self._accounts.get(client)
        if acct is None:
            acct = self._accounts[client] = Account(client=client)
        return acct

    def _check_new_transaction(self, acct: Account, tx: int, amount: Decimal) -> Rejection | None:
        if amount <= 0:
            return Rejection.NON_POSITIVE_AMOUNT
        if tx in self._transactions:
            return Rejection.DUPLICATE_TX
        if self._blocked_by_lock(acct):
            return Rejection.ACCOUNT_LOCKED
        return None

    def _blocked_by_lock(self, acct: Account) -> bool:
        # Only consulted for deposits and withdrawals.
        return acct.locked

    def _move(self, acct: Account, to_available: Decimal, to_held: Decimal) -> bool:
        """Apply both balance deltas, or neither if any result would be inexact."""

        try:
            available = _CONTEXT.add(acct.available, to_available)
            held = _CONTEXT.add(acct.held, to_held)
            _CONTEXT.add(available, held)
        except ArithmeticError:
            return False
        acct.available = available
        acct.held = held
        return True

    def _lookup(
        self, client: int, tx: int, required: DisputeState
    ) -> DisputableTransaction | Rejection:
        """Find the stored transaction a dispute-lifecycle record refers to."""

        stored = self._transactions.get(tx)
        if stored is None:
            return Rejection.UNKNOWN_TX
        if stored.client != client:
            return Rejection.CLIENT_MISMATCH
        if stored.state is not required:
            return Rejection.INVALID_STATE
        return stored

    def _record(self, tx: int, client: int, amount: Decimal, kind: TxKind) -> None:
        self._transactions[tx] = DisputableTransaction(
            tx=tx, client=client, amount=amount, kind=kind
        )

    def _applied(self, kind: TxKind, client: int, tx: int) -> Outcome:
        _logger.debug("ledger:%s_applied client=%d tx=%d", kind, client, tx)
        return Outcome.ok()

    def _reject(self, kind: TxKind, client: int, tx: int, reason: Rejection) -> Outcome:
        _logger.info(
            "ledger:%s_rejected client=%d tx=%d reason=%s", kind, client, tx, reason
        )
        return Outcome.rejected(reason)


__all__ = ["Ledger"]
