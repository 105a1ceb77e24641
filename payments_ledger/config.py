"""Runtime configuration for the ledger.

Settings are resolved from explicit arguments first, then from environment
variables (the CLI loads a local ``.env`` before reading them).

Environment
-----------
``PAYMENTS_LEDGER_DISPUTE_POLICY``
    ``deposits_only`` (default) or ``all``.
``PAYMENTS_LEDGER_LOG_LEVEL``
    Read by :mod:`payments_ledger.logging_setup`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum

from .models import TxKind

_DISPUTE_POLICY_ENV = "PAYMENTS_LEDGER_DISPUTE_POLICY"


class DisputePolicy(StrEnum):
    """Which stored transactions may be disputed."""

    DEPOSITS_ONLY = "deposits_only"
    ALL = "all"

    @classmethod
    def parse(cls, value: str) -> DisputePolicy:
        v = value.strip().lower().replace("-", "_")
        try:
            return cls(v)
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ValueError(
                f"invalid dispute policy {value!r}; expected one of: {choices}"
            ) from None

    def allows(self, kind: TxKind) -> bool:
        if self is DisputePolicy.ALL:
            return kind in (TxKind.DEPOSIT, TxKind.WITHDRAWAL)
        return kind is TxKind.DEPOSIT


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    dispute_policy: DisputePolicy = DisputePolicy.DEPOSITS_ONLY

    @classmethod
    def from_env(cls, *, dispute_policy: str | DisputePolicy | None = None) -> LedgerConfig:
        """Build a config, preferring explicit values over the environment.

        Raises ``ValueError`` when a provided or environment value is not a
        known policy.
        """

        if isinstance(dispute_policy, DisputePolicy):
            return cls(dispute_policy=dispute_policy)
        raw = dispute_policy if dispute_policy is not None else os.getenv(_DISPUTE_POLICY_ENV)
        if raw is None or not raw.strip():
            return cls()
        return cls(dispute_policy=DisputePolicy.parse(raw))


__all__ = ["DisputePolicy", "LedgerConfig"]
