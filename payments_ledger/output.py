"""Render ledger snapshots as CSV.

Output columns (exact order)::

    client, available, held, total, locked

Amounts are fixed-point with four decimal places (ASCII dot, leading minus
for negatives); ``locked`` is ``true`` or ``false``.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import IO

from .models import AccountSnapshot

HEADER: tuple[str, ...] = ("client", "available", "held", "total", "locked")

_QUANTUM = Decimal("0.0001")


def format_amount(d: Decimal) -> str:
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus four decimals.
        ctx.prec = max(ctx.prec, d.adjusted() + 6)
        q = d.quantize(_QUANTUM, rounding=ROUND_HALF_UP)
    # Fixed-point formatting avoids scientific notation.
    return f"{q:.4f}"


def account_row(snap: AccountSnapshot) -> list[str]:
    return [
        str(snap.client),
        format_amount(snap.available),
        format_amount(snap.held),
        format_amount(snap.total),
        "true" if snap.locked else "false",
    ]


def write_accounts_csv(
    snapshot: Mapping[int, AccountSnapshot] | Iterable[AccountSnapshot],
    stream: IO[str],
) -> int:
    """Write a header plus one row per account; return the number of rows.

    ``snapshot`` may be the mapping from :meth:`Ledger.snapshot` or any
    iterable of :class:`AccountSnapshot`; iteration order is preserved.
    """

    accounts = snapshot.values() if isinstance(snapshot, Mapping) else snapshot
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(HEADER)
    count = 0
    for snap in accounts:
        writer.writerow(account_row(snap))
        count += 1
    return count


__all__ = ["HEADER", "account_row", "format_amount", "write_accounts_csv"]
