"""CSV input adapter.

Expected header (any order, case and surrounding whitespace ignored)::

    type, client, tx, amount

Rows are yielded as plain ``dict`` objects keyed by the lower-cased header
names, in file order, without being buffered. Interpretation of the cell
values is left to :func:`payments_ledger.records.decode_record`.

A row the ``csv`` module cannot parse (for example a cell over
``csv.field_size_limit()``) is logged and skipped; the rows after it are still
read. Files are decoded as UTF-8 with invalid bytes replaced, so a row carrying
them fails record validation instead of ending the run.
"""

from __future__ import annotations

import contextlib
import csv
from collections.abc import Iterator
from os import PathLike
from typing import IO, TypeAlias

from .logging_setup import get_logger

RawRow: TypeAlias = dict[str, str | None]

EXTRA_KEY = "extra"

_logger = get_logger("payments_ledger.ingest")


def _is_blank(cells: list[str]) -> bool:
    return not any(c.strip() for c in cells)


def iter_csv_rows(stream: IO[str]) -> Iterator[RawRow]:
    """Read the header from ``stream`` and return an iterator over data rows.

    The header is consumed eagerly so a file without one fails here with
    ``csv.Error`` rather than on first iteration. Short rows fill the missing
    trailing cells with ``None``. Non-empty cells beyond the header are joined
    under the ``"extra"`` key so the decoder can reject the row.
    """

    reader = csv.reader(stream, skipinitialspace=True)
    header: list[str] | None = None
    for cells in reader:
        if not _is_blank(cells):
            header = cells
            break
    if header is None:
        raise csv.Error("CSV appears to have no header row")

    names = [h.strip().lower() for h in header]

    def _rows() -> Iterator[RawRow]:
        while True:
            consumed = reader.line_num
            try:
                cells = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                if reader.line_num == consumed:
                    raise
                _logger.warning("ingest:row_unreadable line=%d error=%s", reader.line_num, e)
                continue
            if _is_blank(cells):
                continue
            row: RawRow = {
                name: (cells[i].strip() if i < len(cells) else None)
                for i, name in enumerate(names)
            }
            overflow = [c.strip() for c in cells[len(names) :] if c.strip()]
            if overflow:
                row[EXTRA_KEY] = ",".join(overflow)
            yield row

    return _rows()


@contextlib.contextmanager
def read_transactions_csv(path: str | PathLike[str]) -> Iterator[Iterator[RawRow]]:
    """Open ``path`` and yield a streaming row iterator; closes on exit.

    Raises ``FileNotFoundError``/``PermissionError`` from ``open`` and
    ``csv.Error`` when the header is missing.
    """

    with open(path, encoding="utf-8-sig", errors="replace", newline="") as f:
        yield iter_csv_rows(f)


__all__ = ["EXTRA_KEY", "RawRow", "iter_csv_rows", "read_transactions_csv"]
