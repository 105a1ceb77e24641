import logging
from decimal import Decimal

import pytest

from payments_ledger import (
    DisputePolicy,
    Ledger,
    LedgerConfig,
    Rejection,
    apply_record,
    decode_record,
    process_records,
)


def _row(kind: str, client: int, tx: int, amount: str | None = None) -> dict[str, str | None]:
    return {"type": kind, "client": str(client), "tx": str(tx), "amount": amount}


def test_apply_record_routes_by_kind(ledger):
    assert apply_record(ledger, decode_record(_row("deposit", 1, 1, "4"))).applied
    assert apply_record(ledger, decode_record(_row("withdrawal", 1, 2, "1"))).applied
    assert apply_record(ledger, decode_record(_row("dispute", 1, 1))).applied
    assert apply_record(ledger, decode_record(_row("resolve", 1, 1))).applied
    assert apply_record(ledger, decode_record(_row("dispute", 1, 1))).applied
    assert apply_record(ledger, decode_record(_row("chargeback", 1, 1))).applied

    snap = ledger.account(1)
    assert (snap.available, snap.held, snap.total, snap.locked) == (
        Decimal("-1"),
        Decimal("0"),
        Decimal("-1"),
        True,
    )


def test_apply_record_rejects_unknown_objects(ledger):
    with pytest.raises(TypeError):
        apply_record(ledger, object())  # type: ignore[arg-type]


def test_process_records_worked_example():
    rows = [
        _row("deposit", 1, 1, "5.0"),
        _row("deposit", 1, 2, "3.0"),
        _row("dispute", 1, 1, ""),
        _row("withdrawal", 1, 3, "1.0"),
        _row("chargeback", 1, 1, ""),
    ]

    result = process_records(rows)

    snap = result.ledger.snapshot()[1]
    assert (snap.available, snap.held, snap.total, snap.locked) == (
        Decimal("2"),
        Decimal("0"),
        Decimal("2"),
        True,
    )
    assert result.summary.seen == 5
    assert result.summary.applied == 5
    assert result.summary.skipped == 0
    assert result.summary.rejected_total == 0


def test_bad_rows_are_skipped_and_processing_continues(caplog):
    rows = [
        _row("deposit", 1, 1, "10"),
        _row("teleport", 1, 2, "5"),
        _row("deposit", 1, 3, "oops"),
        {"type": "withdrawal", "client": "1"},
        _row("withdrawal", 1, 4, "2.5"),
    ]

    with caplog.at_level(logging.WARNING, logger="payments_ledger"):
        result = process_records(rows)

    assert result.ledger.account(1).available == Decimal("7.5")
    assert result.summary.skipped == 3
    assert result.summary.applied == 2

    skipped = [r for r in caplog.records if "dispatcher:record_skipped" in r.getMessage()]
    assert [r.getMessage().split()[1] for r in skipped] == ["line=2", "line=3", "line=4"]


def test_semantic_rejections_are_counted_by_reason():
    rows = [
        _row("deposit", 1, 1, "1"),
        _row("deposit", 1, 1, "1"),
        _row("withdrawal", 1, 2, "5"),
        _row("deposit", 1, 3, "0"),
        _row("dispute", 1, 42),
        _row("dispute", 2, 1),
        _row("resolve", 1, 1),
    ]

    summary = process_records(rows).summary

    assert summary.applied == 1
    assert summary.rejected == {
        Rejection.DUPLICATE_TX: 1,
        Rejection.INSUFFICIENT_FUNDS: 1,
        Rejection.NON_POSITIVE_AMOUNT: 1,
        Rejection.UNKNOWN_TX: 1,
        Rejection.CLIENT_MISMATCH: 1,
        Rejection.INVALID_STATE: 1,
    }
    assert summary.rejected_total == 6


def test_rejections_are_logged_at_info(caplog):
    with caplog.at_level(logging.INFO, logger="payments_ledger"):
        process_records([_row("withdrawal", 1, 1, "5")])

    messages = [r.getMessage() for r in caplog.records]
    assert "ledger:withdrawal_rejected client=1 tx=1 reason=insufficient_funds" in messages
    assert any(m.startswith("dispatcher:run_done seen=1 applied=0 rejected=1") for m in messages)


def test_interleaved_clients_are_independent():
    rows = [
        _row("deposit", 1, 1, "1"),
        _row("deposit", 2, 2, "2"),
        _row("withdrawal", 1, 3, "0.5"),
        _row("dispute", 2, 2),
        _row("deposit", 1, 4, "1"),
    ]

    snap = process_records(rows).ledger.snapshot()

    assert list(snap) == [1, 2]
    assert (snap[1].available, snap[1].held) == (Decimal("1.5"), Decimal("0"))
    assert (snap[2].available, snap[2].held) == (Decimal("0"), Decimal("2"))


def test_process_records_applies_into_an_existing_ledger():
    ledger = Ledger()
    ledger.deposit(9, 1, Decimal("1"))

    result = process_records([_row("deposit", 9, 2, "1")], ledger)

    assert result.ledger is ledger
    assert ledger.account(9).total == Decimal("2")


def test_process_records_uses_given_config():
    rows = [
        _row("deposit", 1, 1, "10"),
        _row("withdrawal", 1, 2, "4"),
        _row("dispute", 1, 2),
    ]

    default = process_records(rows).ledger.account(1)
    permissive = process_records(
        rows, config=LedgerConfig(dispute_policy=DisputePolicy.ALL)
    ).ledger.account(1)

    assert (default.available, default.held) == (Decimal("6"), Decimal("0"))
    assert (permissive.available, permissive.held) == (Decimal("2"), Decimal("4"))


def test_rows_are_consumed_lazily():
    seen: list[int] = []

    def gen():
        for i in range(1, 4):
            seen.append(i)
            yield _row("deposit", 1, i, "1")

    result = process_records(gen())
    assert seen == [1, 2, 3]
    assert result.ledger.account(1).total == Decimal("3")


def test_oversized_amount_is_skipped_and_the_next_row_applies():
    rows = [
        _row("deposit", 1, 1, "9e999999"),
        _row("deposit", 1, 2, "999999999999999"),
        _row("deposit", 1, 3, "0.5"),
    ]

    result = process_records(rows)

    assert result.summary.skipped == 1
    assert result.summary.applied == 2
    assert result.ledger.account(1).available == Decimal("999999999999999.5")
