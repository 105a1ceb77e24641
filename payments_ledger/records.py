"""Structural decoding of raw input rows into typed transaction records.

Each transaction kind has its own model; the ``type`` column selects which
one validates the row. Deposits and withdrawals require an ``amount``;
disputes, resolves and chargebacks carry only ``client`` and ``tx`` and
tolerate (then ignore) an ``amount`` cell.

Semantic rules (positive amounts, duplicate ids, funds, dispute state) are
not checked here. They belong to :class:`payments_ledger.ledger.Ledger`.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from .models import AMOUNT_PLACES, MAX_AMOUNT, MAX_CLIENT_ID, MAX_TX_ID, TxKind

ClientId = Annotated[int, Field(ge=0, le=MAX_CLIENT_ID)]
TxId = Annotated[int, Field(ge=0, le=MAX_TX_ID)]

_PLACES = Decimal(1).scaleb(-AMOUNT_PLACES)


class RecordError(ValueError):
    """A raw row is not a well-formed transaction record."""


class _RecordBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    client: ClientId
    tx: TxId

    @property
    def kind(self) -> TxKind:
        return TxKind(self.type)  # type: ignore[attr-defined]


class _AmountRecord(_RecordBase):
    amount: Decimal

    @field_validator("amount")
    @classmethod
    def _bounded(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("amount must be a finite number")
        if v < 0:
            raise ValueError("amount must be non-negative")
        if v >= MAX_AMOUNT:
            raise ValueError(f"amount must be below {MAX_AMOUNT:f}")
        if v != v.quantize(_PLACES):
            raise ValueError(f"amount must have at most {AMOUNT_PLACES} decimal places")
        return v


class _ReferenceRecord(_RecordBase):
    # Tolerated and ignored; these kinds take their amount from the referenced tx.
    amount: Any = None


class DepositRecord(_AmountRecord):
    type: Literal["deposit"]


class WithdrawalRecord(_AmountRecord):
    type: Literal["withdrawal"]


class DisputeRecord(_ReferenceRecord):
    type: Literal["dispute"]


class ResolveRecord(_ReferenceRecord):
    type: Literal["resolve"]


class ChargebackRecord(_ReferenceRecord):
    type: Literal["chargeback"]


TransactionRecord = Annotated[
    DepositRecord | WithdrawalRecord | DisputeRecord | ResolveRecord | ChargebackRecord,
    Field(discriminator="type"),
]

_ADAPTER: TypeAdapter[Any] = TypeAdapter(TransactionRecord)


def _normalize(raw: Mapping[Any, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in raw.items():
        if key is None:
            continue
        name = str(key).strip().lower()
        if isinstance(value, str):
            value = value.strip()
            if value == "":
                continue
        elif value is None:
            continue
        out[name] = value
    kind = out.get("type")
    if isinstance(kind, str):
        out["type"] = kind.lower()
    return out


def _describe(err: ValidationError) -> str:
    parts = []
    for e in err.errors(include_url=False):
        loc = ".".join(str(p) for p in e.get("loc", ())) or "record"
        parts.append(f"{loc}: {e.get('msg', 'invalid')}")
    return "; ".join(parts)


def decode_record(raw: Mapping[Any, Any]) -> TransactionRecord:
    """Validate a raw row and return the typed record for its ``type``.

    Whitespace around cells is ignored, the ``type`` token is matched
    case-insensitively and empty cells count as absent. Raises
    :class:`RecordError` for unknown types, missing or unparseable fields and
    unexpected extra columns.
    """

    try:
        return _ADAPTER.validate_python(_normalize(raw))
    except ValidationError as e:
        raise RecordError(_describe(e)) from e


__all__ = [
    "ChargebackRecord",
    "DepositRecord",
    "DisputeRecord",
    "RecordError",
    "ResolveRecord",
    "TransactionRecord",
    "WithdrawalRecord",
    "decode_record",
]
