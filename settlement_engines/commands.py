"""
Draft mutation commands accepted by the Reconciliation Session reducer.

Each command is a frozen value object. Amount fields accept Decimal, int or
string input and are normalized with ``parse_amount``: anything blank or
unparseable becomes None, the blank-field state. Range validation (no
negative amounts) belongs to the form layer in front of the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Union

from settlement_kernel.domain.amounts import parse_amount
from settlement_kernel.domain.documents import Invoice, PaymentType, PriorPayment


def _normalize_amount(command: Any, name: str) -> None:
    object.__setattr__(command, name, parse_amount(getattr(command, name)))


@dataclass(frozen=True)
class LoadSnapshot:
    """Replace the catalog and history snapshots the session reads from."""

    catalog: tuple[Invoice, ...] = field(default_factory=tuple)
    history: tuple[PriorPayment, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "catalog", tuple(self.catalog))
        object.__setattr__(self, "history", tuple(self.history))


@dataclass(frozen=True)
class SetDimensions:
    """Choose the seller, buyer and payment type of the draft."""

    seller: str
    buyer: str
    payment_type: PaymentType = PaymentType.PAYMENT

    def __post_init__(self) -> None:
        object.__setattr__(self, "seller", (self.seller or "").strip())
        object.__setattr__(self, "buyer", (self.buyer or "").strip())
        object.__setattr__(self, "payment_type", PaymentType.parse(self.payment_type))


@dataclass(frozen=True)
class SelectPaymentNumber:
    """Pick the prior payment whose lines drive a history lookup; None clears it."""

    payment_number: str | None

    def __post_init__(self) -> None:
        number = (self.payment_number or "").strip()
        object.__setattr__(self, "payment_number", number or None)


@dataclass(frozen=True)
class SelectInvoice:
    """Add an invoice to the draft; ``invoice_number`` is the fallback link."""

    invoice_id: str
    invoice_number: str | None = None


@dataclass(frozen=True)
class DeselectInvoice:
    invoice_id: str


@dataclass(frozen=True)
class ToggleInvoice:
    """Select the invoice if absent, deselect it if present."""

    invoice_id: str
    invoice_number: str | None = None


@dataclass(frozen=True)
class SetReceivedAmount:
    invoice_id: str
    value: Decimal | None

    def __post_init__(self) -> None:
        _normalize_amount(self, "value")


@dataclass(frozen=True)
class SetAdjustedAmount:
    invoice_id: str
    value: Decimal | None

    def __post_init__(self) -> None:
        _normalize_amount(self, "value")


@dataclass(frozen=True)
class SetIncomeTaxAmount:
    value: Decimal | None

    def __post_init__(self) -> None:
        _normalize_amount(self, "value")


@dataclass(frozen=True)
class SetIncomeTaxRate:
    value: Decimal | None

    def __post_init__(self) -> None:
        _normalize_amount(self, "value")


@dataclass(frozen=True)
class Finalize:
    """Submit the draft; the session accepts no further commands."""


Command = Union[
    LoadSnapshot,
    SetDimensions,
    SelectPaymentNumber,
    SelectInvoice,
    DeselectInvoice,
    ToggleInvoice,
    SetReceivedAmount,
    SetAdjustedAmount,
    SetIncomeTaxAmount,
    SetIncomeTaxRate,
    Finalize,
]
