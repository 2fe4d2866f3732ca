"""
Documents -- Immutable invoice and payment-history records.

Responsibility:
    Strict, typed shapes of the two read-only inputs the engine consumes:
    the Invoice Catalog (``Invoice``) and the Payment History
    (``PriorPayment`` with its ``HistoryAllocation`` lines). Loosely-shaped
    API records are mapped into these types by ``settlement_ingestion``
    before they reach an engine.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Every amount is a Decimal (or None for a blank historical value).
    - Seller and buyer are resolved display names; party matching across
      the engine is exact string equality on these names.
    - Documents are frozen; the engine never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from settlement_kernel.domain.amounts import ZERO
from settlement_kernel.exceptions import UnknownPaymentTypeError


class PaymentType(str, Enum):
    """Type of a payment draft or history record."""

    ADVANCE = "Advance"  # Funds received ahead of invoice allocation
    PAYMENT = "Payment"  # Settlement against specific invoices
    INCOME_TAX = "IncomeTax"  # Tax liability settled via adjustments

    @classmethod
    def parse(cls, value: PaymentType | str) -> PaymentType:
        """
        Resolve a payment type from its canonical or loose spelling.

        Accepts "IncomeTax", "Income Tax", "income_tax" and the like.

        Raises:
            UnknownPaymentTypeError: if the value is not a known type.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            folded = value.replace(" ", "").replace("_", "").replace("-", "").lower()
            for member in cls:
                if member.value.lower() == folded:
                    return member
        raise UnknownPaymentTypeError(value)

    @property
    def settles_invoices(self) -> bool:
        """Payment and IncomeTax records carry per-invoice balances."""
        return self in (PaymentType.PAYMENT, PaymentType.INCOME_TAX)

    @property
    def tracks_advance(self) -> bool:
        """Advance carry-forward is only meaningful for these types."""
        return self in (PaymentType.ADVANCE, PaymentType.PAYMENT)


class PaymentStatus(str, Enum):
    """Approval status of a history record."""

    PENDING = "Pending"
    APPROVED = "Approved"


@dataclass(frozen=True)
class Invoice:
    """
    An approved invoice from the catalog.

    ``total_amount`` is the gross invoice value as entered; ``gross_value``
    is the GST-inclusive figure every balance is computed against. The two
    may differ.
    """

    id: str
    invoice_number: str
    seller: str
    buyer: str
    total_amount: Decimal
    gross_value: Decimal
    invoice_date: date | None = None
    due_date: date | None = None

    def matches(self, invoice_number: str, seller: str, buyer: str) -> bool:
        """Logical identity used when no invoice id is available."""
        return (
            self.invoice_number == invoice_number
            and self.seller == seller
            and self.buyer == buyer
        )


@dataclass(frozen=True)
class HistoryAllocation:
    """
    One invoice line of a prior payment, as persisted.

    ``invoice_id`` may be None when the line only links to its invoice by
    number. ``seller`` and ``buyer`` may be blank on older records; the
    owning payment's parties apply then.
    """

    invoice_number: str
    invoice_id: str | None = None
    seller: str = ""
    buyer: str = ""
    total_amount: Decimal = ZERO
    received_amount: Decimal | None = None
    adjusted_amount: Decimal | None = None
    balance: Decimal | None = None


@dataclass(frozen=True)
class PriorPayment:
    """
    A previously recorded payment (read-only history input).

    Contract:
        ``advance_received`` is meaningful for Advance records only;
        ``allocations`` for Payment and IncomeTax records.
    """

    id: str
    payment_number: str
    payment_type: PaymentType
    status: PaymentStatus
    seller: str
    buyer: str
    advance_received: Decimal = ZERO
    income_tax_amount: Decimal | None = None
    income_tax_rate: Decimal | None = None
    allocations: tuple[HistoryAllocation, ...] = ()
    creation_date: datetime | None = None

    @property
    def is_approved(self) -> bool:
        return self.status == PaymentStatus.APPROVED

    def is_between(self, seller: str, buyer: str) -> bool:
        """Exact display-name match on both parties."""
        return self.seller == seller and self.buyer == buyer

    def allocation_for(
        self,
        invoice_number: str,
        seller: str,
        buyer: str,
    ) -> HistoryAllocation | None:
        """
        Find this payment's line for an invoice.

        Lines with blank parties inherit the payment's seller and buyer.
        Returns the last matching line when a payment lists an invoice
        more than once.
        """
        found: HistoryAllocation | None = None
        for line in self.allocations:
            line_seller = line.seller or self.seller
            line_buyer = line.buyer or self.buyer
            if (
                line.invoice_number == invoice_number
                and line_seller == seller
                and line_buyer == buyer
            ):
                found = line
        return found
