"""
Module: settlement_engines.allocation
Responsibility:
    Allocation Calculator. Owns the per-invoice working line of a payment
    draft (``InvoiceAllocation``) and the rules that derive its balance
    from the invoice's gross value, the amounts entered in this session,
    any balance inherited from history, and the accumulated advance.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Reported balances are never negative. The general branches take the
      absolute value of the signed difference; only the inherited-history
      Payment branch floor-clamps at zero.
    - ``balance`` is always derived, never entered.
    - Entering a received amount on a Payment draft copies it into the
      adjusted amount until the adjusted amount is written directly
      (first write wins per field).

Failure modes:
    - None. Blank amounts count as zero; an unresolved invoice is a
      zero-value line.

Usage:
    from settlement_engines.allocation import compute_balance
    from settlement_kernel.domain.documents import PaymentType

    compute_balance(
        payment_type=PaymentType.PAYMENT,
        invoice_gross_value=Decimal("5000"),
        received_amount=Decimal("2000"),
        adjusted_amount=None,
        total_advance=Decimal("0"),
    )  # Decimal("3000")
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

from settlement_kernel.domain.amounts import ZERO, amount_or_zero, quantize
from settlement_kernel.domain.documents import HistoryAllocation, Invoice, PaymentType
from settlement_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


@dataclass(frozen=True)
class InvoiceAllocation:
    """
    The application of the drafted payment against one invoice.

    Contract:
        Frozen; every edit produces a new line through the functions in
        this module.
    Guarantees:
        - ``received_amount`` / ``adjusted_amount`` of None mean a blank
          field, distinct from an entered zero.
        - ``original_balance`` is the non-negative baseline inherited from
          history, or None for a fresh line.
    Non-goals:
        - Does not know the session's payment type or advance; see
          ``recompute_line``.
    """

    invoice_id: str | None
    invoice_number: str
    seller: str
    buyer: str
    total_amount: Decimal = ZERO
    gross_value: Decimal = ZERO
    received_amount: Decimal | None = None
    adjusted_amount: Decimal | None = None
    adjusted_edited: bool = False
    balance: Decimal = ZERO
    original_balance: Decimal | None = None
    stale_reference: bool = False

    @property
    def key(self) -> str:
        """Invoice id when known, else the logical number/seller/buyer link."""
        if self.invoice_id:
            return self.invoice_id
        return f"{self.invoice_number}|{self.seller}|{self.buyer}"

    @property
    def has_history(self) -> bool:
        return self.original_balance is not None

    @property
    def invoice_adjusted(self) -> Decimal:
        """Display value of the adjustment column."""
        if self.adjusted_amount is not None:
            return self.adjusted_amount
        if self.original_balance is not None:
            return abs(self.original_balance)
        return ZERO

    @classmethod
    def from_invoice(
        cls,
        invoice: Invoice,
        original_balance: Decimal | None = None,
    ) -> InvoiceAllocation:
        """Fresh working line for a catalog invoice."""
        return cls(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            seller=invoice.seller,
            buyer=invoice.buyer,
            total_amount=invoice.total_amount,
            gross_value=invoice.gross_value,
            original_balance=original_balance,
        )

    @classmethod
    def from_history(
        cls,
        line: HistoryAllocation,
        seller: str,
        buyer: str,
        original_balance: Decimal | None = None,
    ) -> InvoiceAllocation:
        """
        Working line for an invoice known only from history.

        The invoice is not in the current catalog, so its gross value is
        unknown and the line is flagged as a stale reference.
        """
        return cls(
            invoice_id=line.invoice_id,
            invoice_number=line.invoice_number,
            seller=line.seller or seller,
            buyer=line.buyer or buyer,
            total_amount=line.total_amount,
            gross_value=ZERO,
            original_balance=original_balance,
            stale_reference=True,
        )


def compute_balance(
    payment_type: PaymentType,
    invoice_gross_value: Decimal,
    received_amount: Decimal | None,
    adjusted_amount: Decimal | None,
    total_advance: Decimal,
    original_balance: Decimal | None = None,
) -> Decimal:
    """
    Balance of one invoice under the rules of the active payment type.

    Rules (exactly one applies):
        IncomeTax:              |adjusted - gross|
        Payment, inherited:     original                     (received blank)
                                max(0, original - received)  (received entered)
        Payment, fresh, advance > 0:  |advance + adjusted - gross|
        Payment, fresh, no advance:   |gross - received|
        Advance:                no per-invoice balance; zero

    Args:
        payment_type: Type of the drafted payment.
        invoice_gross_value: GST-inclusive invoice value.
        received_amount: Amount received in this session; None when blank.
        adjusted_amount: Adjustment in this session; None when blank.
        total_advance: Accumulated approved advance for the pair.
        original_balance: Baseline inherited from history, if any.

    Returns:
        Non-negative Decimal, unrounded.
    """
    received = amount_or_zero(received_amount)
    adjusted = amount_or_zero(adjusted_amount)

    if payment_type == PaymentType.INCOME_TAX:
        return abs(adjusted - invoice_gross_value)

    if payment_type == PaymentType.PAYMENT:
        if original_balance is not None:
            if received_amount is None:
                return abs(original_balance)
            return max(ZERO, original_balance - received)
        if total_advance > ZERO:
            return abs(total_advance + adjusted - invoice_gross_value)
        return abs(invoice_gross_value - received)

    return ZERO


def recompute_line(
    allocation: InvoiceAllocation,
    payment_type: PaymentType,
    total_advance: Decimal,
    places: int = 2,
    rounding: str = ROUND_HALF_UP,
) -> InvoiceAllocation:
    """Return the line with its balance derived afresh and rounded."""
    balance = compute_balance(
        payment_type=payment_type,
        invoice_gross_value=allocation.gross_value,
        received_amount=allocation.received_amount,
        adjusted_amount=allocation.adjusted_amount,
        total_advance=total_advance,
        original_balance=allocation.original_balance,
    )
    return replace(allocation, balance=quantize(balance, places, rounding))


def apply_received_amount(
    allocation: InvoiceAllocation,
    value: Decimal | None,
    payment_type: PaymentType,
) -> InvoiceAllocation:
    """
    Record a received amount.

    On Payment drafts the adjusted amount follows the received amount
    until the user has written the adjusted amount directly.
    """
    if payment_type == PaymentType.PAYMENT and not allocation.adjusted_edited:
        logger.debug("adjusted_amount_follows_received", extra={
            "invoice_key": allocation.key,
            "received_amount": None if value is None else str(value),
        })
        return replace(allocation, received_amount=value, adjusted_amount=value)
    return replace(allocation, received_amount=value)


def apply_adjusted_amount(
    allocation: InvoiceAllocation,
    value: Decimal | None,
) -> InvoiceAllocation:
    """Record a directly entered adjustment; later received edits no longer overwrite it."""
    return replace(allocation, adjusted_amount=value, adjusted_edited=True)
