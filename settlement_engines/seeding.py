"""
Module: settlement_engines.seeding
Responsibility:
    History matching for the Reconciliation Session. Finds the balance an
    invoice carried at the end of its most relevant prior payment so a new
    draft can continue from it.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Two lookup flows:
    - Explicit: a payment number is selected on the draft (IncomeTax or
      Payment history lookup). The baseline comes from that payment's line
      for the invoice.
    - Auto-seed: Payment drafts with no payment number. The baseline comes
      from the most recent approved Payment/IncomeTax record for the pair
      that lists the invoice, matched by (invoice_number, seller, buyer).

Invariants enforced:
    - Only the balance is inherited; received and adjusted amounts are
      never copied from history.
    - A zero historical balance means the invoice is settled: it is not an
      auto-seed candidate and, if selected by hand, is treated as fresh.
    - Baselines are non-negative (absolute value of the recorded balance).
    - Records for a different seller/buyer pair never contribute.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal

from settlement_kernel.domain.amounts import ZERO
from settlement_kernel.domain.documents import (
    HistoryAllocation,
    Invoice,
    PaymentType,
    PriorPayment,
)
from settlement_kernel.logging_config import get_logger

logger = get_logger("engines.seeding")


_UNDATED = datetime.min.replace(tzinfo=UTC)


def _sort_instant(value: datetime | None) -> datetime:
    if value is None:
        return _UNDATED
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _newest_first(payments: Sequence[PriorPayment]) -> list[PriorPayment]:
    """
    Order by creation date, newest first.

    Records without a date sort as oldest and naive dates count as UTC.
    Ties keep the later list position first, so history supplied in
    chronological order works without dates.
    """
    indexed = list(enumerate(payments))
    indexed.sort(
        key=lambda item: (_sort_instant(item[1].creation_date), item[0]),
        reverse=True,
    )
    return [payment for _, payment in indexed]


def find_payment(
    history: Sequence[PriorPayment],
    payment_number: str,
    seller: str,
    buyer: str,
) -> PriorPayment | None:
    """The most recent record with this payment number for the pair."""
    for payment in _newest_first(history):
        if payment.payment_number == payment_number and payment.is_between(seller, buyer):
            return payment
    return None


def latest_history_line(
    history: Sequence[PriorPayment],
    invoice_number: str,
    seller: str,
    buyer: str,
) -> HistoryAllocation | None:
    """The invoice's line in its most recent approved settling payment."""
    for payment in _newest_first(history):
        if not (
            payment.is_approved
            and payment.payment_type.settles_invoices
            and payment.is_between(seller, buyer)
        ):
            continue
        line = payment.allocation_for(invoice_number, seller, buyer)
        if line is not None:
            return line
    return None


def baseline_from_line(line: HistoryAllocation | None) -> Decimal | None:
    """Inherited baseline of a history line; None when absent or settled."""
    if line is None or line.balance is None or line.balance == ZERO:
        return None
    return abs(line.balance)


def baseline_for(
    history: Sequence[PriorPayment],
    invoice_number: str,
    seller: str,
    buyer: str,
    payment_type: PaymentType,
    payment_number: str | None = None,
) -> Decimal | None:
    """
    Baseline balance a newly selected invoice inherits, if any.

    Returns:
        The non-negative baseline, or None when the line is fresh.
    """
    line: HistoryAllocation | None = None
    if payment_number and payment_type.settles_invoices:
        payment = find_payment(history, payment_number, seller, buyer)
        if payment is not None:
            line = payment.allocation_for(invoice_number, seller, buyer)
    elif payment_type == PaymentType.PAYMENT:
        line = latest_history_line(history, invoice_number, seller, buyer)
    return baseline_from_line(line)


def auto_seed_candidates(
    catalog: Sequence[Invoice],
    history: Sequence[PriorPayment],
    seller: str,
    buyer: str,
) -> tuple[tuple[Invoice, Decimal], ...]:
    """
    Catalog invoices of the pair that still carry a historical balance.

    Returns:
        (invoice, baseline) pairs in catalog order.
    """
    candidates: list[tuple[Invoice, Decimal]] = []
    excluded = 0
    for invoice in catalog:
        if invoice.seller != seller or invoice.buyer != buyer:
            continue
        line = latest_history_line(history, invoice.invoice_number, seller, buyer)
        if line is None:
            continue
        baseline = baseline_from_line(line)
        if baseline is None:
            excluded += 1
            continue
        candidates.append((invoice, baseline))

    logger.debug("auto_seed_candidates_found", extra={
        "seller": seller,
        "buyer": buyer,
        "candidate_count": len(candidates),
        "settled_excluded": excluded,
    })
    return tuple(candidates)
