"""
Module: settlement_engines.advance
Responsibility:
    Advance Accumulator. Sums approved Advance payments for a seller/buyer
    pair into a single outstanding-advance figure.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only records with payment_type == Advance and status == Approved
      whose seller and buyer equal the given display names contribute.
    - Recomputed on every call; the reducer never caches the result, so a
      new history snapshot is always reflected.

Failure modes:
    - None. An empty or non-matching history yields zero.

Usage:
    from settlement_engines.advance import total_advance

    advance = total_advance("Acme Mills", "Zed Traders", history)
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from settlement_engines.tracer import traced_engine
from settlement_kernel.domain.amounts import ZERO
from settlement_kernel.domain.documents import PaymentType, PriorPayment
from settlement_kernel.logging_config import get_logger

logger = get_logger("engines.advance")


def contributing_advances(
    seller: str,
    buyer: str,
    prior_payments: Sequence[PriorPayment],
) -> tuple[PriorPayment, ...]:
    """Approved Advance records for exactly this seller/buyer pair."""
    return tuple(
        payment
        for payment in prior_payments
        if payment.payment_type == PaymentType.ADVANCE
        and payment.is_approved
        and payment.is_between(seller, buyer)
    )


@traced_engine("advance", "1.0", fingerprint_fields=("seller", "buyer"))
def total_advance(
    seller: str,
    buyer: str,
    prior_payments: Sequence[PriorPayment],
) -> Decimal:
    """
    Total approved advance received from ``buyer`` by ``seller``.

    Postconditions:
        - Returns Decimal zero when no record matches.
    """
    advances = contributing_advances(seller, buyer, prior_payments)
    total = sum((p.advance_received for p in advances), ZERO)

    logger.debug("advance_accumulated", extra={
        "seller": seller,
        "buyer": buyer,
        "advance_count": len(advances),
        "total_advance": str(total),
    })
    return total
