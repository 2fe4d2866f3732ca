"""
Module: settlement_engines.carry_forward
Responsibility:
    Carry-Forward Tracker. Projects how much of the accumulated advance is
    still unapplied after the adjustments entered in the current draft.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Floor-clamped at zero. Advance remaining is a physical pool of funds,
      unlike balances, which are absolute differences.
    - A derived projection: the reducer calls it after every command and
      never stores a value that could drift from the allocations.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from settlement_engines.allocation import InvoiceAllocation
from settlement_engines.tracer import traced_engine
from settlement_kernel.domain.amounts import ZERO, amount_or_zero
from settlement_kernel.logging_config import get_logger

logger = get_logger("engines.carry_forward")


def sum_adjusted(allocations: Sequence[InvoiceAllocation]) -> Decimal:
    """Total adjustment in progress; blanks count as zero."""
    return sum((amount_or_zero(a.adjusted_amount) for a in allocations), ZERO)


@traced_engine("carry_forward", "1.0", fingerprint_fields=("total_advance",))
def recompute_advance(
    total_advance: Decimal,
    allocations: Sequence[InvoiceAllocation],
) -> Decimal:
    """
    Advance remaining after this draft's adjustments.

    Postconditions:
        - Returns total_advance - sum(adjusted) when that is non-negative.
        - Returns zero when adjustments exceed the advance.
    """
    adjusted = sum_adjusted(allocations)
    remaining = total_advance - adjusted
    if remaining < ZERO:
        logger.info("advance_overdrawn", extra={
            "total_advance": str(total_advance),
            "sum_adjusted": str(adjusted),
            "shortfall": str(-remaining),
        })
        return ZERO
    return remaining
