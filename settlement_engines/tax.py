"""
Remaining-tax engine for Income-Tax drafts.

Two alternate formulas, selected by whether related invoices are present:

    invoice-sum:      |income_tax_amount - sum(received_amount)|
    rate comparison:  |income_tax_amount - income_tax_rate|

Any related-invoice allocation selects the invoice-sum formula; with none,
the two header fields are compared directly. Blank fields count as zero.
Pure functions, no I/O.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from enum import Enum

from settlement_engines.allocation import InvoiceAllocation
from settlement_engines.tracer import traced_engine
from settlement_kernel.domain.amounts import ZERO, amount_or_zero
from settlement_kernel.logging_config import get_logger

logger = get_logger("engines.tax")


class RemainingTaxBasis(str, Enum):
    """Which formula produced a remaining-tax figure."""

    INVOICE_SUM = "invoice_sum"
    RATE_COMPARISON = "rate_comparison"


def remaining_tax_basis(allocations: Sequence[InvoiceAllocation]) -> RemainingTaxBasis:
    if allocations:
        return RemainingTaxBasis.INVOICE_SUM
    return RemainingTaxBasis.RATE_COMPARISON


def sum_received(allocations: Sequence[InvoiceAllocation]) -> Decimal:
    return sum((amount_or_zero(a.received_amount) for a in allocations), ZERO)


@traced_engine(
    "tax",
    "1.0",
    fingerprint_fields=("income_tax_amount", "income_tax_rate"),
)
def remaining_tax(
    income_tax_amount: Decimal | None,
    income_tax_rate: Decimal | None,
    allocations: Sequence[InvoiceAllocation],
) -> Decimal:
    """Remaining income-tax liability; never negative."""
    tax_amount = amount_or_zero(income_tax_amount)
    basis = remaining_tax_basis(allocations)
    if basis == RemainingTaxBasis.INVOICE_SUM:
        result = abs(tax_amount - sum_received(allocations))
    else:
        result = abs(tax_amount - amount_or_zero(income_tax_rate))

    logger.debug("remaining_tax_computed", extra={
        "basis": basis.value,
        "allocation_count": len(allocations),
        "remaining_tax": str(result),
    })
    return result
