"""
Pure domain layer.

Immutable documents (invoices, prior payments, history allocations), amount
helpers and validation DTOs. No dependencies on I/O, clocks or
configuration; every object here is immutable and deterministic.
"""

from settlement_kernel.domain.amounts import (
    ZERO,
    amount_or_zero,
    format_amount,
    parse_amount,
    quantize,
)
from settlement_kernel.domain.documents import (
    HistoryAllocation,
    Invoice,
    PaymentStatus,
    PaymentType,
    PriorPayment,
)
from settlement_kernel.domain.dtos import ValidationError, ValidationResult

__all__ = [
    "ZERO",
    "amount_or_zero",
    "format_amount",
    "parse_amount",
    "quantize",
    "HistoryAllocation",
    "Invoice",
    "PaymentStatus",
    "PaymentType",
    "PriorPayment",
    "ValidationError",
    "ValidationResult",
]
