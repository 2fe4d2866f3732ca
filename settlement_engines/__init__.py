"""
Module: settlement_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines. This is the import surface for
    ``settlement_services`` and the scripts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import settlement_kernel (and sibling engine modules).
    MUST NOT import settlement_services, settlement_ingestion or
    settlement_config; precision and rounding are passed in by callers.

Invariants enforced:
    - Decimal-only arithmetic: monetary amounts are ``Decimal``; floats are
      converted through ``str`` at the boundary and never reach an engine.
    - Determinism: identical inputs always produce identical outputs.
    - Reported balances and advance figures are never negative.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``settlement_engines.tracer``), emitting SETTLEMENT_ENGINE_TRACE log
    records with engine name, version, input fingerprint and duration.

Usage:
    from settlement_engines import SetDimensions, SelectInvoice, replay
    from settlement_engines import total_advance, compute_balance
"""

from settlement_kernel.logging_config import get_logger

logger = get_logger("engines")

from settlement_engines.advance import contributing_advances, total_advance
from settlement_engines.allocation import (
    InvoiceAllocation,
    apply_adjusted_amount,
    apply_received_amount,
    compute_balance,
    recompute_line,
)
from settlement_engines.carry_forward import recompute_advance, sum_adjusted
from settlement_engines.commands import (
    Command,
    DeselectInvoice,
    Finalize,
    LoadSnapshot,
    SelectInvoice,
    SelectPaymentNumber,
    SetAdjustedAmount,
    SetDimensions,
    SetIncomeTaxAmount,
    SetIncomeTaxRate,
    SetReceivedAmount,
    ToggleInvoice,
)
from settlement_engines.preview import PreviewLine, catalog_preview, preview_invoice
from settlement_engines.seeding import (
    auto_seed_candidates,
    baseline_for,
    find_payment,
    latest_history_line,
)
from settlement_engines.session import (
    ReconciliationSession,
    SessionStatus,
    SessionTotals,
    apply_command,
    deselect_invoice,
    new_session,
    replay,
    select_invoice,
)
from settlement_engines.tax import RemainingTaxBasis, remaining_tax
from settlement_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Advance
    "total_advance",
    "contributing_advances",
    # Allocation
    "InvoiceAllocation",
    "compute_balance",
    "recompute_line",
    "apply_received_amount",
    "apply_adjusted_amount",
    # Carry-forward
    "recompute_advance",
    "sum_adjusted",
    # Tax
    "remaining_tax",
    "RemainingTaxBasis",
    # Seeding
    "find_payment",
    "latest_history_line",
    "baseline_for",
    "auto_seed_candidates",
    # Preview
    "PreviewLine",
    "preview_invoice",
    "catalog_preview",
    # Commands
    "Command",
    "LoadSnapshot",
    "SetDimensions",
    "SelectPaymentNumber",
    "SelectInvoice",
    "DeselectInvoice",
    "ToggleInvoice",
    "SetReceivedAmount",
    "SetAdjustedAmount",
    "SetIncomeTaxAmount",
    "SetIncomeTaxRate",
    "Finalize",
    # Session
    "ReconciliationSession",
    "SessionStatus",
    "SessionTotals",
    "apply_command",
    "new_session",
    "replay",
    "select_invoice",
    "deselect_invoice",
    # Tracing
    "traced_engine",
    "compute_input_fingerprint",
]
