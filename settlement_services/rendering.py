"""
settlement_services.rendering -- Session snapshots for the form layer.

Responsibility:
    Renders a ``ReconciliationSession`` (and catalog preview lines) into the
    camelCase dict shape the payment form and the persistence API exchange.
    Amounts are fixed-point strings at the session's precision; a blank
    entered amount renders as an empty string, an absent derived figure as
    None.

Architecture position:
    Services -- output boundary. Reads engine results, never changes them.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from settlement_engines.allocation import InvoiceAllocation
from settlement_engines.preview import PreviewLine
from settlement_engines.session import ReconciliationSession
from settlement_kernel.domain.amounts import format_amount


def _optional_amount(amount: Decimal | None, places: int) -> str | None:
    return None if amount is None else format_amount(amount, places)


def render_allocation(line: InvoiceAllocation, places: int = 2) -> dict[str, Any]:
    """One allocation row as the relatedInvoices entry of a payment."""
    return {
        "id": line.invoice_id,
        "invoiceNumber": line.invoice_number,
        "seller": line.seller,
        "buyer": line.buyer,
        "totalAmount": format_amount(line.total_amount, places),
        "grossValue": format_amount(line.gross_value, places),
        "receivedAmount": format_amount(line.received_amount, places),
        "invoiceAdjusted": format_amount(line.invoice_adjusted, places),
        "balance": format_amount(line.balance, places),
        "originalBalance": _optional_amount(line.original_balance, places),
        "staleReference": line.stale_reference,
    }


def render_session(session: ReconciliationSession) -> dict[str, Any]:
    """
    Snapshot of the whole draft.

    Returns:
        A JSON-serializable dict; ``advanceReceived`` is None unless the
        draft is Advance or Payment, ``remainingTax`` None unless IncomeTax.
    """
    places = session.decimal_places
    totals = session.totals
    return {
        "seller": session.seller,
        "buyer": session.buyer,
        "paymentType": session.payment_type.value,
        "paymentNumber": session.selected_payment_number,
        "status": session.status.value,
        "totalAdvance": format_amount(session.total_advance, places),
        "advanceReceived": _optional_amount(session.advance_received, places),
        "remainingTax": _optional_amount(session.remaining_tax, places),
        "incomeTaxAmount": format_amount(session.income_tax_amount, places),
        "incomeTaxRate": format_amount(session.income_tax_rate, places),
        "allocations": [render_allocation(line, places) for line in session.allocations],
        "totals": {
            "receivedAmount": format_amount(totals.received, places),
            "grossValue": format_amount(totals.gross, places),
            "balance": format_amount(totals.balance, places),
            "invoiceAdjusted": format_amount(totals.adjusted, places),
        },
        "staleReferences": list(session.stale_references),
    }


def render_preview(lines: Iterable[PreviewLine], places: int = 2) -> list[dict[str, Any]]:
    """Rows of the invoice selection dialog."""
    return [
        {
            "id": line.invoice.id,
            "invoiceNumber": line.invoice.invoice_number,
            "receivedAmount": format_amount(line.received_amount, places),
            "grossValue": format_amount(line.gross_value, places),
            "balance": format_amount(line.balance, places),
            "suggestedAdjustment": format_amount(line.suggested_adjustment, places),
            "selected": line.selected,
        }
        for line in lines
    ]
