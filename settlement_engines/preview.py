"""
Catalog preview for the invoice selection dialog.

Before an invoice is selected, the dialog shows what choosing it would
mean: how much of it has been received in this draft, its gross value,
the balance left after the accumulated advance, and how much of the
advance could be adjusted against it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from settlement_engines.session import ReconciliationSession
from settlement_kernel.domain.amounts import ZERO, amount_or_zero, quantize
from settlement_kernel.domain.documents import Invoice


@dataclass(frozen=True)
class PreviewLine:
    """One catalog invoice as the selection dialog shows it."""

    invoice: Invoice
    received_amount: Decimal
    gross_value: Decimal
    balance: Decimal
    suggested_adjustment: Decimal
    selected: bool


def preview_invoice(
    invoice: Invoice,
    received_amount: Decimal,
    total_advance: Decimal,
    selected: bool = False,
) -> PreviewLine:
    """
    Preview figures for one invoice.

    balance              = |gross - received - total_advance|
    suggested_adjustment = max(0, min(total_advance, gross - received))
    """
    outstanding = invoice.gross_value - received_amount
    return PreviewLine(
        invoice=invoice,
        received_amount=received_amount,
        gross_value=invoice.gross_value,
        balance=abs(outstanding - total_advance),
        suggested_adjustment=max(ZERO, min(total_advance, outstanding)),
        selected=selected,
    )


def catalog_preview(session: ReconciliationSession) -> tuple[PreviewLine, ...]:
    """Preview lines for every catalog invoice of the session's pair, in catalog order."""
    if not session.has_parties:
        return ()

    received_by_key = {
        line.key: amount_or_zero(line.received_amount) for line in session.allocations
    }
    lines: list[PreviewLine] = []
    for invoice in _pair_invoices(session.catalog, session.seller, session.buyer):
        line = preview_invoice(
            invoice,
            received_by_key.get(invoice.id, ZERO),
            session.total_advance,
            selected=invoice.id in received_by_key,
        )
        lines.append(replace(
            line,
            balance=quantize(line.balance, session.decimal_places, session.rounding),
            suggested_adjustment=quantize(
                line.suggested_adjustment, session.decimal_places, session.rounding
            ),
        ))
    return tuple(lines)


def _pair_invoices(catalog: Sequence[Invoice], seller: str, buyer: str) -> list[Invoice]:
    return [invoice for invoice in catalog if invoice.seller == seller and invoice.buyer == buyer]
