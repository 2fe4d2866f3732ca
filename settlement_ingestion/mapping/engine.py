"""
Mapping engine: pure transformation from raw API records to domain documents.

The invoice and payment APIs return loosely-shaped camelCase records:
numbers arrive as strings (sometimes blank), parties as ids or names,
dates as ISO strings with or without a time part. This module maps them
into the strict ``Invoice`` and ``PriorPayment`` documents the engines
consume. ZERO I/O.

Rules:
    - Unparseable or blank numbers become blank (None), or zero where the
      document requires a value.
    - Gross value is the sum of ``relatedContracts[].invoiceValueWithGst``
      when the invoice has contracts, else ``invoiceValueWithGst``, else
      ``totalAmount``.
    - Only invoices with status Approved enter the catalog.
    - Seller and buyer ids are resolved to display names through a
      ``PartyDirectory``; unknown values pass through as names.
    - Structural problems (not a record, no id, malformed date) raise
      ``SnapshotMappingError`` naming the field.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from settlement_kernel.domain.amounts import ZERO, amount_or_zero, parse_amount, quantize
from settlement_kernel.domain.documents import (
    HistoryAllocation,
    Invoice,
    PaymentStatus,
    PaymentType,
    PriorPayment,
)
from settlement_kernel.exceptions import SnapshotMappingError
from settlement_kernel.logging_config import get_logger

logger = get_logger("ingestion.mapping")


# -----------------------------------------------------------------------------
# Party directory
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class PartyDirectory:
    """Seller and buyer id -> display-name lookup."""

    sellers: Mapping[str, str] = field(default_factory=dict)
    buyers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_records(
        cls,
        sellers: Iterable[Mapping[str, Any]] = (),
        buyers: Iterable[Mapping[str, Any]] = (),
    ) -> PartyDirectory:
        """Build from the seller/buyer API lists (``sellerName`` / ``buyerName``)."""
        return cls(
            sellers={
                str(r["id"]): str(r.get("sellerName") or r.get("name") or "")
                for r in sellers
                if r.get("id") is not None
            },
            buyers={
                str(r["id"]): str(r.get("buyerName") or r.get("name") or "")
                for r in buyers
                if r.get("id") is not None
            },
        )

    def seller_name(self, value: Any) -> str:
        text = _text(value)
        return self.sellers.get(text) or text

    def buyer_name(self, value: Any) -> str:
        text = _text(value)
        return self.buyers.get(text) or text


_EMPTY_DIRECTORY = PartyDirectory()


# -----------------------------------------------------------------------------
# Coercions (pure)
# -----------------------------------------------------------------------------


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _require_record(record: Any, record_type: str) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise SnapshotMappingError(record_type, "<record>", record, "expected an object")
    return record


def _require_id(record: Mapping[str, Any], record_type: str) -> str:
    value = _text(record.get("id"))
    if not value:
        raise SnapshotMappingError(record_type, "id", record.get("id"), "id is required")
    return value


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _parse_iso(value: Any, record_type: str, field_name: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
    raise SnapshotMappingError(record_type, field_name, value, "not an ISO date")


def _parse_datetime(value: Any, record_type: str, field_name: str) -> datetime | None:
    """An aware UTC datetime; naive values are taken as UTC."""
    parsed = _parse_iso(value, record_type, field_name)
    return _as_utc(parsed) if parsed is not None else None


def _parse_date(value: Any, record_type: str, field_name: str) -> date | None:
    """The calendar date as written, whatever its offset."""
    parsed = _parse_iso(value, record_type, field_name)
    return parsed.date() if parsed is not None else None


def gross_value_of(record: Mapping[str, Any]) -> Decimal:
    """GST-inclusive value of an invoice record."""
    contracts = record.get("relatedContracts")
    if contracts:
        total = sum(
            (amount_or_zero(parse_amount(c.get("invoiceValueWithGst")))
             for c in contracts if isinstance(c, Mapping)),
            ZERO,
        )
        return quantize(total)
    for key in ("invoiceValueWithGst", "totalAmount"):
        amount = parse_amount(record.get(key))
        if amount is not None:
            return amount
    return ZERO


def _is_approved(value: Any) -> bool:
    return _text(value).lower() == PaymentStatus.APPROVED.value.lower()


# -----------------------------------------------------------------------------
# Record mappers
# -----------------------------------------------------------------------------


def map_invoice(
    record: Mapping[str, Any],
    directory: PartyDirectory | None = None,
) -> Invoice:
    """
    Map one invoice record.

    Raises:
        SnapshotMappingError: if the record is not an object, has no id, or
            carries a malformed date.
    """
    record = _require_record(record, "invoice")
    directory = directory or _EMPTY_DIRECTORY
    return Invoice(
        id=_require_id(record, "invoice"),
        invoice_number=_text(record.get("invoiceNumber")),
        seller=directory.seller_name(record.get("seller")),
        buyer=directory.buyer_name(record.get("buyer")),
        total_amount=amount_or_zero(parse_amount(record.get("totalAmount"))),
        gross_value=gross_value_of(record),
        invoice_date=_parse_date(record.get("invoiceDate"), "invoice", "invoiceDate"),
        due_date=_parse_date(record.get("dueDate"), "invoice", "dueDate"),
    )


def map_history_allocation(
    record: Mapping[str, Any],
    directory: PartyDirectory | None = None,
) -> HistoryAllocation:
    """Map one ``relatedInvoices`` entry of a payment record."""
    record = _require_record(record, "relatedInvoice")
    directory = directory or _EMPTY_DIRECTORY
    return HistoryAllocation(
        invoice_number=_text(record.get("invoiceNumber")),
        invoice_id=_text(record.get("id")) or None,
        seller=directory.seller_name(record.get("seller")),
        buyer=directory.buyer_name(record.get("buyer")),
        total_amount=amount_or_zero(parse_amount(record.get("totalAmount"))),
        received_amount=parse_amount(record.get("receivedAmount")),
        adjusted_amount=parse_amount(record.get("invoiceAdjusted")),
        balance=parse_amount(record.get("balance")),
    )


def map_prior_payment(
    record: Mapping[str, Any],
    directory: PartyDirectory | None = None,
) -> PriorPayment:
    """
    Map one payment record.

    Any status other than Approved maps to Pending.

    Raises:
        SnapshotMappingError: structural problems, as for ``map_invoice``.
        UnknownPaymentTypeError: the payment type is not recognized.
    """
    record = _require_record(record, "payment")
    directory = directory or _EMPTY_DIRECTORY
    lines = record.get("relatedInvoices") or ()
    if not isinstance(lines, (list, tuple)):
        raise SnapshotMappingError("payment", "relatedInvoices", lines, "expected a list")
    return PriorPayment(
        id=_require_id(record, "payment"),
        payment_number=_text(record.get("paymentNumber")),
        payment_type=PaymentType.parse(_text(record.get("paymentType"))),
        status=PaymentStatus.APPROVED if _is_approved(record.get("status")) else PaymentStatus.PENDING,
        seller=directory.seller_name(record.get("seller")),
        buyer=directory.buyer_name(record.get("buyer")),
        advance_received=amount_or_zero(parse_amount(record.get("advanceReceived"))),
        income_tax_amount=parse_amount(record.get("incomeTaxAmount")),
        income_tax_rate=parse_amount(record.get("incomeTaxRate")),
        allocations=tuple(map_history_allocation(line, directory) for line in lines),
        creation_date=_parse_datetime(record.get("creationDate"), "payment", "creationDate"),
    )


def map_catalog(
    records: Iterable[Mapping[str, Any]],
    directory: PartyDirectory | None = None,
) -> tuple[Invoice, ...]:
    """Approved invoices only, in source order."""
    invoices: list[Invoice] = []
    skipped = 0
    for record in records:
        record = _require_record(record, "invoice")
        if not _is_approved(record.get("status")):
            skipped += 1
            continue
        invoices.append(map_invoice(record, directory))

    logger.info("catalog_mapped", extra={
        "invoice_count": len(invoices),
        "not_approved_skipped": skipped,
    })
    return tuple(invoices)


def map_history(
    records: Iterable[Mapping[str, Any]],
    directory: PartyDirectory | None = None,
) -> tuple[PriorPayment, ...]:
    """Every payment record, approved or not; the engines filter by status."""
    payments = tuple(map_prior_payment(record, directory) for record in records)
    logger.info("history_mapped", extra={
        "payment_count": len(payments),
        "approved_count": sum(1 for p in payments if p.is_approved),
    })
    return payments
