"""
settlement_services.submission -- Submit a payment draft.

Responsibility:
    Validates the payment header against the active settings, finalizes
    the session and builds the payload handed to the persistence
    collaborator. Every submitted payment enters history as Pending; an
    approver promotes it later, outside this system.

Architecture position:
    Services -- composes the session reducer with settings. No I/O: the
    payload is returned, not sent.

Invariants enforced:
    - A draft that fails header validation is never finalized.
    - Related invoices are only carried by Payment and IncomeTax drafts.
    - Bank ids are resolved to display names through the bank directory.
    - ``advanceReceived`` is the entered advance for Advance drafts and the
      carry-forward for Payment drafts.

Failure modes:
    - SubmissionValidationError: header fields missing or not configured.
    - SessionStateError: the session is already finalized or has no
      parties.

Usage:
    header = PaymentHeader(mode="Cheque", bank="HBL", cheque_no="004512")
    submission = build_submission(session, header, get_active_settings())
    api.create_payment(submission.payload)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from settlement_config.schema import SettlementSettings
from settlement_engines.commands import Finalize
from settlement_engines.session import ReconciliationSession, apply_command
from settlement_kernel.domain.amounts import format_amount, parse_amount
from settlement_kernel.domain.documents import PaymentStatus, PaymentType
from settlement_kernel.domain.dtos import ValidationError, ValidationResult
from settlement_kernel.exceptions import SubmissionValidationError
from settlement_kernel.logging_config import get_logger
from settlement_services.rendering import render_allocation

logger = get_logger("services.submission")


@dataclass(frozen=True)
class PaymentHeader:
    """
    Header fields of the payment form that the engine does not compute.

    ``advance_amount`` is the amount received on an Advance draft.
    ``record_id``, ``payment_number``, ``creation_date`` and
    ``edited_from_status`` are set when the draft edits an existing record.
    """

    mode: str
    bank: str = ""
    payment_date: date | None = None
    cheque_no: str = ""
    cheque_date: date | None = None
    paid_amount: Decimal | None = None
    advance_amount: Decimal | None = None
    remarks: str = ""
    record_id: str | None = None
    payment_number: str | None = None
    creation_date: datetime | None = None
    edited_from_status: PaymentStatus | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "paid_amount", parse_amount(self.paid_amount))
        object.__setattr__(self, "advance_amount", parse_amount(self.advance_amount))

    @property
    def is_edit(self) -> bool:
        return self.record_id is not None


@dataclass(frozen=True)
class Submission:
    """The finalized session and the payload built from it."""

    session: ReconciliationSession
    payload: dict[str, Any] = field(default_factory=dict)


def validate_header(
    session: ReconciliationSession,
    header: PaymentHeader,
    settings: SettlementSettings,
) -> ValidationResult:
    """Submit-time checks of the header; never raises."""
    errors: list[ValidationError] = []

    if session.payment_type.value not in settings.payment_types:
        errors.append(ValidationError(
            code="PAYMENT_TYPE_DISABLED",
            message=f"Payment type {session.payment_type.value} is not enabled",
            field="paymentType",
        ))

    mode = settings.payment_mode(header.mode) if header.mode else None
    if not header.mode:
        errors.append(ValidationError(
            code="MODE_REQUIRED", message="Payment mode is required", field="mode",
        ))
    elif mode is None:
        errors.append(ValidationError(
            code="UNKNOWN_MODE",
            message=f"Payment mode {header.mode!r} is not configured",
            field="mode",
        ))

    if header.bank:
        if settings.bank(header.bank) is None:
            errors.append(ValidationError(
                code="UNKNOWN_BANK",
                message=f"Bank {header.bank!r} is not in the bank directory",
                field="bankName",
            ))
    elif mode is not None and mode.requires_bank:
        errors.append(ValidationError(
            code="BANK_REQUIRED",
            message=f"Bank name is required for {mode.name}",
            field="bankName",
        ))

    for name, value in (("paidAmount", header.paid_amount), ("advanceReceived", header.advance_amount)):
        if value is not None and value < 0:
            errors.append(ValidationError(
                code="NEGATIVE_AMOUNT",
                message=f"{name} must not be negative",
                field=name,
            ))

    return ValidationResult.from_errors(errors)


def _paid_amount(session: ReconciliationSession, header: PaymentHeader) -> Decimal | None:
    """Advance drafts re-edited from an approved record default paid to the advance."""
    if (
        header.paid_amount is None
        and session.payment_type == PaymentType.ADVANCE
        and header.edited_from_status == PaymentStatus.APPROVED
    ):
        return header.advance_amount
    return header.paid_amount


def _advance_received(session: ReconciliationSession, header: PaymentHeader) -> Decimal | None:
    if session.payment_type == PaymentType.ADVANCE:
        return header.advance_amount
    return session.advance_received


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def build_submission(
    session: ReconciliationSession,
    header: PaymentHeader,
    settings: SettlementSettings,
    now: datetime | None = None,
) -> Submission:
    """
    Finalize the draft and build its persistence payload.

    Args:
        session: The draft to submit.
        header: Form header fields.
        settings: Active settings (payment modes, bank directory).
        now: Submission timestamp. Defaults to the current UTC time.

    Raises:
        SubmissionValidationError: if the header fails validation.
        SessionStateError: if the session cannot be finalized.
    """
    validation = validate_header(session, header, settings)
    if not validation:
        logger.warning("submission_rejected", extra={
            "error_codes": list(validation.codes),
            "payment_type": session.payment_type.value,
        })
        raise SubmissionValidationError(validation.errors)

    finalized = apply_command(session, Finalize())
    timestamp = now or datetime.now(UTC)
    places = finalized.decimal_places
    created = (header.creation_date or timestamp) if header.is_edit else timestamp

    related = []
    if finalized.payment_type.settles_invoices:
        related = [render_allocation(line, places) for line in finalized.allocations]

    is_tax = finalized.payment_type == PaymentType.INCOME_TAX
    payload: dict[str, Any] = {
        "paymentNumber": header.payment_number if header.is_edit else None,
        "paymentDate": _iso(header.payment_date),
        "paymentType": finalized.payment_type.value,
        "mode": header.mode,
        "bankName": settings.bank_name(header.bank) if header.bank else "",
        "chequeNo": header.cheque_no,
        "chequeDate": _iso(header.cheque_date),
        "seller": finalized.seller,
        "buyer": finalized.buyer,
        "paidAmount": format_amount(_paid_amount(finalized, header), places),
        "incomeTaxAmount": format_amount(finalized.income_tax_amount, places) if is_tax else "",
        "incomeTaxRate": format_amount(finalized.income_tax_rate, places) if is_tax else "",
        "remainingTax": format_amount(finalized.remaining_tax, places) if is_tax else "",
        "advanceReceived": format_amount(_advance_received(finalized, header), places),
        "remarks": header.remarks,
        "creationDate": created.isoformat(),
        "updationDate": timestamp.isoformat(),
        "status": PaymentStatus.PENDING.value,
        "relatedInvoices": related,
    }
    if header.is_edit:
        payload = {"id": header.record_id, **payload}

    logger.info("payment_submitted", extra={
        "payment_type": finalized.payment_type.value,
        "seller": finalized.seller,
        "buyer": finalized.buyer,
        "related_invoice_count": len(related),
        "is_edit": header.is_edit,
    })
    return Submission(session=finalized, payload=payload)
