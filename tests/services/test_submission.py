"""
Tests for draft submission: header validation, finalization and the
persistence payload.
"""

from datetime import UTC, date, datetime

import pytest

from settlement_engines.commands import (
    SelectInvoice,
    SetDimensions,
    SetIncomeTaxAmount,
    SetIncomeTaxRate,
    SetReceivedAmount,
)
from settlement_engines.session import SessionStatus, apply_command, new_session, replay
from settlement_kernel.domain.documents import PaymentStatus, PaymentType
from settlement_kernel.exceptions import SessionStateError, SubmissionValidationError
from settlement_services.submission import PaymentHeader, build_submission, validate_header
from tests.builders import BUYER, SELLER

NOW = datetime(2026, 1, 5, 9, 30, tzinfo=UTC)


@pytest.fixture
def payment_draft(catalog, history):
    return replay(
        [
            SetDimensions(SELLER, BUYER),
            SelectInvoice("3"),
            SetReceivedAmount("3", "500"),
        ],
        new_session(catalog, history),
    )


def _codes(result):
    return list(result.codes)


class TestValidateHeader:
    def test_cheque_with_bank_is_valid(self, payment_draft, settings):
        assert validate_header(payment_draft, PaymentHeader(mode="Cheque", bank="HBL"), settings)

    def test_cash_needs_no_bank(self, payment_draft, settings):
        assert validate_header(payment_draft, PaymentHeader(mode="Cash"), settings)

    def test_mode_required(self, payment_draft, settings):
        result = validate_header(payment_draft, PaymentHeader(mode=""), settings)
        assert _codes(result) == ["MODE_REQUIRED"]

    def test_unknown_mode(self, payment_draft, settings):
        result = validate_header(payment_draft, PaymentHeader(mode="Wire"), settings)
        assert _codes(result) == ["UNKNOWN_MODE"]

    @pytest.mark.parametrize("mode", ["Cheque", "Bank Letter", "LC"])
    def test_bank_required_for_bank_modes(self, payment_draft, settings, mode):
        result = validate_header(payment_draft, PaymentHeader(mode=mode), settings)
        assert _codes(result) == ["BANK_REQUIRED"]
        assert [e.field for e in result.for_field("bankName")] == ["bankName"]

    def test_unknown_bank(self, payment_draft, settings):
        result = validate_header(payment_draft, PaymentHeader(mode="Cheque", bank="Gringotts"), settings)
        assert _codes(result) == ["UNKNOWN_BANK"]

    def test_bank_by_display_name(self, payment_draft, settings):
        header = PaymentHeader(mode="Cheque", bank="Habib Bank Limited (HBL)")
        assert validate_header(payment_draft, header, settings)

    def test_negative_amounts(self, payment_draft, settings):
        header = PaymentHeader(mode="Cash", paid_amount="-1", advance_amount="-5")
        result = validate_header(payment_draft, header, settings)
        assert _codes(result) == ["NEGATIVE_AMOUNT", "NEGATIVE_AMOUNT"]


class TestBuildSubmission:
    def test_payment_payload(self, payment_draft, settings):
        header = PaymentHeader(
            mode="Cheque",
            bank="HBL",
            cheque_no="004512",
            cheque_date=date(2026, 1, 4),
            payment_date=date(2026, 1, 5),
            paid_amount="500",
            remarks="part payment",
        )
        submission = build_submission(payment_draft, header, settings, now=NOW)
        payload = submission.payload

        assert "id" not in payload
        assert payload["paymentNumber"] is None
        assert payload["paymentDate"] == "2026-01-05"
        assert payload["paymentType"] == "Payment"
        assert payload["mode"] == "Cheque"
        assert payload["bankName"] == "Habib Bank Limited (HBL)"
        assert payload["chequeNo"] == "004512"
        assert payload["chequeDate"] == "2026-01-04"
        assert payload["seller"] == SELLER
        assert payload["buyer"] == BUYER
        assert payload["paidAmount"] == "500.00"
        assert payload["incomeTaxAmount"] == ""
        assert payload["remainingTax"] == ""
        assert payload["advanceReceived"] == "500.00"
        assert payload["remarks"] == "part payment"
        assert payload["creationDate"] == NOW.isoformat()
        assert payload["updationDate"] == NOW.isoformat()
        assert payload["status"] == PaymentStatus.PENDING.value
        assert [row["id"] for row in payload["relatedInvoices"]] == ["1", "3"]

    def test_session_finalized(self, payment_draft, settings):
        submission = build_submission(payment_draft, PaymentHeader(mode="Cash"), settings, now=NOW)
        assert submission.session.status == SessionStatus.FINALIZED
        assert payment_draft.status == SessionStatus.DIRTY

    def test_invalid_header_not_finalized(self, payment_draft, settings, captured_logs):
        with pytest.raises(SubmissionValidationError) as exc_info:
            build_submission(payment_draft, PaymentHeader(mode="Cheque"), settings, now=NOW)
        assert exc_info.value.code == "SUBMISSION_INVALID"
        assert [e.code for e in exc_info.value.errors] == ["BANK_REQUIRED"]
        assert payment_draft.status == SessionStatus.DIRTY
        rejected = [r for r in captured_logs() if r["message"] == "submission_rejected"]
        assert rejected[0]["error_codes"] == ["BANK_REQUIRED"]

    def test_resubmission_rejected(self, payment_draft, settings):
        submission = build_submission(payment_draft, PaymentHeader(mode="Cash"), settings, now=NOW)
        with pytest.raises(SessionStateError):
            build_submission(submission.session, PaymentHeader(mode="Cash"), settings, now=NOW)

    def test_advance_edit_from_approved(self, catalog, history, settings):
        draft = apply_command(
            new_session(catalog, history),
            SetDimensions(SELLER, BUYER, PaymentType.ADVANCE),
        )
        created = datetime(2025, 12, 1, tzinfo=UTC)
        header = PaymentHeader(
            mode="Cash",
            advance_amount="2500",
            record_id="77",
            payment_number="PAY-77",
            creation_date=created,
            edited_from_status=PaymentStatus.APPROVED,
        )
        payload = build_submission(draft, header, settings, now=NOW).payload

        assert next(iter(payload)) == "id"
        assert payload["id"] == "77"
        assert payload["paymentNumber"] == "PAY-77"
        assert payload["paidAmount"] == "2500.00"
        assert payload["advanceReceived"] == "2500.00"
        assert payload["relatedInvoices"] == []
        assert payload["creationDate"] == created.isoformat()
        assert payload["updationDate"] == NOW.isoformat()
        assert payload["status"] == "Pending"

    def test_advance_new_record_keeps_paid_blank(self, catalog, history, settings):
        draft = apply_command(
            new_session(catalog, history),
            SetDimensions(SELLER, BUYER, PaymentType.ADVANCE),
        )
        payload = build_submission(
            draft, PaymentHeader(mode="Cash", advance_amount="2500"), settings, now=NOW
        ).payload
        assert payload["paidAmount"] == ""
        assert payload["advanceReceived"] == "2500.00"

    def test_income_tax_payload(self, catalog, history, settings):
        draft = replay(
            [
                SetDimensions(SELLER, BUYER, PaymentType.INCOME_TAX),
                SetIncomeTaxAmount("1000"),
                SetIncomeTaxRate("12"),
                SelectInvoice("3"),
                SetReceivedAmount("3", "400"),
            ],
            new_session(catalog, history),
        )
        payload = build_submission(draft, PaymentHeader(mode="Bad Debts"), settings, now=NOW).payload
        assert payload["incomeTaxAmount"] == "1000.00"
        assert payload["incomeTaxRate"] == "12.00"
        assert payload["remainingTax"] == "600.00"
        assert payload["advanceReceived"] == ""
        assert len(payload["relatedInvoices"]) == 1

    def test_submission_logged(self, payment_draft, settings, captured_logs):
        build_submission(payment_draft, PaymentHeader(mode="Cash"), settings, now=NOW)
        submitted = [r for r in captured_logs() if r["message"] == "payment_submitted"]
        assert submitted[0]["related_invoice_count"] == 2
        assert submitted[0]["is_edit"] is False
