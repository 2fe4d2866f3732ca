"""Tests for session and preview rendering."""

import json

import pytest

from settlement_engines.commands import (
    SelectInvoice,
    SetDimensions,
    SetIncomeTaxAmount,
    SetReceivedAmount,
)
from settlement_engines.preview import catalog_preview
from settlement_engines.session import apply_command, new_session, replay
from settlement_kernel.domain.documents import PaymentType
from settlement_services.rendering import render_allocation, render_preview, render_session
from tests.builders import BUYER, SELLER


@pytest.fixture
def seeded(catalog, history):
    return apply_command(new_session(catalog, history), SetDimensions(SELLER, BUYER))


class TestRenderAllocation:
    def test_seeded_line(self, seeded):
        row = render_allocation(seeded.allocation("1"))
        assert row == {
            "id": "1",
            "invoiceNumber": "INV-001",
            "seller": SELLER,
            "buyer": BUYER,
            "totalAmount": "5000.00",
            "grossValue": "5000.00",
            "receivedAmount": "",
            "invoiceAdjusted": "1500.00",
            "balance": "1500.00",
            "originalBalance": "1500.00",
            "staleReference": False,
        }

    def test_entered_amounts(self, seeded):
        session = apply_command(seeded, SetReceivedAmount("1", "250.5"))
        row = render_allocation(session.allocation("1"))
        assert row["receivedAmount"] == "250.50"
        assert row["invoiceAdjusted"] == "250.50"
        assert row["balance"] == "1249.50"

    def test_fresh_line_has_no_original_balance(self, seeded):
        session = apply_command(seeded, SelectInvoice("3"))
        assert render_allocation(session.allocation("3"))["originalBalance"] is None

    def test_places(self, seeded):
        row = render_allocation(seeded.allocation("1"), places=0)
        assert row["grossValue"] == "5000"


class TestRenderSession:
    def test_payment_draft(self, seeded):
        rendered = render_session(seeded)
        assert rendered["seller"] == SELLER
        assert rendered["buyer"] == BUYER
        assert rendered["paymentType"] == "Payment"
        assert rendered["paymentNumber"] is None
        assert rendered["status"] == "populated"
        assert rendered["totalAdvance"] == "1000.00"
        assert rendered["advanceReceived"] == "1000.00"
        assert rendered["remainingTax"] is None
        assert rendered["incomeTaxAmount"] == ""
        assert len(rendered["allocations"]) == 1
        assert rendered["totals"] == {
            "receivedAmount": "0.00",
            "grossValue": "5000.00",
            "balance": "1500.00",
            "invoiceAdjusted": "0.00",
        }
        assert rendered["staleReferences"] == []

    def test_income_tax_draft(self, catalog, history):
        session = replay(
            [
                SetDimensions(SELLER, BUYER, PaymentType.INCOME_TAX),
                SetIncomeTaxAmount("1000"),
            ],
            new_session(catalog, history),
        )
        rendered = render_session(session)
        assert rendered["advanceReceived"] is None
        assert rendered["remainingTax"] == "1000.00"
        assert rendered["incomeTaxAmount"] == "1000.00"

    def test_stale_references_listed(self, seeded):
        rendered = render_session(apply_command(seeded, SelectInvoice("404")))
        assert rendered["staleReferences"] == ["404"]
        assert rendered["allocations"][-1]["staleReference"] is True

    def test_json_serializable(self, seeded):
        json.dumps(render_session(seeded))


class TestRenderPreview:
    def test_rows(self, seeded):
        rows = render_preview(catalog_preview(seeded))
        assert [row["invoiceNumber"] for row in rows] == ["INV-001", "INV-002", "INV-003"]
        assert rows[0] == {
            "id": "1",
            "invoiceNumber": "INV-001",
            "receivedAmount": "0.00",
            "grossValue": "5000.00",
            "balance": "4000.00",
            "suggestedAdjustment": "1000.00",
            "selected": True,
        }
