"""Tests for the catalog preview shown before selecting invoices."""

from decimal import Decimal

from settlement_engines.commands import SetDimensions, SetReceivedAmount
from settlement_engines.preview import catalog_preview, preview_invoice
from settlement_engines.session import apply_command, new_session
from tests.builders import BUYER, SELLER, invoice

D = Decimal


class TestPreviewInvoice:
    def test_outstanding_larger_than_advance(self):
        line = preview_invoice(invoice("1", gross="5000"), D("0"), D("1000"))
        assert line.balance == D("4000")
        assert line.suggested_adjustment == D("1000")
        assert line.selected is False

    def test_advance_larger_than_outstanding(self):
        line = preview_invoice(invoice("1", gross="5000"), D("4500"), D("1000"))
        assert line.balance == D("500")
        assert line.suggested_adjustment == D("500")

    def test_over_received_suggests_nothing(self):
        line = preview_invoice(invoice("1", gross="5000"), D("6000"), D("1000"))
        assert line.balance == D("2000")
        assert line.suggested_adjustment == D("0")

    def test_no_advance(self):
        line = preview_invoice(invoice("1", gross="800"), D("300"), D("0"))
        assert line.balance == D("500")
        assert line.suggested_adjustment == D("0")


class TestCatalogPreview:
    def test_requires_parties(self, catalog, history):
        assert catalog_preview(new_session(catalog, history)) == ()

    def test_covers_pair_invoices_in_catalog_order(self, catalog, history):
        session = apply_command(new_session(catalog, history), SetDimensions(SELLER, BUYER))
        lines = catalog_preview(session)
        assert [line.invoice.id for line in lines] == ["1", "2", "3"]
        assert [line.selected for line in lines] == [True, False, False]
        assert [line.balance for line in lines] == [D("4000.00"), D("2000.00"), D("200.50")]
        assert all(line.suggested_adjustment == D("1000.00") for line in lines)

    def test_received_from_selected_line(self, catalog, history):
        session = apply_command(new_session(catalog, history), SetDimensions(SELLER, BUYER))
        session = apply_command(session, SetReceivedAmount("1", "4500"))
        first = catalog_preview(session)[0]
        assert first.received_amount == D("4500")
        assert first.balance == D("500.00")
        assert first.suggested_adjustment == D("500.00")

    def test_preview_does_not_change_session(self, catalog, history):
        session = apply_command(new_session(catalog, history), SetDimensions(SELLER, BUYER))
        catalog_preview(session)
        assert session.selected_invoice_ids == frozenset({"1"})
