"""
Tests for the Advance Accumulator.

Covers:
- Only approved Advance records for the exact pair contribute
- Empty and non-matching histories yield zero
- Settlement records never count as advance
"""

from decimal import Decimal

from settlement_engines.advance import contributing_advances, total_advance
from settlement_kernel.domain.documents import PaymentStatus, PaymentType
from tests.builders import BUYER, OTHER_BUYER, SELLER, advance, history_line, settlement


class TestTotalAdvance:
    """Accumulation over the payment history."""

    def test_sums_approved_advances_for_pair(self, history):
        assert total_advance(SELLER, BUYER, history) == Decimal("1000")

    def test_pending_advance_ignored(self):
        payments = (advance("a1", "250"), advance("a2", "999", status=PaymentStatus.PENDING))
        assert total_advance(SELLER, BUYER, payments) == Decimal("250")

    def test_other_pair_ignored(self, history):
        assert total_advance(SELLER, OTHER_BUYER, history) == Decimal("900")

    def test_party_match_is_exact(self):
        payments = (advance("a1", "100", buyer="zed traders"),)
        assert total_advance(SELLER, BUYER, payments) == Decimal("0")

    def test_empty_history_is_zero(self):
        assert total_advance(SELLER, BUYER, ()) == Decimal("0")

    def test_settlement_records_do_not_count(self):
        payments = (
            settlement("p1", (history_line("INV-1", "10"),)),
            settlement("t1", (), payment_type=PaymentType.INCOME_TAX),
        )
        assert total_advance(SELLER, BUYER, payments) == Decimal("0")

    def test_fractional_amounts_exact(self):
        payments = (advance("a1", "0.10"), advance("a2", "0.20"))
        assert total_advance(SELLER, BUYER, payments) == Decimal("0.30")


class TestContributingAdvances:
    def test_returns_matching_records_in_order(self, history):
        ids = [p.id for p in contributing_advances(SELLER, BUYER, history)]
        assert ids == ["a1", "a2"]
