"""
Tests for the Carry-Forward Tracker.

advance_remaining = max(0, total_advance - sum(adjusted)), with blank
adjustments counted as zero.
"""

from decimal import Decimal
from dataclasses import replace

from settlement_engines.allocation import InvoiceAllocation
from settlement_engines.carry_forward import recompute_advance, sum_adjusted
from tests.builders import invoice


def _line(invoice_id: str, adjusted: str | None) -> InvoiceAllocation:
    line = InvoiceAllocation.from_invoice(invoice(invoice_id))
    return replace(line, adjusted_amount=Decimal(adjusted) if adjusted is not None else None)


class TestRecomputeAdvance:
    def test_no_allocations_keeps_full_advance(self):
        assert recompute_advance(Decimal("1000"), ()) == Decimal("1000")

    def test_adjustments_consume_advance(self):
        lines = (_line("1", "300"), _line("2", "200.50"))
        assert recompute_advance(Decimal("1000"), lines) == Decimal("499.50")

    def test_blank_adjustments_count_as_zero(self):
        lines = (_line("1", None), _line("2", "100"))
        assert recompute_advance(Decimal("1000"), lines) == Decimal("900")

    def test_exact_consumption_is_zero(self):
        assert recompute_advance(Decimal("500"), (_line("1", "500"),)) == Decimal("0")

    def test_overdrawn_clamps_to_zero(self, captured_logs):
        result = recompute_advance(Decimal("500"), (_line("1", "800"),))

        assert result == Decimal("0")
        overdrawn = [r for r in captured_logs() if r["message"] == "advance_overdrawn"]
        assert len(overdrawn) == 1
        assert overdrawn[0]["shortfall"] == "300"

    def test_zero_advance_stays_zero(self):
        assert recompute_advance(Decimal("0"), (_line("1", "10"),)) == Decimal("0")


class TestSumAdjusted:
    def test_empty(self):
        assert sum_adjusted(()) == Decimal("0")

    def test_sums_entered_values(self):
        assert sum_adjusted((_line("1", "1.10"), _line("2", None), _line("3", "2.20"))) == Decimal("3.30")
