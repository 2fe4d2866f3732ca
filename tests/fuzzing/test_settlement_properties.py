"""
Hypothesis-based property tests for the session reducer.

Random command histories are folded over a fixed catalog and history.
Commands the session refuses in its current state are skipped, as a form
would skip them. After every accepted command:

- Every balance, the advance carry-forward and the remaining tax are
  non-negative
- The carry-forward equals max(0, total advance - sum of adjustments)
- Type-specific figures are present only for their payment types
- Selected invoice ids and allocation keys agree, without duplicates
- Replaying the accepted commands reproduces the session exactly
"""

from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from settlement_engines.allocation import compute_balance
from settlement_engines.commands import (
    DeselectInvoice,
    SelectInvoice,
    SelectPaymentNumber,
    SetAdjustedAmount,
    SetDimensions,
    SetIncomeTaxAmount,
    SetIncomeTaxRate,
    SetReceivedAmount,
    ToggleInvoice,
)
from settlement_engines.session import apply_command, new_session, replay
from settlement_kernel.domain.amounts import ZERO, amount_or_zero, quantize
from settlement_kernel.domain.documents import PaymentStatus, PaymentType
from settlement_kernel.exceptions import AllocationNotFoundError, SessionStateError
from tests.builders import (
    BUYER,
    OTHER_BUYER,
    SELLER,
    advance,
    history_line,
    invoice,
    settlement,
)

CATALOG = (
    invoice("1", "INV-001", gross="5000"),
    invoice("2", "INV-002", gross="3000"),
    invoice("3", "INV-003", gross="1200.50"),
    invoice("9", "INV-009", gross="800", buyer=OTHER_BUYER),
)

HISTORY = (
    advance("a1", "700"),
    advance("a2", "300"),
    advance("a3", "5000", status=PaymentStatus.PENDING),
    advance("a4", "900", buyer=OTHER_BUYER),
    settlement(
        "p1",
        (
            history_line("INV-001", "1500", invoice_id="1"),
            history_line("INV-002", "0", invoice_id="2"),
        ),
        number="PAY-0100",
    ),
    settlement(
        "t1",
        (history_line("INV-003", "-200.50", invoice_id="3"),),
        payment_type=PaymentType.INCOME_TAX,
        number="TAX-0001",
    ),
)

amounts = st.one_of(
    st.none(),
    st.decimals(min_value=0, max_value=20000, places=2, allow_nan=False, allow_infinity=False),
)
invoice_ids = st.sampled_from(["1", "2", "3", "9", "404"])

commands = st.one_of(
    st.builds(
        SetDimensions,
        st.just(SELLER),
        st.sampled_from([BUYER, OTHER_BUYER]),
        st.sampled_from(list(PaymentType)),
    ),
    st.builds(SelectPaymentNumber, st.sampled_from([None, "PAY-0100", "TAX-0001", "PAY-404"])),
    st.builds(SelectInvoice, invoice_ids),
    st.builds(DeselectInvoice, invoice_ids),
    st.builds(ToggleInvoice, invoice_ids),
    st.builds(SetReceivedAmount, invoice_ids, amounts),
    st.builds(SetAdjustedAmount, invoice_ids, amounts),
    st.builds(SetIncomeTaxAmount, amounts),
    st.builds(SetIncomeTaxRate, amounts),
)

histories = st.lists(commands, max_size=25)


def _run(steps):
    """Fold ``steps``, skipping refused commands; return (start, session, accepted)."""
    start = new_session(catalog=CATALOG, history=HISTORY)
    session = apply_command(start, SetDimensions(SELLER, BUYER))
    accepted = [SetDimensions(SELLER, BUYER)]
    for command in steps:
        try:
            session = apply_command(session, command)
        except (SessionStateError, AllocationNotFoundError):
            continue
        accepted.append(command)
    return start, session, accepted


@pytest.mark.slow
class TestSessionProperties:
    @given(steps=histories)
    @settings(max_examples=200, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_figures_never_negative(self, steps):
        _, session, _ = _run(steps)
        for line in session.allocations:
            assert line.balance >= ZERO
        if session.advance_received is not None:
            assert session.advance_received >= ZERO
        if session.remaining_tax is not None:
            assert session.remaining_tax >= ZERO

    @given(steps=histories)
    @settings(max_examples=200, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_advance_conservation(self, steps):
        _, session, _ = _run(steps)
        if not session.payment_type.tracks_advance:
            assert session.advance_received is None
            return
        adjusted = sum((amount_or_zero(line.adjusted_amount) for line in session.allocations), ZERO)
        expected = quantize(max(ZERO, session.total_advance - adjusted))
        assert session.advance_received == expected

    @given(steps=histories)
    @settings(max_examples=200, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_type_specific_figures(self, steps):
        _, session, _ = _run(steps)
        is_tax = session.payment_type == PaymentType.INCOME_TAX
        assert (session.remaining_tax is not None) == is_tax
        assert (session.advance_received is not None) == (not is_tax)

    @given(steps=histories)
    @settings(max_examples=200, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_selection_matches_allocations(self, steps):
        _, session, _ = _run(steps)
        keys = [line.key for line in session.allocations]
        assert len(keys) == len(set(keys))
        assert session.selected_invoice_ids == frozenset(keys)

    @given(steps=histories)
    @settings(max_examples=100, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_replay_reproduces_session(self, steps):
        start, session, accepted = _run(steps)
        assert replay(accepted, start) == session


class TestBalanceProperties:
    @given(
        payment_type=st.sampled_from(list(PaymentType)),
        gross=st.decimals(min_value=0, max_value=10**7, places=2),
        received=amounts,
        adjusted=amounts,
        total_advance=st.decimals(min_value=0, max_value=10**7, places=2),
        original=st.one_of(st.none(), st.decimals(min_value=Decimal("0.01"), max_value=10**7, places=2)),
    )
    def test_compute_balance_non_negative(
        self, payment_type, gross, received, adjusted, total_advance, original
    ):
        balance = compute_balance(payment_type, gross, received, adjusted, total_advance, original)
        assert balance >= ZERO
