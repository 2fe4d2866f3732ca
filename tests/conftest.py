"""
Pytest fixtures for the settlement engine test suite.

Provides:
- Structured logging configured for the whole run, with a per-test
  capture fixture
- A representative catalog and history for one seller/buyer pair
- Settings loaded from the packaged defaults
"""

import json
import logging
from io import StringIO

import pytest

from settlement_config import get_active_settings
from settlement_kernel.domain.documents import PaymentStatus, PaymentType
from settlement_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from tests.builders import (
    OTHER_BUYER,
    advance,
    history_line,
    invoice,
    settlement,
)

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture settlement logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            apply_command(session, SelectInvoice("missing"))
            logs = captured_logs()
            assert any(r["message"] == "stale_invoice_reference" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("settlement")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Snapshot fixtures
# =============================================================================


@pytest.fixture
def catalog():
    """Three invoices for the default pair and one for another buyer."""
    return (
        invoice("1", "INV-001", gross="5000"),
        invoice("2", "INV-002", gross="3000"),
        invoice("3", "INV-003", gross="1200.50"),
        invoice("9", "INV-009", gross="800", buyer=OTHER_BUYER),
    )


@pytest.fixture
def history():
    """
    Approved advances of 700 + 300 for the pair, a pending advance that
    must not count, an advance for another buyer, and one approved payment
    leaving INV-001 with 1500 outstanding and INV-002 settled.
    """
    return (
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
    )


@pytest.fixture
def tax_history():
    """An approved IncomeTax record whose line leaves INV-003 at 200.50."""
    return (
        settlement(
            "t1",
            (history_line("INV-003", "-200.50", invoice_id="3"),),
            payment_type=PaymentType.INCOME_TAX,
            number="TAX-0001",
        ),
    )


@pytest.fixture
def settings():
    """Settings from the packaged defaults/settlement.yaml."""
    return get_active_settings()
