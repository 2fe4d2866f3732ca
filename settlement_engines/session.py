"""
Module: settlement_engines.session
Responsibility:
    The Reconciliation Session aggregate and its reducer. Ties a
    (seller, buyer, payment type, payment number) tuple to a working set
    of invoice allocations and keeps every derived figure (balances,
    accumulated advance, carry-forward, remaining tax, totals) consistent
    with the allocations after each command.

Architecture position:
    Engines -- pure calculation layer, zero I/O. Composes the Advance
    Accumulator, Allocation Calculator, Carry-Forward Tracker, seeding and
    tax engines. Stateful hosting (locking, rendering, submission) lives in
    ``settlement_services``.

Invariants enforced:
    - ``apply_command(session, command) -> session'`` is pure: the input
      session is never mutated, so replaying a command history reproduces
      the live result exactly.
    - Every command returns a fully recomputed session; no caller can
      observe a partially-updated state.
    - One allocation per selected invoice. ``selected_invoice_ids`` is
      derived from ``allocations`` and cannot drift from it.
    - A change of seller, buyer, payment type or payment number discards
      all allocations before anything is seeded for the new key.
    - ``advance_received`` is None unless the type is Advance or Payment;
      ``remaining_tax`` is None unless the type is IncomeTax.

State machine:
    EMPTY -> BUILDING (seller and buyer set)
          -> POPULATED (first selection or history seed)
          -> DIRTY (any field edit)
          -> FINALIZED (submit)

Failure modes:
    - SessionStateError: selection before both parties are set, a payment
      number on an Advance draft, an invoice from another pair, or any
      command after FINALIZED.
    - AllocationNotFoundError: an amount edit for an unselected invoice.

Usage:
    from settlement_engines.commands import LoadSnapshot, SetDimensions, SelectInvoice
    from settlement_engines.session import new_session, replay

    session = replay([
        LoadSnapshot(catalog=invoices, history=payments),
        SetDimensions("Acme Mills", "Zed Traders", PaymentType.PAYMENT),
        SelectInvoice("inv-1"),
    ])
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from functools import reduce

from settlement_engines.advance import total_advance
from settlement_engines.allocation import (
    InvoiceAllocation,
    apply_adjusted_amount,
    apply_received_amount,
    recompute_line,
)
from settlement_engines.carry_forward import recompute_advance
from settlement_engines.commands import (
    Command,
    DeselectInvoice,
    Finalize,
    LoadSnapshot,
    SelectInvoice,
    SelectPaymentNumber,
    SetAdjustedAmount,
    SetDimensions,
    SetIncomeTaxAmount,
    SetIncomeTaxRate,
    SetReceivedAmount,
    ToggleInvoice,
)
from settlement_engines.seeding import (
    auto_seed_candidates,
    baseline_for,
    baseline_from_line,
    find_payment,
)
from settlement_engines.tax import remaining_tax
from settlement_engines.tracer import traced_engine
from settlement_kernel.domain.amounts import ZERO, amount_or_zero, quantize
from settlement_kernel.domain.documents import (
    HistoryAllocation,
    Invoice,
    PaymentType,
    PriorPayment,
)
from settlement_kernel.exceptions import AllocationNotFoundError, SessionStateError
from settlement_kernel.logging_config import get_logger

logger = get_logger("engines.session")


class SessionStatus(str, Enum):
    """Lifecycle of a payment draft."""

    EMPTY = "empty"  # Parties not chosen
    BUILDING = "building"  # Parties chosen, nothing selected
    POPULATED = "populated"  # Invoices selected or seeded
    DIRTY = "dirty"  # Amounts edited
    FINALIZED = "finalized"  # Submitted


@dataclass(frozen=True)
class SessionTotals:
    """Running totals of the allocation table."""

    received: Decimal = ZERO
    gross: Decimal = ZERO
    balance: Decimal = ZERO
    adjusted: Decimal = ZERO

    @classmethod
    def of(cls, allocations: Iterable[InvoiceAllocation]) -> SessionTotals:
        received = gross = balance = adjusted = ZERO
        for line in allocations:
            received += amount_or_zero(line.received_amount)
            gross += line.gross_value
            balance += line.balance
            adjusted += amount_or_zero(line.adjusted_amount)
        return cls(received=received, gross=gross, balance=balance, adjusted=adjusted)


@dataclass(frozen=True)
class ReconciliationSession:
    """
    Aggregate root of one payment draft.

    Contract:
        Frozen. Only ``apply_command`` produces new sessions; the derived
        fields (``total_advance``, ``advance_received``, ``remaining_tax``,
        ``totals`` and each allocation's ``balance``) are always the output
        of the last recompute.
    Non-goals:
        - Does not persist itself; submission hands the finalized draft to
          an external collaborator.
    """

    seller: str = ""
    buyer: str = ""
    payment_type: PaymentType = PaymentType.PAYMENT
    selected_payment_number: str | None = None
    allocations: tuple[InvoiceAllocation, ...] = ()
    income_tax_amount: Decimal | None = None
    income_tax_rate: Decimal | None = None
    catalog: tuple[Invoice, ...] = ()
    history: tuple[PriorPayment, ...] = ()
    status: SessionStatus = SessionStatus.EMPTY
    decimal_places: int = 2
    rounding: str = ROUND_HALF_UP

    # Derived on every recompute
    total_advance: Decimal = ZERO
    advance_received: Decimal | None = None
    remaining_tax: Decimal | None = None
    totals: SessionTotals = field(default_factory=SessionTotals)

    @property
    def has_parties(self) -> bool:
        return bool(self.seller) and bool(self.buyer)

    @property
    def selected_invoice_ids(self) -> frozenset[str]:
        return frozenset(line.key for line in self.allocations)

    @property
    def stale_references(self) -> tuple[str, ...]:
        """Keys of selected invoices not resolved in the catalog snapshot."""
        return tuple(line.key for line in self.allocations if line.stale_reference)

    @property
    def is_finalized(self) -> bool:
        return self.status == SessionStatus.FINALIZED

    def allocation(self, invoice_id: str) -> InvoiceAllocation | None:
        for line in self.allocations:
            if line.key == invoice_id:
                return line
        return None


def new_session(
    catalog: Iterable[Invoice] = (),
    history: Iterable[PriorPayment] = (),
    decimal_places: int = 2,
    rounding: str = ROUND_HALF_UP,
) -> ReconciliationSession:
    """An EMPTY session over the given snapshots."""
    session = ReconciliationSession(
        catalog=tuple(catalog),
        history=tuple(history),
        decimal_places=decimal_places,
        rounding=rounding,
    )
    return _recompute(session)


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------


def _recompute(session: ReconciliationSession) -> ReconciliationSession:
    """Derive every computed field from the session's inputs."""
    places, rounding = session.decimal_places, session.rounding
    advance = ZERO
    if session.has_parties:
        advance = total_advance(session.seller, session.buyer, session.history)

    lines = tuple(
        recompute_line(line, session.payment_type, advance, places, rounding)
        for line in session.allocations
    )

    advance_received: Decimal | None = None
    if session.payment_type.tracks_advance:
        advance_received = quantize(recompute_advance(advance, lines), places, rounding)

    tax: Decimal | None = None
    if session.payment_type == PaymentType.INCOME_TAX:
        tax = quantize(
            remaining_tax(session.income_tax_amount, session.income_tax_rate, lines),
            places,
            rounding,
        )

    return replace(
        session,
        allocations=lines,
        total_advance=advance,
        advance_received=advance_received,
        remaining_tax=tax,
        totals=SessionTotals.of(lines),
    )


# ---------------------------------------------------------------------------
# Resolution and seeding helpers
# ---------------------------------------------------------------------------


def _catalog_invoice(
    session: ReconciliationSession,
    invoice_id: str | None,
    invoice_number: str | None,
) -> Invoice | None:
    """Resolve by invoice id first, then by number within the session's pair."""
    if invoice_id:
        for invoice in session.catalog:
            if invoice.id == invoice_id:
                return invoice
    if invoice_number:
        for invoice in session.catalog:
            if invoice.matches(invoice_number, session.seller, session.buyer):
                return invoice
    return None


def _history_line(
    session: ReconciliationSession,
    invoice_id: str | None,
    invoice_number: str | None,
) -> HistoryAllocation | None:
    """Any history line of the pair that refers to the invoice."""
    for payment in reversed(session.history):
        if not payment.is_between(session.seller, session.buyer):
            continue
        for line in payment.allocations:
            if invoice_id and line.invoice_id == invoice_id:
                return line
            if invoice_number and line.invoice_number == invoice_number:
                return line
    return None


def _with_status(session: ReconciliationSession, status: SessionStatus) -> ReconciliationSession:
    if session.status == status:
        return session
    logger.debug("session_status_changed", extra={
        "from_status": session.status.value,
        "to_status": status.value,
    })
    return replace(session, status=status)


def _after_selection(session: ReconciliationSession) -> SessionStatus:
    """Status once the allocation set has changed by selection."""
    if session.status == SessionStatus.DIRTY:
        return SessionStatus.DIRTY
    return SessionStatus.POPULATED if session.allocations else SessionStatus.BUILDING


def _seed_from_payment(session: ReconciliationSession) -> tuple[InvoiceAllocation, ...]:
    """Lines of the selected prior payment, resolved against the catalog."""
    payment = find_payment(
        session.history, session.selected_payment_number or "", session.seller, session.buyer
    )
    if payment is None:
        logger.warning("payment_number_not_in_history", extra={
            "payment_number": session.selected_payment_number,
            "seller": session.seller,
            "buyer": session.buyer,
        })
        return ()

    lines: list[InvoiceAllocation] = []
    seen: set[str] = set()
    for history_line in payment.allocations:
        baseline = baseline_from_line(history_line)
        invoice = _catalog_invoice(session, history_line.invoice_id, history_line.invoice_number)
        if invoice is not None:
            line = InvoiceAllocation.from_invoice(invoice, baseline)
        else:
            line = InvoiceAllocation.from_history(
                history_line, session.seller, session.buyer, baseline
            )
            logger.warning("stale_invoice_reference", extra={
                "invoice_key": line.key,
                "payment_number": payment.payment_number,
            })
        if line.key in seen:
            continue
        seen.add(line.key)
        lines.append(line)
    return tuple(lines)


def _seed(session: ReconciliationSession) -> ReconciliationSession:
    """Populate a freshly keyed session from history, when a flow applies."""
    if not session.has_parties:
        return session

    if session.selected_payment_number and session.payment_type.settles_invoices:
        lines = _seed_from_payment(session)
        flow = "payment_number"
    elif session.payment_type == PaymentType.PAYMENT:
        lines = tuple(
            InvoiceAllocation.from_invoice(invoice, baseline)
            for invoice, baseline in auto_seed_candidates(
                session.catalog, session.history, session.seller, session.buyer
            )
        )
        flow = "auto_seed"
    else:
        return session

    if lines:
        logger.info("session_seeded_from_history", extra={
            "flow": flow,
            "seller": session.seller,
            "buyer": session.buyer,
            "allocation_count": len(lines),
        })
    session = replace(session, allocations=lines)
    return _with_status(session, _after_selection(session))


def _reset(session: ReconciliationSession, **changes: object) -> ReconciliationSession:
    """Discard every allocation and re-key the session."""
    if session.allocations:
        logger.info("session_allocations_discarded", extra={
            "discarded_count": len(session.allocations),
        })
    session = replace(session, allocations=(), **changes)
    status = SessionStatus.BUILDING if session.has_parties else SessionStatus.EMPTY
    return replace(session, status=status)


def _require_parties(session: ReconciliationSession, command: Command) -> None:
    if not session.has_parties:
        raise SessionStateError(
            type(command).__name__,
            session.status.value,
            "seller and buyer must be set first",
        )


def _require_allocation(session: ReconciliationSession, invoice_id: str) -> InvoiceAllocation:
    line = session.allocation(invoice_id)
    if line is None:
        raise AllocationNotFoundError(invoice_id)
    return line


def _replace_line(
    session: ReconciliationSession,
    updated: InvoiceAllocation,
) -> ReconciliationSession:
    lines = tuple(updated if line.key == updated.key else line for line in session.allocations)
    return replace(session, allocations=lines)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _load_snapshot(session: ReconciliationSession, command: LoadSnapshot) -> ReconciliationSession:
    session = replace(session, catalog=command.catalog, history=command.history)

    # Re-resolve selected lines so gross values follow the new catalog.
    lines: list[InvoiceAllocation] = []
    for line in session.allocations:
        invoice = _catalog_invoice(session, line.invoice_id, line.invoice_number)
        if invoice is None:
            lines.append(replace(line, stale_reference=True))
        else:
            lines.append(replace(
                line,
                invoice_id=invoice.id,
                total_amount=invoice.total_amount,
                gross_value=invoice.gross_value,
                stale_reference=False,
            ))
    session = replace(session, allocations=tuple(lines))

    logger.info("snapshot_loaded", extra={
        "catalog_size": len(command.catalog),
        "history_size": len(command.history),
    })
    if session.status == SessionStatus.BUILDING:
        return _seed(session)
    return session


def _set_dimensions(session: ReconciliationSession, command: SetDimensions) -> ReconciliationSession:
    if (
        command.seller == session.seller
        and command.buyer == session.buyer
        and command.payment_type == session.payment_type
    ):
        return session

    logger.info("session_dimensions_changed", extra={
        "seller": command.seller,
        "buyer": command.buyer,
        "payment_type": command.payment_type.value,
        "previous_seller": session.seller,
        "previous_buyer": session.buyer,
        "previous_payment_type": session.payment_type.value,
    })
    session = _reset(
        session,
        seller=command.seller,
        buyer=command.buyer,
        payment_type=command.payment_type,
        selected_payment_number=None,
    )
    return _seed(session)


def _select_payment_number(
    session: ReconciliationSession,
    command: SelectPaymentNumber,
) -> ReconciliationSession:
    if command.payment_number == session.selected_payment_number:
        return session
    if command.payment_number and not session.payment_type.settles_invoices:
        raise SessionStateError(
            type(command).__name__,
            session.status.value,
            f"{session.payment_type.value} drafts have no payment-number lookup",
        )
    _require_parties(session, command)
    session = _reset(session, selected_payment_number=command.payment_number)
    return _seed(session)


def _require_same_id(
    session: ReconciliationSession,
    command: SelectInvoice,
    resolved_id: str | None,
    invoice_number: str,
) -> None:
    """Lines are keyed by the caller's id; a number match may not re-key them."""
    if command.invoice_id and resolved_id and command.invoice_id != resolved_id:
        raise SessionStateError(
            type(command).__name__,
            session.status.value,
            f"invoice {invoice_number} has id {resolved_id}, not {command.invoice_id}",
        )


def _select_invoice(session: ReconciliationSession, command: SelectInvoice) -> ReconciliationSession:
    _require_parties(session, command)

    invoice = _catalog_invoice(session, command.invoice_id, command.invoice_number)
    if invoice is not None:
        _require_same_id(session, command, invoice.id, invoice.invoice_number)
    if invoice is not None and (invoice.seller != session.seller or invoice.buyer != session.buyer):
        raise SessionStateError(
            type(command).__name__,
            session.status.value,
            f"invoice {invoice.invoice_number} belongs to {invoice.seller}/{invoice.buyer}",
        )

    if invoice is not None:
        baseline = baseline_for(
            session.history,
            invoice.invoice_number,
            session.seller,
            session.buyer,
            session.payment_type,
            session.selected_payment_number,
        )
        line = InvoiceAllocation.from_invoice(invoice, baseline)
    else:
        history_line = _history_line(session, command.invoice_id, command.invoice_number)
        if history_line is not None:
            _require_same_id(session, command, history_line.invoice_id, history_line.invoice_number)
            baseline = baseline_for(
                session.history,
                history_line.invoice_number,
                session.seller,
                session.buyer,
                session.payment_type,
                session.selected_payment_number,
            )
            line = InvoiceAllocation.from_history(
                replace(history_line, invoice_id=history_line.invoice_id or command.invoice_id),
                session.seller,
                session.buyer,
                baseline,
            )
        else:
            line = InvoiceAllocation(
                invoice_id=command.invoice_id,
                invoice_number=command.invoice_number or "",
                seller=session.seller,
                buyer=session.buyer,
                stale_reference=True,
            )
        logger.warning("stale_invoice_reference", extra={
            "invoice_key": line.key,
            "known_from_history": history_line is not None,
        })

    if line.key in session.selected_invoice_ids:
        return session

    session = replace(session, allocations=session.allocations + (line,))
    return _with_status(session, _after_selection(session))


def _deselect_invoice(session: ReconciliationSession, command: DeselectInvoice) -> ReconciliationSession:
    if command.invoice_id not in session.selected_invoice_ids:
        logger.debug("deselect_ignored_not_selected", extra={"invoice_key": command.invoice_id})
        return session
    lines = tuple(line for line in session.allocations if line.key != command.invoice_id)
    session = replace(session, allocations=lines)
    return _with_status(session, _after_selection(session))


def _toggle_invoice(session: ReconciliationSession, command: ToggleInvoice) -> ReconciliationSession:
    if command.invoice_id in session.selected_invoice_ids:
        return _deselect_invoice(session, DeselectInvoice(command.invoice_id))
    return _select_invoice(session, SelectInvoice(command.invoice_id, command.invoice_number))


def _set_received(session: ReconciliationSession, command: SetReceivedAmount) -> ReconciliationSession:
    line = _require_allocation(session, command.invoice_id)
    updated = apply_received_amount(line, command.value, session.payment_type)
    return _with_status(_replace_line(session, updated), SessionStatus.DIRTY)


def _set_adjusted(session: ReconciliationSession, command: SetAdjustedAmount) -> ReconciliationSession:
    line = _require_allocation(session, command.invoice_id)
    updated = apply_adjusted_amount(line, command.value)
    return _with_status(_replace_line(session, updated), SessionStatus.DIRTY)


def _header_edit_status(session: ReconciliationSession) -> SessionStatus:
    if session.status in (SessionStatus.POPULATED, SessionStatus.DIRTY):
        return SessionStatus.DIRTY
    return session.status


def _set_tax_amount(session: ReconciliationSession, command: SetIncomeTaxAmount) -> ReconciliationSession:
    session = replace(session, income_tax_amount=command.value)
    return _with_status(session, _header_edit_status(session))


def _set_tax_rate(session: ReconciliationSession, command: SetIncomeTaxRate) -> ReconciliationSession:
    session = replace(session, income_tax_rate=command.value)
    return _with_status(session, _header_edit_status(session))


def _finalize(session: ReconciliationSession, command: Finalize) -> ReconciliationSession:
    _require_parties(session, command)
    return _with_status(session, SessionStatus.FINALIZED)


_HANDLERS: dict[type, Callable[[ReconciliationSession, Command], ReconciliationSession]] = {
    LoadSnapshot: _load_snapshot,
    SetDimensions: _set_dimensions,
    SelectPaymentNumber: _select_payment_number,
    SelectInvoice: _select_invoice,
    DeselectInvoice: _deselect_invoice,
    ToggleInvoice: _toggle_invoice,
    SetReceivedAmount: _set_received,
    SetAdjustedAmount: _set_adjusted,
    SetIncomeTaxAmount: _set_tax_amount,
    SetIncomeTaxRate: _set_tax_rate,
    Finalize: _finalize,
}


# ---------------------------------------------------------------------------
# Public reducer
# ---------------------------------------------------------------------------


@traced_engine("session", "1.0", fingerprint_fields=("command",))
def apply_command(session: ReconciliationSession, command: Command) -> ReconciliationSession:
    """
    Apply one draft mutation and return the fully recomputed session.

    Raises:
        SessionStateError: if the session is FINALIZED or the command is
            not accepted in its current state.
        AllocationNotFoundError: if an amount edit names an unselected invoice.
        TypeError: if ``command`` is not a known command type.
    """
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"Unknown session command: {type(command).__name__}")
    if session.is_finalized:
        raise SessionStateError(
            type(command).__name__,
            session.status.value,
            "session is finalized",
        )
    return _recompute(handler(session, command))


def replay(
    commands: Iterable[Command],
    session: ReconciliationSession | None = None,
) -> ReconciliationSession:
    """Fold a command history over ``session`` (a new EMPTY session by default)."""
    start = session if session is not None else new_session()
    return reduce(apply_command, commands, start)


def select_invoice(
    session: ReconciliationSession,
    invoice: Invoice | str,
) -> ReconciliationSession:
    """Select a catalog invoice (or an invoice id)."""
    if isinstance(invoice, Invoice):
        return apply_command(session, SelectInvoice(invoice.id, invoice.invoice_number))
    return apply_command(session, SelectInvoice(invoice))


def deselect_invoice(session: ReconciliationSession, invoice_id: str) -> ReconciliationSession:
    return apply_command(session, DeselectInvoice(invoice_id))
